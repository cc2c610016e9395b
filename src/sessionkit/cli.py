from __future__ import annotations
import asyncio
import logging
from enum import Enum
from pathlib import Path
from typing import List, Optional

import httpx
import typer
from rich.console import Console

from .builder import configurations
from .config import SessionConfiguration
from .errors import SessionError
from .models import Configuration, Disable, Headers, Preset, Timeout
from .reporter import Reporter
from .requestable import RequestDescriptor
from .session import Session
from .util import ensure_scheme, filename_from_url, parse_header_options

app = typer.Typer(add_completion=False, no_args_is_help=True)


class PresetName(str, Enum):
    DEFAULT = "default"
    EPHEMERAL = "ephemeral"
    BACKGROUND = "background"


def _configurations(
    preset: PresetName,
    identifier: Optional[str],
    headers: List[str],
    disable: List[Disable],
    request_timeout: Optional[float],
    resource_timeout: Optional[float],
    insecure: bool,
    wait_for_connectivity: bool = False,
) -> List[Configuration]:
    if preset is PresetName.BACKGROUND:
        base = SessionConfiguration.background(identifier or "sessionkit")
    elif preset is PresetName.EPHEMERAL:
        base = SessionConfiguration.ephemeral()
    else:
        base = SessionConfiguration.default()
    base.verify_tls = not insecure
    try:
        header_map = parse_header_options(headers)
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="--header")
    disabled = list(disable)
    # Fail fast unless asked to wait.
    if not wait_for_connectivity and Disable.WAITING_FOR_CONNECTIVITY not in disabled:
        disabled.append(Disable.WAITING_FOR_CONNECTIVITY)
    return configurations(
        Preset.custom(base),
        Headers(header_map) if header_map else None,
        disabled,
        Timeout.request(request_timeout) if request_timeout is not None else None,
        Timeout.resource(resource_timeout) if resource_timeout is not None else None,
    )


def _logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )


@app.callback()
def main() -> None:
    pass


@app.command("config")
def show_config(
    preset: PresetName = typer.Option(PresetName.DEFAULT, "--preset"),
    identifier: Optional[str] = typer.Option(None, "--identifier", help="Background session identifier"),
    header: List[str] = typer.Option([], "--header", "-H", help="Extra header, 'Name: value'"),
    disable: List[Disable] = typer.Option([], "--disable"),
    request_timeout: Optional[float] = typer.Option(None, "--request-timeout"),
    resource_timeout: Optional[float] = typer.Option(None, "--resource-timeout"),
    insecure: bool = typer.Option(False, "--insecure"),
    wait_for_connectivity: bool = typer.Option(
        False, "--wait-for-connectivity", help="Retry while the network is unreachable"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
):
    """Show the configuration a session would resolve to."""
    _logging(verbose)
    reporter = Reporter(Console())
    configs = _configurations(
        preset, identifier, header, disable, request_timeout, resource_timeout, insecure, wait_for_connectivity
    )
    session = Session(configs)
    try:
        reporter.configuration(session.configuration)
    finally:
        asyncio.run(session.close())


@app.command("fetch")
def fetch(
    url: str = typer.Argument(..., help="URL to fetch"),
    method: str = typer.Option("GET", "--method", "-X"),
    data: Optional[str] = typer.Option(None, "--data", "-d", help="Request body"),
    preset: PresetName = typer.Option(PresetName.DEFAULT, "--preset"),
    identifier: Optional[str] = typer.Option(None, "--identifier"),
    header: List[str] = typer.Option([], "--header", "-H"),
    disable: List[Disable] = typer.Option([], "--disable"),
    request_timeout: Optional[float] = typer.Option(None, "--request-timeout"),
    resource_timeout: Optional[float] = typer.Option(None, "--resource-timeout"),
    insecure: bool = typer.Option(False, "--insecure"),
    wait_for_connectivity: bool = typer.Option(
        False, "--wait-for-connectivity", help="Retry while the network is unreachable"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
):
    """Fetch a URL into memory and print the response."""
    _logging(verbose)
    reporter = Reporter(Console())
    configs = _configurations(
        preset, identifier, header, disable, request_timeout, resource_timeout, insecure, wait_for_connectivity
    )
    descriptor = RequestDescriptor(
        method=method,
        url=ensure_scheme(url),
        content=data.encode("utf-8") if data is not None else None,
    )

    async def run() -> int:
        async with Session(configs) as session:
            try:
                body, response = await session.data(descriptor)
            except (SessionError, httpx.HTTPError) as e:
                reporter.error(e)
                return reporter.exit_code(None)
            reporter.response(response, body=body)
            return reporter.exit_code(response)

    raise typer.Exit(code=asyncio.run(run()))


@app.command("download")
def download(
    url: str = typer.Argument(..., help="URL to download"),
    to: Optional[Path] = typer.Option(None, "--to", help="Target file (default: name from URL)"),
    preset: PresetName = typer.Option(PresetName.DEFAULT, "--preset"),
    identifier: Optional[str] = typer.Option(None, "--identifier"),
    header: List[str] = typer.Option([], "--header", "-H"),
    disable: List[Disable] = typer.Option([], "--disable"),
    request_timeout: Optional[float] = typer.Option(None, "--request-timeout"),
    resource_timeout: Optional[float] = typer.Option(None, "--resource-timeout"),
    insecure: bool = typer.Option(False, "--insecure"),
    wait_for_connectivity: bool = typer.Option(
        False, "--wait-for-connectivity", help="Retry while the network is unreachable"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
):
    """Download a URL to a file."""
    _logging(verbose)
    reporter = Reporter(Console())
    configs = _configurations(
        preset, identifier, header, disable, request_timeout, resource_timeout, insecure, wait_for_connectivity
    )
    target = to or Path(filename_from_url(url))
    descriptor = RequestDescriptor(url=ensure_scheme(url))

    async def run() -> int:
        async with Session(configs) as session:
            try:
                location, response = await session.download(descriptor, destination=target)
            except (SessionError, httpx.HTTPError) as e:
                reporter.error(e)
                return reporter.exit_code(None)
            reporter.response(response, location=location)
            return reporter.exit_code(response)

    raise typer.Exit(code=asyncio.run(run()))


if __name__ == "__main__":
    app()
