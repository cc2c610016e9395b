from __future__ import annotations
import asyncio
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, AsyncIterator, Awaitable, Callable, Iterable, Optional, TypeVar, Union

import httpx

from .compat import CompletionHandler, SessionTask
from .config import SessionConfiguration
from .delegates import notify, weak_reference
from .errors import SessionError
from .http_client import HttpClient
from .merge import merge_configurations
from .models import Configuration, DataResponse, DownloadResponse, LoadedResponse, ResumeData, UploadResponse
from .requestable import RequestLike, make_request

log = logging.getLogger("sessionkit.session")

T = TypeVar("T")

UPLOAD_CHUNK_SIZE = 64 * 1024


def _temporary_path() -> Path:
    fd, name = tempfile.mkstemp(prefix="sessionkit-", suffix=".download")
    os.close(fd)
    return Path(name)


def _expected_length(response: httpx.Response) -> Optional[int]:
    value = response.headers.get("content-length")
    if value is None or not value.isdigit():
        return None
    return int(value)


async def _read_file(path: Path) -> AsyncIterator[bytes]:
    with path.open("rb") as fh:
        while True:
            chunk = await asyncio.to_thread(fh.read, UPLOAD_CHUNK_SIZE)
            if not chunk:
                return
            yield chunk


class Session:
    """Session built from an ordered list of configuration variants."""

    def __init__(
        self,
        configurations: Iterable[Configuration] = (),
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        merged = merge_configurations(configurations)
        self._configuration = merged.configuration
        self._session_delegate = weak_reference(merged.session_delegate)
        self._task_delegate = weak_reference(merged.task_delegate)
        self._http = HttpClient(self._configuration, self._session_delegate, transport)
        log.debug("session created (%s)", self._configuration.disposition)

    # ---------- Accessors ----------

    @property
    def configuration(self) -> SessionConfiguration:
        """Copy of the resolved configuration; changing it has no effect."""
        return self._configuration.copy()

    @property
    def session_delegate(self) -> Optional[Any]:
        return self._session_delegate()

    @property
    def task_delegate(self) -> Optional[Any]:
        return self._task_delegate()

    # ---------- Data ----------

    async def data(self, request: RequestLike) -> DataResponse:
        return await self._data(request, self.task_delegate)

    async def response(self, request: RequestLike) -> LoadedResponse:
        r = make_request(request)
        return LoadedResponse(request=r, result=await self._data(r, self.task_delegate))

    # ---------- Download ----------

    async def download(self, request: RequestLike, destination: Optional[Path] = None) -> DownloadResponse:
        r = make_request(request)
        delegate = self.task_delegate
        return await self._perform(r, delegate, lambda prepared: self._load_file(prepared, delegate, destination, None))

    async def download_resume(self, resume_data: Union[ResumeData, bytes]) -> DownloadResponse:
        """Continue a download from the ``resume_data`` attached to an interrupted one."""
        try:
            resume = resume_data if isinstance(resume_data, ResumeData) else ResumeData.from_bytes(resume_data)
        except ValueError as e:
            raise SessionError.invalid_request(e) from e

        headers = dict(resume.headers)
        if resume.received and Path(resume.partial_path).exists():
            headers["Range"] = f"bytes={resume.received}-"
            if resume.validator:
                headers["If-Range"] = resume.validator
        else:
            resume = resume.model_copy(update={"received": 0})
        try:
            r = httpx.Request(resume.method, resume.url, headers=headers)
        except Exception as e:
            raise SessionError.invalid_request(e) from e

        delegate = self.task_delegate
        return await self._perform(r, delegate, lambda prepared: self._load_file(prepared, delegate, None, resume))

    # ---------- Upload ----------

    async def upload(
        self,
        request: RequestLike,
        *,
        from_file: Optional[Union[str, Path]] = None,
        from_data: Optional[bytes] = None,
    ) -> UploadResponse:
        if (from_file is None) == (from_data is None):
            raise ValueError("upload needs exactly one of from_file or from_data")
        r = make_request(request)
        headers = httpx.Headers(r.headers)
        headers.pop("content-length", None)
        headers.pop("transfer-encoding", None)
        if from_file is not None:
            path = Path(from_file)
            if not path.is_file():
                raise SessionError.invalid_request(FileNotFoundError(f"No file to upload at {path}"))
            headers["Content-Length"] = str(path.stat().st_size)
            body = httpx.Request(r.method, r.url, headers=headers, content=_read_file(path), extensions=r.extensions)
        else:
            body = httpx.Request(r.method, r.url, headers=headers, content=from_data, extensions=r.extensions)
        return await self._data(body, self.task_delegate)

    # ---------- Callback API ----------

    def data_task(self, request: RequestLike, completion_handler: CompletionHandler) -> SessionTask:
        return SessionTask(lambda delegate: self._data(request, delegate), completion_handler, self.task_delegate)

    def download_task(self, request: RequestLike, completion_handler: CompletionHandler) -> SessionTask:
        async def run(delegate: Optional[Any]) -> DownloadResponse:
            r = make_request(request)
            return await self._perform(r, delegate, lambda prepared: self._load_file(prepared, delegate, None, None))

        return SessionTask(run, completion_handler, self.task_delegate)

    # ---------- Lifecycle ----------

    async def close(self) -> None:
        await self._http.aclose()
        notify(self.session_delegate, "session_did_become_invalid", None)
        log.debug("session closed")

    async def __aenter__(self) -> Session:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    # ---------- Internals ----------

    async def _data(self, request: RequestLike, delegate: Optional[Any]) -> DataResponse:
        r = make_request(request)
        return await self._perform(r, delegate, lambda prepared: self._load_data(prepared, delegate))

    async def _perform(
        self,
        request: httpx.Request,
        delegate: Optional[Any],
        load: Callable[[httpx.Request], Awaitable[T]],
    ) -> T:
        prepared = self._http.prepare(request)
        notify(delegate, "task_will_start", prepared)
        budget = self._configuration.timeout_interval_for_resource
        try:
            result = await asyncio.wait_for(load(prepared), timeout=budget)
        except asyncio.TimeoutError as e:
            error = httpx.TimeoutException(f"Resource timeout of {budget}s exceeded", request=prepared)
            notify(delegate, "task_did_complete", prepared, error)
            raise error from e
        except Exception as e:
            notify(delegate, "task_did_complete", prepared, e)
            raise
        notify(delegate, "task_did_complete", prepared, None)
        return result

    def _report_response(self, response: httpx.Response, delegate: Optional[Any]) -> None:
        hops = list(response.history) + [response]
        for hop, following in zip(hops, hops[1:]):
            notify(delegate, "task_will_redirect", hop, following.request)
        notify(delegate, "task_did_receive_response", response)

    async def _load_data(self, request: httpx.Request, delegate: Optional[Any]) -> DataResponse:
        response = await self._http.send(request)
        self._report_response(response, delegate)
        notify(delegate, "task_did_receive_data", len(response.content), _expected_length(response))
        return DataResponse(response.content, response)

    async def _load_file(
        self,
        request: httpx.Request,
        delegate: Optional[Any],
        destination: Optional[Path],
        resume: Optional[ResumeData],
    ) -> DownloadResponse:
        response = await self._http.send(request, stream=True)
        try:
            self._report_response(response, delegate)
            appending = False
            temporary = False
            if resume is not None and response.is_success:
                # Only a 206 continues the partial file; any other 2xx is the whole body.
                path = Path(resume.partial_path)
                appending = resume.received > 0 and response.status_code == 206
            elif destination is not None and resume is None:
                path = Path(destination)
            else:
                # Error answers to a resume never touch the partial file.
                path = _temporary_path()
                temporary = True
            received = resume.received if appending else 0
            expected = _expected_length(response)
            if expected is not None:
                expected += received

            try:
                with path.open("ab" if appending else "wb") as fh:
                    try:
                        async for chunk in response.aiter_bytes():
                            fh.write(chunk)
                            received += len(chunk)
                            notify(delegate, "task_did_receive_data", received, expected)
                    except httpx.TransportError as e:
                        fh.flush()
                        if response.status_code in (200, 206):
                            e.resume_data = ResumeData(
                                url=str(request.url),
                                method=request.method,
                                partial_path=str(path),
                                received=received,
                                validator=response.headers.get("etag") or response.headers.get("last-modified"),
                            ).to_bytes()
                            log.warning("download of %s interrupted after %d bytes", request.url, received)
                        raise
            except BaseException as e:
                if temporary and getattr(e, "resume_data", None) is None:
                    path.unlink(missing_ok=True)
                raise
        finally:
            await response.aclose()
        return DownloadResponse(path, response)
