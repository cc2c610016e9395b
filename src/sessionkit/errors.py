from __future__ import annotations
from enum import Enum
from typing import Optional


class SessionErrorKind(str, Enum):
    INVALID_REQUEST = "invalid_request"
    INVALID_RESPONSE = "invalid_response"


class SessionError(Exception):
    """Failures owned by the session layer; transport errors are never wrapped."""

    def __init__(self, kind: SessionErrorKind, raw_error: Optional[BaseException] = None) -> None:
        self.kind = kind
        self.raw_error = raw_error
        if kind is SessionErrorKind.INVALID_REQUEST:
            message = f"Could not build request: {raw_error}"
        else:
            message = "Task finished without data and without an error"
        super().__init__(message)
        if raw_error is not None:
            self.__cause__ = raw_error

    @classmethod
    def invalid_request(cls, raw_error: BaseException) -> SessionError:
        return cls(SessionErrorKind.INVALID_REQUEST, raw_error)

    @classmethod
    def invalid_response(cls) -> SessionError:
        return cls(SessionErrorKind.INVALID_RESPONSE)

    def _raw_description(self) -> Optional[str]:
        return None if self.raw_error is None else str(self.raw_error)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SessionError):
            return NotImplemented
        if self.kind is not other.kind:
            return False
        if self.kind is SessionErrorKind.INVALID_REQUEST:
            return self._raw_description() == other._raw_description()
        return True

    def __hash__(self) -> int:
        return hash((self.kind, self._raw_description()))

    def __repr__(self) -> str:
        if self.raw_error is None:
            return f"SessionError.{self.kind.value}"
        return f"SessionError.{self.kind.value}({self.raw_error!r})"
