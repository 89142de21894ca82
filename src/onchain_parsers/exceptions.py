"""Exception hierarchy for on-chain parser dispatch."""

from typing import Any

from .constants import ParseState


class ParserDispatchError(Exception):
    """Base exception for all parse dispatch errors."""

    state: ParseState = ParseState.VALIDATING

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class InvalidInput(ParserDispatchError):
    """Raised when a parse request is malformed. Never reaches the chain."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.field = field
        self.value = value


class UnknownSchema(ParserDispatchError):
    """Raised when no codec can be resolved for a request."""

    def __init__(
        self,
        message: str,
        schema_tag: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.schema_tag = schema_tag


class ChainCallFailed(ParserDispatchError):
    """Raised when the static call to a handler reverts, times out or fails in transport."""

    state = ParseState.CALL_FAILED

    def __init__(
        self,
        message: str,
        handler: str | None = None,
        reason: str | None = None,
        cancelled: bool = False,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.handler = handler
        self.reason = reason
        self.cancelled = cancelled


class DecodeError(ParserDispatchError):
    """Raised when response bytes do not match the expected schema."""

    state = ParseState.DECODE_FAILED

    def __init__(
        self,
        message: str,
        schema_tag: str | None = None,
        payload_length: int | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.schema_tag = schema_tag
        self.payload_length = payload_length
