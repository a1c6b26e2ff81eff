"""
Errors raised while translating ALB events.

Both abort the invocation: no envelope is produced and the exception
reaches the Lambda runtime, which reports the call as failed.
"""

from typing import Optional


class AdapterError(ValueError):
    """Base class for translation errors."""


class DecodeError(AdapterError):
    """Raised when a body or a query value cannot be decoded."""

    def __init__(self, what: str, cause: Optional[Exception] = None):
        self.what = what
        self.cause = cause
        msg = f"cannot decode {what}"
        if cause is not None:
            msg = f"{msg}: {cause}"
        super().__init__(msg)


class ParseError(AdapterError):
    """Raised when the reconstructed request target is not a valid URL."""

    def __init__(self, target: str, reason: str):
        self.target = target
        self.reason = reason
        super().__init__(f"invalid request target {target!r}: {reason}")
