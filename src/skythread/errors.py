"""Error taxonomy for thread loading, mutations and payload handling"""

from typing import Optional


class SkythreadError(Exception):
    """Base class for all skythread errors"""
    pass


class ResolutionError(SkythreadError):
    """A handle could not be resolved to an account id"""

    def __init__(self, handle: str, message: Optional[str] = None):
        self.handle = handle
        super().__init__(message or f"Unable to resolve handle: {handle}")


class NotFoundError(SkythreadError):
    """The requested thread or post does not exist"""
    pass


class TransportError(SkythreadError):
    """Generic network or server failure

    Attributes:
        status_code: HTTP status, when the failure came with a response
        error: XRPC error name from the response body, if any
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        error: Optional[str] = None,
    ):
        self.status_code = status_code
        self.error = error
        super().__init__(message)


class ValidationError(SkythreadError):
    """A thread payload did not have the expected shape"""
    pass
