"""
Exception hierarchy for the account-abstraction wallet client
"""

from typing import Any, Optional


class WalletError(Exception):
    """Base exception for all wallet client errors"""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(WalletError):
    """Raised at construction when the client is misconfigured"""


class PreconditionError(WalletError):
    """Raised before any network I/O when call arguments are unusable"""

    def __init__(self, message: str, field: Optional[str] = None, value: Any = None, details: Optional[dict] = None):
        super().__init__(message, details)
        self.field = field
        self.value = value


class RPCError(WalletError):
    """Raised when a node answers a JSON-RPC request with an error object"""

    def __init__(
        self,
        message: str,
        code: Optional[int] = None,
        data: Any = None,
        method: Optional[str] = None,
        endpoint: Optional[str] = None,
    ):
        super().__init__(message, {"code": code, "data": data, "method": method})
        self.code = code
        self.data = data
        self.method = method
        self.endpoint = endpoint


class BundlerError(RPCError):
    """Raised when the bundler rejects a UserOperation request"""


def require(condition: bool, message: str, field: Optional[str] = None, value: Any = None) -> None:
    """Raise PreconditionError unless condition holds"""
    if not condition:
        raise PreconditionError(message, field=field, value=value)
