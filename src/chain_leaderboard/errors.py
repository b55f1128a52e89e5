"""
Failure types raised while building a leaderboard.

Every error carries a machine-readable ``category`` and a human-readable
``detail`` so callers can report a single failure object.
"""

from typing import Any, Optional


class LeaderboardError(Exception):
    category = "leaderboard"

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail

    def to_dict(self) -> dict:
        return {"error": self.category, "details": self.detail}


class ConfigurationError(LeaderboardError):
    """Required static configuration is absent or invalid."""

    category = "configuration"


class RpcError(LeaderboardError):
    """Any failed JSON-RPC call; ``method`` names the call that failed."""

    category = "rpc"

    def __init__(self, method: str, cause: str) -> None:
        super().__init__(f"{method}: {cause}")
        self.method = method
        self.cause = cause


class RpcTransportError(RpcError):
    """Network failure, timeout or non-success HTTP status."""

    category = "rpc_transport"

    def __init__(self, method: str, cause: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(method, cause)
        self.status_code = status_code


class RpcProtocolError(RpcError):
    """Well-formed HTTP response carrying an error object (or unusable body)."""

    category = "rpc_protocol"

    def __init__(self, method: str, cause: str, *, code: Any = None) -> None:
        super().__init__(method, cause)
        self.code = code


class DecodeError(LeaderboardError):
    """A log or call result does not match the expected ABI shape."""

    category = "decode"


class OutputError(LeaderboardError):
    """The built leaderboard could not be written out."""

    category = "output"
