"""Error taxonomy shared by the pipeline and the HTTP layer.

Every error carries the HTTP status it maps to; the FastAPI handler in
``pilot.main`` renders them uniformly as ``{"error": message}``.
"""
from __future__ import annotations


class PilotError(Exception):
    status_code: int = 500


class ValidationError(PilotError):
    """Missing or malformed request parameter."""

    status_code = 400


class NotFoundError(PilotError):
    status_code = 404


class StrategyNotFound(NotFoundError):
    def __init__(self, strategy_id: str) -> None:
        super().__init__(f"Strategy with ID {strategy_id} not found")
        self.strategy_id = strategy_id


class UpstreamError(PilotError):
    """External data source unreachable, non-2xx or returned garbage."""

    status_code = 500

    def __init__(self, message: str, source: str = "") -> None:
        super().__init__(message)
        self.source = source


class UnsupportedOperationError(PilotError):
    status_code = 400


class UnsupportedProtocol(UnsupportedOperationError):
    def __init__(self, protocol: str) -> None:
        super().__init__(f"Router address not available for {protocol}")
        self.protocol = protocol


class ActionNotImplemented(UnsupportedOperationError):
    def __init__(self, action: str, strategy_type: str) -> None:
        super().__init__(
            f"Action '{action}' is not implemented for {strategy_type} strategies"
        )
        self.action = action
        self.strategy_type = strategy_type


class DataIntegrityError(PilotError):
    """A strategy lacks data required to build a transaction."""

    status_code = 400


class MissingTokenData(DataIntegrityError):
    pass


class InsufficientTokenData(DataIntegrityError):
    pass


class MissingPoolId(DataIntegrityError):
    pass
