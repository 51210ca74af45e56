"""Custom exception hierarchy for ferrytrips."""

from __future__ import annotations


class FerryTripsError(Exception):
    """Base exception for all ferrytrips errors."""


class ConfigError(FerryTripsError):
    """Invalid or missing configuration."""


class FeedError(FerryTripsError):
    """Telemetry feed failure (network, non-200, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class CollaboratorError(FerryTripsError):
    """A store, schedule or model collaborator call failed."""

    def __init__(self, message: str, *, operation: str = "") -> None:
        self.operation = operation
        super().__init__(message)


class TransientIOError(CollaboratorError):
    """Collaborator failure expected to clear on a later tick.

    Lookup and model-load paths treat this (and timeouts) as a miss.
    """


class InvariantViolationError(FerryTripsError):
    """A lifecycle transition would produce an impossible trip state.

    Raised for upstream logic defects, e.g. archiving a trip that has no
    end timestamp.  Never downgraded to a miss.
    """

    def __init__(self, message: str, *, vessel_id: str = "") -> None:
        self.vessel_id = vessel_id
        super().__init__(message)


class FeatureExtractionError(FerryTripsError):
    """A trip lacks the context a model's feature vector needs."""
