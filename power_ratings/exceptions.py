"""Error taxonomy for the ratings engine.

Data-quality problems (unknown team names, missing closing lines) are not
errors; they surface as skip reasons. Everything here is a hard failure.
"""


class PowerRatingsError(Exception):
    """Base class for engine failures."""


class IntegrityViolationError(PowerRatingsError):
    """Store and ledger disagree, or a write targets a rating that does not exist."""


class StaleRatingError(IntegrityViolationError):
    """A conditional write found a different rating version than the one it read."""


class StoreUnavailableError(PowerRatingsError):
    """Transient storage failure. Nothing was written; the call may be retried."""


class RosterAlreadyInitializedError(PowerRatingsError):
    """Season already has ratings and the caller did not ask for a reset."""


class OddsPayloadError(ValueError):
    """Odds payload could not be parsed (distinct from a line being unavailable)."""


class DataRequirementError(ValueError):
    """Raised when a required input payload is missing or fails validation."""
