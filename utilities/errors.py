"""
Exception hierarchy for the modification tracker.

Every failure a poll cycle can run into is a TrackerError so the
entry point can report it with a single handler.
"""

from typing import List, Optional, Sequence


class TrackerError(Exception):
    """Base class for all tracker errors."""


class ConfigError(TrackerError):
    """Required configuration is missing, a placeholder, or unreadable."""


class FetchError(TrackerError):
    """The current snapshot could not be retrieved."""


class SnapshotDecodeError(FetchError):
    """The remote document could not be decoded into a snapshot."""


class BaselineNotFoundError(TrackerError):
    """No baseline has been persisted yet."""

    def __init__(self, path):
        self.path = path
        super().__init__(f"no baseline at {path}")


class BaselineDecodeError(TrackerError):
    """The baseline file exists but is not a valid snapshot."""


class BaselineWriteError(TrackerError):
    """The baseline could not be written to disk."""


class SchemaMismatchError(TrackerError):
    """Two snapshots (or a document and the schema) do not share a field layout."""

    def __init__(
        self,
        source: str,
        missing: Sequence[str] = (),
        unexpected: Sequence[str] = (),
        reordered: bool = False,
        detail: Optional[str] = None,
    ):
        self.source = source
        self.missing = list(missing)
        self.unexpected = list(unexpected)
        self.reordered = reordered

        parts = []
        if self.missing:
            parts.append(f"missing fields: {', '.join(self.missing)}")
        if self.unexpected:
            parts.append(f"unexpected fields: {', '.join(self.unexpected)}")
        if reordered:
            parts.append("fields out of schema order")
        if detail:
            parts.append(detail)
        super().__init__(f"{source} does not match the snapshot schema ({'; '.join(parts)})")


class DeliveryError(TrackerError):
    """The messaging sink rejected a notification or could not be reached."""

    def __init__(self, field_name: str, status: str, status_code: Optional[int] = None):
        self.field_name = field_name
        self.status = status
        self.status_code = status_code
        if status_code is None:
            message = f"delivery of change '{field_name}' failed: {status}"
        else:
            message = f"webhook returned {status} for change '{field_name}'"
        super().__init__(message)


class DeliveryBatchError(TrackerError):
    """One or more notifications of a batch failed."""

    def __init__(self, errors: List[DeliveryError], attempted: int):
        self.errors = errors
        self.attempted = attempted
        summary = "; ".join(str(error) for error in errors)
        super().__init__(f"{len(errors)} of {attempted} notifications failed: {summary}")
