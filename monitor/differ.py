"""
Change detection between two modification snapshots.

Fields are compared in schema declaration order using structural
equality. Nested structures (rating, brand images) are compared as a
whole and never recursed into.
"""

from typing import Any, List, NamedTuple

import structlog

from modification.models import Modification
from monitor.models import ChangeRecord
from utilities.errors import SchemaMismatchError

logger = structlog.get_logger(__name__)


class SnapshotField(NamedTuple):
    """A tracked field: display label and model attribute."""
    label: str
    attribute: str

    def read(self, snapshot: Modification) -> Any:
        return getattr(snapshot, self.attribute)


SNAPSHOT_FIELDS = (
    SnapshotField("Id", "id"),
    SnapshotField("Namespace", "namespace"),
    SnapshotField("Name", "name"),
    SnapshotField("Featured", "featured"),
    SnapshotField("Verified", "verified"),
    SnapshotField("Organization", "organization"),
    SnapshotField("Author", "author"),
    SnapshotField("Downloads", "downloads"),
    SnapshotField("DownloadString", "download_string"),
    SnapshotField("ShortDescription", "short_description"),
    SnapshotField("Rating", "rating"),
    SnapshotField("Changelog", "changelog"),
    SnapshotField("RequiredLabymodBuild", "required_labymod_build"),
    SnapshotField("Releases", "releases"),
    SnapshotField("LastUpdate", "last_update"),
    SnapshotField("Licence", "licence"),
    SnapshotField("VersionString", "version_string"),
    SnapshotField("Meta", "meta"),
    SnapshotField("Dependencies", "dependencies"),
    SnapshotField("Permissions", "permissions"),
    SnapshotField("SourceUrl", "source_url"),
    SnapshotField("BrandImages", "brand_images"),
    SnapshotField("Tags", "tags"),
)


def values_equal(previous: Any, current: Any) -> bool:
    """
    Structural equality for snapshot values.

    Booleans never equal numbers, so a flag flipping to 1 still counts.
    """
    if isinstance(previous, bool) != isinstance(current, bool):
        return False
    return previous == current


def _check_schema(previous: Any, current: Any) -> None:
    for role, snapshot in (("previous snapshot", previous), ("current snapshot", current)):
        if not isinstance(snapshot, Modification):
            raise SchemaMismatchError(
                role, detail=f"expected Modification, got {type(snapshot).__name__}"
            )
    if type(previous) is not type(current):
        raise SchemaMismatchError(
            "snapshots",
            detail=f"{type(previous).__name__} and {type(current).__name__} differ",
        )


def diff(previous: Modification, current: Modification) -> List[ChangeRecord]:
    """
    Compare two snapshots field by field.

    Args:
        previous: Baseline snapshot
        current: Freshly fetched snapshot

    Returns:
        One ChangeRecord per unequal field, in schema order

    Raises:
        SchemaMismatchError: The snapshots do not share the Modification schema
    """
    _check_schema(previous, current)

    changes = []
    for field in SNAPSHOT_FIELDS:
        old_value = field.read(previous)
        new_value = field.read(current)
        if not values_equal(old_value, new_value):
            changes.append(ChangeRecord(
                field_name=field.label,
                previous_value=old_value,
                current_value=new_value,
            ))

    logger.debug(
        "Compared snapshots",
        namespace=current.namespace,
        fields_checked=len(SNAPSHOT_FIELDS),
        changes=len(changes)
    )
    return changes
