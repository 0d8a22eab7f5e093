"""
Pydantic models for the client-store modification snapshot.
Implements the modification schema with every tracked field in declaration order.
"""

from typing import Any, List, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from utilities.errors import SchemaMismatchError


class SnapshotModel(BaseModel):
    """Base for snapshot models: unknown keys are ignored and nulls decode to zero values."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    @model_validator(mode="before")
    @classmethod
    def drop_nulls(cls, data):
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


class Rating(SnapshotModel):
    """Aggregated user rating."""
    count: int = 0
    rating: float = 0.0


class BrandImage(SnapshotModel):
    """Store artwork reference."""
    type: str = ""
    hash: str = ""


class Modification(SnapshotModel):
    """
    Snapshot of one client-store modification at one point in time.
    """
    # Identity
    id: int = Field(default=0, description="Numeric modification id")
    namespace: str = Field(default="", description="Unique namespace used in store URLs")
    name: str = Field(default="", description="Display name")

    # Store flags and ownership
    featured: bool = Field(default=False)
    verified: bool = Field(default=False)
    organization: int = Field(default=0)
    author: str = Field(default="")

    # Popularity
    downloads: int = Field(default=0)
    download_string: str = Field(default="")
    short_description: str = Field(default="")
    rating: Rating = Field(default_factory=Rating)

    # Release information
    changelog: str = Field(default="")
    required_labymod_build: int = Field(default=0)
    releases: int = Field(default=0)
    last_update: int = Field(default=0, description="Unix timestamp of the last release")
    licence: str = Field(default="")
    version_string: str = Field(default="")

    # Collections
    meta: List[str] = Field(default_factory=list)
    dependencies: List[Any] = Field(default_factory=list)
    permissions: List[str] = Field(default_factory=list)
    source_url: str = Field(default="")
    brand_images: List[BrandImage] = Field(default_factory=list)
    tags: List[int] = Field(default_factory=list)

    @field_validator("meta", "permissions", mode="before")
    @classmethod
    def fill_null_strings(cls, v):
        """Null list elements decode to empty strings."""
        if isinstance(v, list):
            return ["" if item is None else item for item in v]
        return v

    @field_validator("tags", mode="before")
    @classmethod
    def fill_null_tags(cls, v):
        """Null tag ids decode to 0."""
        if isinstance(v, list):
            return [0 if item is None else item for item in v]
        return v

    @field_validator("brand_images", mode="before")
    @classmethod
    def fill_null_images(cls, v):
        """Null images decode to an empty BrandImage."""
        if isinstance(v, list):
            return [{} if item is None else item for item in v]
        return v


SNAPSHOT_KEYS = tuple(Modification.model_fields)


def check_document_layout(document: Mapping[str, Any], source: str, exact: bool = False) -> None:
    """
    Verify a raw JSON document carries every snapshot key.

    Args:
        document: Decoded JSON object
        source: Name of the document used in error messages
        exact: Also reject unknown keys and keys out of schema order

    Raises:
        SchemaMismatchError: The document does not match the schema
    """
    missing = [key for key in SNAPSHOT_KEYS if key not in document]
    unexpected = [key for key in document if key not in SNAPSHOT_KEYS] if exact else []
    reordered = False
    if exact and not missing and not unexpected:
        reordered = tuple(document) != SNAPSHOT_KEYS

    if missing or unexpected or reordered:
        raise SchemaMismatchError(source, missing=missing, unexpected=unexpected, reordered=reordered)
