"""
Models for change detection and notification delivery.

This module defines:
- Change records produced by the differ
- Delivery policies for notification batches
- Discord webhook message structures
- Poll cycle results
"""

from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class DeliveryPolicy(str, Enum):
    """How a batch of notifications reacts to a failed delivery."""
    FAIL_FAST = "fail_fast"
    COLLECT = "collect"


def render_value(value: Any) -> str:
    """
    Render a snapshot value as display text.

    Strings are returned unchanged, booleans as true/false, lists as
    [a, b] and nested models as {key: value} in field order.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, BaseModel):
        items = ", ".join(
            f"{name}: {render_value(getattr(value, name))}"
            for name in type(value).model_fields
        )
        return "{" + items + "}"
    if isinstance(value, dict):
        items = ", ".join(f"{key}: {render_value(item)}" for key, item in value.items())
        return "{" + items + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(render_value(item) for item in value) + "]"
    if value is None:
        return "null"
    return str(value)


class ChangeRecord(BaseModel):
    """One field-level difference between two snapshots."""
    model_config = ConfigDict(frozen=True)

    field_name: str = Field(..., description="Display label of the changed field")
    previous_value: Any = Field(default=None, description="Value in the baseline")
    current_value: Any = Field(default=None, description="Value in the current snapshot")

    def describe(self) -> str:
        """Render the change as previous -> current text."""
        return f"{render_value(self.previous_value)}\n->\n{render_value(self.current_value)}"

    def swapped(self) -> "ChangeRecord":
        return ChangeRecord(
            field_name=self.field_name,
            previous_value=self.current_value,
            current_value=self.previous_value,
        )


# Discord webhook payload. Unset members are omitted when serialised.

class EmbedAuthor(BaseModel):
    name: Optional[str] = None
    url: Optional[str] = None
    icon_url: Optional[str] = None


class EmbedField(BaseModel):
    name: str
    value: str
    inline: bool = False


class EmbedThumbnail(BaseModel):
    url: str


class EmbedImage(BaseModel):
    url: str


class EmbedFooter(BaseModel):
    text: str
    icon_url: Optional[str] = None


class Embed(BaseModel):
    """A rich message block."""
    author: Optional[EmbedAuthor] = None
    title: Optional[str] = None
    url: Optional[str] = None
    description: Optional[str] = None
    color: Optional[int] = None
    fields: Optional[List[EmbedField]] = None
    thumbnail: Optional[EmbedThumbnail] = None
    image: Optional[EmbedImage] = None
    footer: Optional[EmbedFooter] = None


class WebhookMessage(BaseModel):
    """Body of a webhook execution request."""
    username: Optional[str] = None
    avatar_url: Optional[str] = None
    content: Optional[str] = None
    embeds: List[Embed] = Field(default_factory=list)

    def to_payload(self) -> dict:
        """Serialise to the JSON body, dropping unset members."""
        return self.model_dump(mode="json", exclude_none=True)


class CycleResult(BaseModel):
    """Outcome of one poll cycle."""
    subject: str = Field(..., description="Namespace of the tracked modification")
    baseline_found: bool = Field(default=False)
    changes: List[ChangeRecord] = Field(default_factory=list)
    delivered: int = Field(default=0, description="Notifications accepted by the sink")
    baseline_saved: bool = Field(default=False)
    dry_run: bool = Field(default=False)

    @property
    def changes_detected(self) -> int:
        return len(self.changes)
