"""
Webhook notifications for detected changes.

This module provides:
- Message formatting, one embed per changed field
- Delivery to a Discord-compatible webhook
- Batch delivery with a fail-fast or collect-all failure policy
"""

from typing import List, Optional

import httpx
import structlog

from modification.models import Modification
from monitor.models import (
    ChangeRecord, DeliveryPolicy, Embed, EmbedAuthor, WebhookMessage
)
from utilities.errors import DeliveryBatchError, DeliveryError

logger = structlog.get_logger(__name__)

SUCCESS_STATUS_CODES = (200, 204)


class DiscordNotifier:
    """Formats change records and posts them to a webhook."""

    def __init__(
        self,
        webhook_url: str,
        username: Optional[str] = "FlintMC Modification Tracker",
        avatar_url: Optional[str] = "https://avatars.githubusercontent.com/u/76062092",
        color: int = 6689010,
        page_url_template: str = "https://flintmc.net/modification/{id}.{namespace}",
        policy: DeliveryPolicy = DeliveryPolicy.FAIL_FAST,
        timeout: float = 30,
        client: Optional[httpx.Client] = None,
    ):
        """
        Initialize the notifier.

        Args:
            webhook_url: Endpoint messages are posted to
            username: Sender display name
            avatar_url: Sender avatar
            color: Embed accent colour
            page_url_template: Link to the modification page, formatted with id and namespace
            policy: Reaction to a failed delivery inside notify_all
            timeout: Request timeout in seconds
            client: Pre-built HTTP client; one is created (and owned) when omitted
        """
        if not webhook_url:
            raise ValueError("Webhook url must not be empty")
        try:
            page_url_template.format(id=0, namespace="")
        except (KeyError, IndexError, ValueError) as e:
            raise ValueError(f"Page url template may only use {{id}} and {{namespace}}: {e!r}") from e
        self.webhook_url = webhook_url
        self.username = username
        self.avatar_url = avatar_url
        self.color = color
        self.page_url_template = page_url_template
        self.policy = policy
        self.logger = logger.bind(component="discord_notifier")
        self._owns_client = client is None
        self.client = client or httpx.Client(timeout=timeout)

    def __enter__(self) -> "DiscordNotifier":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self.client.close()

    def page_url(self, entity: Modification) -> str:
        return self.page_url_template.format(id=entity.id, namespace=entity.namespace)

    def build_message(self, entity: Modification, change: ChangeRecord) -> WebhookMessage:
        """Create the webhook message announcing one change."""
        embed = Embed(
            author=EmbedAuthor(name=entity.name, url=self.page_url(entity)),
            title=f"Change: {change.field_name}",
            description=change.describe(),
            color=self.color,
        )
        return WebhookMessage(
            username=self.username,
            avatar_url=self.avatar_url,
            embeds=[embed],
        )

    def notify(self, entity: Modification, change: ChangeRecord) -> None:
        """
        Deliver one change notification.

        Args:
            entity: Snapshot the change belongs to
            change: The detected change

        Raises:
            DeliveryError: The webhook answered with anything but 200/204, or was unreachable
        """
        payload = self.build_message(entity, change).to_payload()

        try:
            response = self.client.post(
                self.webhook_url,
                json=payload,
                headers={"Content-Type": "application/json"},
            )
        except httpx.HTTPError as e:
            raise DeliveryError(change.field_name, str(e)) from e

        if response.status_code not in SUCCESS_STATUS_CODES:
            status = f"{response.status_code} {response.reason_phrase}".strip()
            self.logger.warning(
                "Webhook rejected notification",
                field=change.field_name,
                status_code=response.status_code,
                body=response.text[:200]
            )
            raise DeliveryError(change.field_name, status, response.status_code)

        self.logger.debug(
            "Notification delivered",
            field=change.field_name,
            status_code=response.status_code
        )

    def notify_all(self, entity: Modification, changes: List[ChangeRecord]) -> int:
        """
        Deliver one notification per change, sequentially.

        With FAIL_FAST the first failure is raised and later changes are not
        sent. With COLLECT every change is attempted and the failures are
        raised together afterwards.

        Returns:
            Number of notifications delivered

        Raises:
            DeliveryError: FAIL_FAST policy and a delivery failed
            DeliveryBatchError: COLLECT policy and at least one delivery failed
        """
        delivered = 0
        errors: List[DeliveryError] = []

        for change in changes:
            try:
                self.notify(entity, change)
            except DeliveryError as e:
                if self.policy == DeliveryPolicy.FAIL_FAST:
                    raise
                self.logger.error("Failed to deliver notification", field=change.field_name, error=str(e))
                errors.append(e)
                continue
            delivered += 1

        if errors:
            raise DeliveryBatchError(errors, attempted=len(changes))

        return delivered
