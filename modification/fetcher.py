"""
HTTP client for the client-store modification endpoint.
Retrieves the current snapshot and decodes it into a Modification.
"""

from typing import Dict, Optional

import httpx
import structlog
from pydantic import ValidationError

from .models import Modification, check_document_layout
from utilities.errors import FetchError, SnapshotDecodeError

logger = structlog.get_logger(__name__)


class ModificationFetcher:
    """
    Fetches modification snapshots from the client-store API.
    """

    def __init__(
        self,
        api_url: str,
        timeout: float = 30,
        headers: Optional[Dict[str, str]] = None,
        client: Optional[httpx.Client] = None,
    ):
        """
        Initialize the fetcher.

        Args:
            api_url: Endpoint template containing a {namespace} placeholder
            timeout: Request timeout in seconds
            headers: Extra request headers
            client: Pre-built HTTP client; one is created (and owned) when omitted
        """
        self.api_url = api_url
        self.logger = logger.bind(component="modification_fetcher")
        self._owns_client = client is None
        self.client = client or httpx.Client(
            timeout=timeout,
            headers=headers or {},
            follow_redirects=True,
        )

    def __enter__(self) -> "ModificationFetcher":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self.client.close()

    def build_url(self, subject_id: str) -> str:
        try:
            return self.api_url.format(namespace=subject_id)
        except (KeyError, IndexError, ValueError) as e:
            raise FetchError(f"invalid api url template {self.api_url!r}: {e!r}") from e

    def fetch(self, subject_id: str) -> Modification:
        """
        Retrieve the current snapshot of a modification.

        Args:
            subject_id: Namespace of the modification

        Returns:
            Decoded Modification

        Raises:
            FetchError: Network failure or non-success response
            SnapshotDecodeError: The body is not a modification document
            SchemaMismatchError: The document lacks schema fields
        """
        url = self.build_url(subject_id)
        self.logger.debug("Fetching modification", url=url)

        try:
            response = self.client.get(url)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = f"{e.response.status_code} {e.response.reason_phrase}".strip()
            raise FetchError(f"fetching {url} returned {status}") from e
        except httpx.HTTPError as e:
            raise FetchError(f"failed to fetch {url}: {e}") from e

        try:
            document = response.json()
        except ValueError as e:
            raise SnapshotDecodeError(f"response from {url} is not JSON: {e}") from e

        if not isinstance(document, dict):
            raise SnapshotDecodeError(f"response from {url} is not a JSON object")

        check_document_layout(document, f"response from {url}")

        try:
            modification = Modification.model_validate(document)
        except ValidationError as e:
            raise SnapshotDecodeError(f"invalid modification document from {url}: {e}") from e

        self.logger.debug(
            "Fetched modification",
            namespace=modification.namespace,
            version=modification.version_string
        )
        return modification
