"""
File-backed storage for the baseline snapshot.
Keeps the last observed modification as indented JSON between runs.
"""

import json
from pathlib import Path
from typing import Union

import structlog
from pydantic import ValidationError

from .models import Modification, check_document_layout
from utilities.errors import (
    BaselineDecodeError, BaselineNotFoundError, BaselineWriteError
)

logger = structlog.get_logger(__name__)


class SnapshotStore:
    """
    Loads and persists the baseline snapshot.
    """

    def __init__(self, path: Union[str, Path]):
        """
        Initialize the store.

        Args:
            path: Location of the baseline JSON file
        """
        self.path = Path(path)
        self.logger = logger.bind(component="snapshot_store", path=str(self.path))

    def exists(self) -> bool:
        return self.path.is_file()

    def load(self) -> Modification:
        """
        Load the baseline snapshot.

        Returns:
            The most recently saved Modification

        Raises:
            BaselineNotFoundError: No baseline has been saved yet
            BaselineDecodeError: The file is not a valid snapshot
            SchemaMismatchError: The file was written with a different field layout
        """
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                document = json.load(f)
        except FileNotFoundError:
            raise BaselineNotFoundError(self.path) from None
        except (OSError, ValueError) as e:
            raise BaselineDecodeError(f"failed to read baseline {self.path}: {e}") from e

        if not isinstance(document, dict):
            raise BaselineDecodeError(f"baseline {self.path} must contain a JSON object")

        check_document_layout(document, f"baseline {self.path}", exact=True)

        try:
            snapshot = Modification.model_validate(document)
        except ValidationError as e:
            raise BaselineDecodeError(f"invalid baseline {self.path}: {e}") from e

        self.logger.debug("Loaded baseline", namespace=snapshot.namespace)
        return snapshot

    def save(self, snapshot: Modification) -> None:
        """
        Overwrite the baseline with a snapshot.

        Args:
            snapshot: Snapshot to persist

        Raises:
            BaselineWriteError: The file could not be written
        """
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, 'w', encoding='utf-8') as f:
                json.dump(snapshot.model_dump(mode="json"), f, indent=2, ensure_ascii=False)
                f.write("\n")
        except OSError as e:
            raise BaselineWriteError(f"failed to write baseline {self.path}: {e}") from e

        self.logger.debug("Saved baseline", namespace=snapshot.namespace)

    def reset(self) -> bool:
        """Delete the baseline. Returns True if a file was removed."""
        try:
            self.path.unlink()
        except FileNotFoundError:
            return False
        self.logger.info("Baseline removed")
        return True
