"""Persistent "last selected simulator" preference."""

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .config import resolve_state_file
from .error_handler import ErrorCode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PreferenceRecord:
    """The single persisted preference document."""

    device_id: Optional[str] = None
    display_name: Optional[str] = None
    runtime_name: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not any(
            (self.device_id, self.display_name, self.runtime_name, self.updated_at)
        )

    def to_document(self) -> Dict[str, Any]:
        return {
            "udid": self.device_id,
            "name": self.display_name,
            "runtime": self.runtime_name,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "PreferenceRecord":
        def text(key: str) -> Optional[str]:
            value = document.get(key)
            return value if isinstance(value, str) else None

        return cls(
            device_id=text("udid"),
            display_name=text("name"),
            runtime_name=text("runtime"),
            updated_at=text("updatedAt"),
        )

    @classmethod
    def for_device(
        cls,
        device_id: str,
        display_name: Optional[str],
        runtime_name: Optional[str],
        updated_at: Optional[datetime] = None,
    ) -> "PreferenceRecord":
        stamp = updated_at or datetime.now(timezone.utc)
        return cls(
            device_id=device_id,
            display_name=display_name,
            runtime_name=runtime_name,
            updated_at=stamp.isoformat(),
        )


class PreferenceStore:
    """Reads and overwrites the preference file.

    Single-writer usage is assumed: there is no locking, and concurrent
    writers race with the last write winning. Each save replaces the whole
    file via a rename, so readers never observe a partial document.
    """

    def __init__(self, path: Union[str, Path, None] = None) -> None:
        self.path = Path(path) if path is not None else resolve_state_file()

    def load(self) -> PreferenceRecord:
        """Load the record; missing or unreadable storage yields an empty one."""
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return PreferenceRecord()
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(
                f"[{ErrorCode.STORAGE_UNREADABLE.value}] Cannot read {self.path}: {e}"
            )
            return PreferenceRecord()

        try:
            document = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(
                f"[{ErrorCode.STORAGE_UNREADABLE.value}] Ignoring corrupt preference file {self.path}: {e}"
            )
            return PreferenceRecord()

        if not isinstance(document, dict):
            logger.warning(
                f"[{ErrorCode.STORAGE_UNREADABLE.value}] Preference file {self.path} is not a JSON object"
            )
            return PreferenceRecord()

        return PreferenceRecord.from_document(document)

    def save(self, record: PreferenceRecord) -> None:
        """Replace the stored record, creating parent directories as needed."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(record.to_document(), indent=2) + "\n"

        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=str(self.path.parent)
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        logger.info(f"Saved preference {record.device_id} to {self.path}")
