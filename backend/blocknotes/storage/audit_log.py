"""Per-user audit trail of account and note changes.

Secondary to the database: an entry is written only after the change it
describes has been committed, and a failed write never undoes or hides that
change. Entries record block counts, never block contents.
"""
from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from blocknotes.storage.notes_store import Note

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = Path(__file__).resolve().parents[3] / "data"

ACTIONS = frozenset({"USER_REGISTERED", "NOTE_CREATED", "NOTE_UPDATED", "NOTE_DELETED"})


def data_dir() -> Path:
    return Path(os.getenv("APP_DATA_DIR", str(DEFAULT_DATA_DIR)))


@dataclass(frozen=True)
class AuditEntry:
    action: str
    user_id: str
    note_id: Optional[str] = None
    text_blocks: int = 0
    image_blocks: int = 0
    ts: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def __post_init__(self):
        if self.action not in ACTIONS:
            raise ValueError(f"Unknown audit action {self.action!r}")

    @classmethod
    def for_note(cls, action: str, note: Note) -> "AuditEntry":
        kinds = [block.get("type") for block in note.content]
        return cls(
            action=action,
            user_id=note.owner_user_id,
            note_id=str(note.id),
            text_blocks=kinds.count("text"),
            image_blocks=kinds.count("image"),
        )


class AuditLog:
    def __init__(self, base_dir: Path):
        self.base_dir = base_dir

    def path_for(self, user_id: str) -> Path:
        if not user_id or any(ch in user_id for ch in ["/", "\\"]) or ".." in user_id:
            raise ValueError("Invalid user_id")
        return self.base_dir / "users" / user_id / "audit.log"

    def append(self, entry: AuditEntry) -> None:
        path = self.path_for(entry.user_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(asdict(entry), ensure_ascii=False) + "\n")

    def record(self, entry: AuditEntry) -> bool:
        """Append an entry; a filesystem failure is logged and reported as False."""
        try:
            self.append(entry)
        except OSError as exc:
            logger.warning("Could not write audit entry %s for %s: %s", entry.action, entry.user_id, exc)
            return False
        return True

    def entries(self, user_id: str) -> list[dict[str, Any]]:
        path = self.path_for(user_id)
        if not path.exists():
            return []
        return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines() if line.strip()]


def get_audit_log() -> AuditLog:
    # resolved per request so APP_DATA_DIR can change between tests
    return AuditLog(data_dir())
