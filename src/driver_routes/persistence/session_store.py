"""File-based persistence for the driver's session token."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from ..config import settings

logger = logging.getLogger(__name__)


class SessionStore:
    """Thin wrapper around the data root for storing the opaque session token."""

    def __init__(self, root: Path | None = None, file_name: str | None = None) -> None:
        self.root = (root or settings.data_root).resolve()
        self.path = self.root / (file_name or settings.session_file_name)
        self._token: Optional[str] = None

    def save(self, token: str) -> None:
        self._token = token
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"token": token, "saved_at": datetime.now(timezone.utc).isoformat()}
        with self.path.open("w", encoding="utf-8") as handle:
            json.dump(payload, handle, ensure_ascii=False, indent=2)

    def load(self) -> Optional[str]:
        if self._token:
            return self._token
        if not self.path.exists():
            return None
        try:
            with self.path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except json.JSONDecodeError:
            logger.warning(f"Ignoring unreadable session file {self.path}")
            return None
        token = payload.get("token") if isinstance(payload, dict) else None
        self._token = token or None
        return self._token

    def clear(self) -> None:
        self._token = None
        self.path.unlink(missing_ok=True)
