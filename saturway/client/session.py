"""Local persistence of the bearer token and UI preference flags."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

PREFERENCE_KEYS = ("onboarding_completed", "theme", "background", "language")


class SessionStore:
    """JSON file holding ``token`` plus preference flags. A missing or corrupt file reads as empty."""

    def __init__(self, path: Path | str):
        self.path = Path(path).expanduser()
        self._data: Dict[str, Any] = self._read()

    def _read(self) -> Dict[str, Any]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning("Ignoring unreadable session file %s", self.path)
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(self._data, indent=2, sort_keys=True), encoding="utf-8")
        tmp.replace(self.path)

    @property
    def token(self) -> Optional[str]:
        value = self._data.get("token")
        return value if isinstance(value, str) and value else None

    def set_token(self, token: str) -> None:
        self._data["token"] = token
        self._write()

    def clear_token(self) -> None:
        if self._data.pop("token", None) is not None:
            self._write()

    def get_preference(self, key: str, default: Any = None) -> Any:
        if key not in PREFERENCE_KEYS:
            raise KeyError(key)
        return self._data.get("preferences", {}).get(key, default)

    def set_preference(self, key: str, value: Any) -> None:
        if key not in PREFERENCE_KEYS:
            raise KeyError(key)
        self._data.setdefault("preferences", {})[key] = value
        self._write()
