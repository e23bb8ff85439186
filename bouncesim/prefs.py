"""
User preferences
================
Key/value string store for the two settings that outlive a session: the
collision elasticity (integer percent) and the "persist drawn path" flag.

Values live in a small JSON object under the user's home directory. A missing
or unreadable file, or a value that does not parse, falls back to the
default. Elasticity is usually dragged through many values in a row, so its
writes are throttled; the last pending value is written on `flush()`.
"""
import json
import logging
import os
import time
from pathlib import Path
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_PREFS_PATH: Path = Path.home() / ".bouncesim" / "prefs.json"

ELASTICITY_KEY = "collision_elasticity"
PERSIST_KEY = "persist"
DEFAULT_ELASTICITY_PERCENT = 100
WRITE_THROTTLE = 0.5  # seconds between elasticity writes


class Preferences:
    def __init__(
        self,
        path: Optional[os.PathLike] = None,
        throttle: float = WRITE_THROTTLE,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.path = Path(path) if path is not None else DEFAULT_PREFS_PATH
        self.throttle = throttle
        self._clock = clock
        self._values: Dict[str, str] = self._load()
        self._last_write: Optional[float] = None
        self._dirty = False

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Could not read preferences from '{self.path}': {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring malformed preferences file '{self.path}'")
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def _write(self) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(self._values, f, indent=2)
        except OSError as e:
            logger.warning(f"Could not save preferences to '{self.path}': {e}")
            return
        self._dirty = False
        self._last_write = self._clock()
        logger.debug(f"Preferences saved to {self.path}")

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self._values.get(key, default)

    def set(self, key: str, value: str) -> None:
        self._values[key] = str(value)
        self._write()

    def set_throttled(self, key: str, value: str) -> None:
        """Store `value`, writing to disk at most once per throttle window."""
        self._values[key] = str(value)
        self._dirty = True
        now = self._clock()
        if self._last_write is None or now - self._last_write >= self.throttle:
            self._write()

    def flush(self) -> None:
        if self._dirty:
            self._write()

    close = flush

    # Typed accessors

    @property
    def elasticity_percent(self) -> int:
        raw = self.get(ELASTICITY_KEY, str(DEFAULT_ELASTICITY_PERCENT))
        try:
            return int(raw)
        except ValueError:
            logger.warning(f"Invalid {ELASTICITY_KEY} preference {raw!r}, using default")
            return DEFAULT_ELASTICITY_PERCENT

    @elasticity_percent.setter
    def elasticity_percent(self, percent: int) -> None:
        self.set_throttled(ELASTICITY_KEY, str(int(percent)))

    @property
    def elasticity(self) -> float:
        return self.elasticity_percent / 100

    @property
    def persist_path(self) -> bool:
        return self.get(PERSIST_KEY, "false") == "true"

    @persist_path.setter
    def persist_path(self, enabled: bool) -> None:
        self.set(PERSIST_KEY, "true" if enabled else "false")
