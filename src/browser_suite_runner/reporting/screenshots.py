"""Persisting screenshots published by test programs."""

from __future__ import annotations

import base64
import logging
import re
from pathlib import Path
from typing import List

from ..models import ScreenshotBatch

LOGGER = logging.getLogger(__name__)

_RESERVED = re.compile(r'[\x00-\x1f\x7f<>:"/\\|?*]')
_WHITESPACE = re.compile(r"\s+")
_WINDOWS_RESERVED = {"con", "prn", "aux", "nul"}
_WINDOWS_RESERVED.update(f"com{i}" for i in range(1, 10))
_WINDOWS_RESERVED.update(f"lpt{i}" for i in range(1, 10))


def sanitize_name(name: str) -> str:
    """Turn a suite name into a safe, lower-case directory name."""

    cleaned = _RESERVED.sub("", name).strip()
    cleaned = _WHITESPACE.sub("_", cleaned).lower().strip(". ")
    if not cleaned or cleaned in _WINDOWS_RESERVED:
        cleaned = f"suite_{cleaned}" if cleaned else "suite"
    return cleaned[:255]


class ScreenshotWriter:
    """Writes ``<root>/<suite>/<index>.png`` for every shot in a batch."""

    def __init__(self, root: Path) -> None:
        self._root = root

    def write(self, batch: ScreenshotBatch) -> List[Path]:
        """Persist a batch; failures are logged and never raised."""

        if not batch.shots:
            return []
        directory = self._root / sanitize_name(batch.name)
        written: List[Path] = []
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            LOGGER.warning("Could not create screenshot directory %s: %s", directory, exc)
            return written
        for index, shot in enumerate(batch.shots):
            target = directory / f"{index}.png"
            try:
                target.write_bytes(base64.b64decode(shot, validate=True))
            except ValueError as exc:
                LOGGER.warning("Skipping undecodable screenshot %s: %s", target, exc)
                continue
            except OSError as exc:
                LOGGER.warning("Could not write screenshot %s: %s", target, exc)
                continue
            written.append(target)
        LOGGER.debug("Saved %d screenshot(s) for %s", len(written), batch.name)
        return written
