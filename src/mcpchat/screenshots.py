"""
On-disk store for images extracted from tool output.

Files are named ``screenshot-<timestamp>.<ext>`` where the timestamp is the
UTC save time in ISO format with ``:`` and ``.`` replaced by ``-``.
"""

from __future__ import annotations

import base64
import binascii
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

logger = logging.getLogger(__name__)

_PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
_IMAGE_SUFFIXES = {".jpg", ".jpeg", ".png"}


@dataclass(frozen=True)
class ScreenshotInfo:
    name: str
    path: Path
    size: int
    created: datetime


class ScreenshotStore:
    """Saves base64 images into a downloads directory and lists them.

    Attributes:
        directory: Target directory; created on the first save.
    """

    def __init__(self, directory: str | Path = "downloads") -> None:
        self.directory = Path(directory)

    @staticmethod
    def _filename(image: bytes, now: datetime) -> str:
        timestamp = now.isoformat().replace(":", "-").replace(".", "-")
        suffix = "png" if image.startswith(_PNG_SIGNATURE) else "jpg"
        return f"screenshot-{timestamp}.{suffix}"

    def save(self, image_data: str, now: datetime | None = None) -> Path:
        """Decode *image_data* and write it to a new file.

        Raises:
            ValueError: If *image_data* is not valid base64.
        """
        try:
            image = base64.b64decode(image_data, validate=True)
        except binascii.Error as exc:
            raise ValueError(f"Image data is not valid base64: {exc}") from exc

        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.directory / self._filename(image, now or datetime.now(timezone.utc))
        path.write_bytes(image)
        logger.info("Saved screenshot to: %s", path)
        return path

    def list(self) -> list[ScreenshotInfo]:
        """Return saved images, newest first."""
        if not self.directory.is_dir():
            return []
        shots = []
        for path in self.directory.iterdir():
            if not path.is_file() or path.suffix.lower() not in _IMAGE_SUFFIXES:
                continue
            stat = path.stat()
            shots.append(
                ScreenshotInfo(
                    name=path.name,
                    path=path,
                    size=stat.st_size,
                    created=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
                )
            )
        return sorted(shots, key=lambda shot: (shot.created, shot.name), reverse=True)

    def resolve(self, name: str) -> Path:
        """Return the path of the saved image *name*.

        Raises:
            ValueError: If *name* would point outside the store.
            FileNotFoundError: If no such image exists.
        """
        path = self.directory / name
        if Path(name).name != name or path.resolve().parent != self.directory.resolve():
            raise ValueError(f"Invalid screenshot name: {name!r}")
        if not path.is_file():
            raise FileNotFoundError(f"Screenshot not found: {name}")
        return path
