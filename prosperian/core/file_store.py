"""Local disk storage for uploaded CSV lists."""

import logging
import random
import shutil
import time
from pathlib import Path
from typing import BinaryIO, Union

logger = logging.getLogger(__name__)

MAX_UPLOAD_BYTES = 10 * 1024 * 1024


class FileStore:
    """Saves, streams and deletes files below a single root directory.

    Stored paths are relative to ``root`` so that database rows stay valid
    when the storage directory moves.
    """

    def __init__(self, root: Union[str, Path]) -> None:
        self.root = Path(root)

    def _resolve(self, path: str) -> Path:
        resolved = (self.root / Path(path).name).resolve()
        if resolved.parent != self.root.resolve():
            raise ValueError(f"path escapes storage root: {path}")
        return resolved

    def unique_name(self, original_name: str) -> str:
        original = Path(original_name)
        millis = int(time.time() * 1000)
        digits = random.randint(10_000_000, 99_999_999)
        return f"{original.stem}_{millis}_{digits}{original.suffix}"

    def save(self, stream: BinaryIO, original_name: str) -> str:
        self.root.mkdir(parents=True, exist_ok=True)
        name = self.unique_name(original_name)
        target = self.root / name
        with target.open("wb") as fh:
            shutil.copyfileobj(stream, fh)
        logger.info("Saved upload %s as %s", original_name, target)
        return name

    def open(self, path: str) -> BinaryIO:
        return self._resolve(path).open("rb")

    def exists(self, path: str) -> bool:
        try:
            return self._resolve(path).is_file()
        except ValueError:
            return False

    def delete(self, path: str) -> bool:
        target = self._resolve(path)
        if not target.exists():
            return False
        target.unlink()
        logger.info("Deleted stored file %s", target)
        return True

    def count_rows(self, path: str) -> int:
        """Number of non-blank lines minus the header."""
        with self._resolve(path).open("r", encoding="utf-8", errors="replace") as fh:
            lines = sum(1 for line in fh if line.strip())
        return max(0, lines - 1)
