"""
Output sink for generated bundles.

Wraps the result directory: wiping it before a run, writing page images
and the object graph document, and building the file:// URLs the
simulator loads them from.
"""

import logging
import shutil
from pathlib import Path

from deckbuilder.models.failure import EncodeError

logger = logging.getLogger(__name__)


class OutputSink:
    """Filesystem directory that receives one generated bundle."""

    def __init__(self, root: Path):
        self.root = Path(root)

    def remove_all(self) -> None:
        """Delete the directory and everything in it. Missing is fine."""
        if self.root.exists():
            shutil.rmtree(self.root)
            logger.info("Removed previous bundle at %s", self.root)

    def create_dir(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)

    def reset(self) -> None:
        """Remove and recreate the directory."""
        self.remove_all()
        self.create_dir()

    def path_for(self, name: str) -> Path:
        return self.root / name

    def write_file(self, name: str, data: bytes) -> Path:
        """
        Write `data` to `name` inside the directory.

        Raises:
            EncodeError: If the file cannot be written
        """
        path = self.path_for(name)
        try:
            path.write_bytes(data)
        except OSError as e:
            raise EncodeError(name, detail=str(e)) from e
        return path

    def url_for(self, name: str) -> str:
        """file:// URL of `name` using its absolute path."""
        return "file://" + str(self.path_for(name).resolve())
