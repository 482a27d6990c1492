"""Destinations for rendered artifacts."""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List

from cg_core.errors import SinkWriteError
from cg_core.templating import Artifact

logger = logging.getLogger(__name__)


class ArtifactSink(ABC):
    """Accepts named text artifacts.

    Writes to the same artifact path never interleave, even when tables are
    generated on several worker threads.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.Lock] = {}

    def _lock_for(self, path: str) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault(path, threading.Lock())

    def write(self, artifact: Artifact) -> str:
        with self._lock_for(artifact.path):
            location = self._write(artifact.path, artifact.render(), artifact)
        logger.debug("Wrote %s", location)
        return location

    @abstractmethod
    def _write(self, path: str, text: str, artifact: Artifact) -> str:
        """Store ``text`` under ``path`` and return where it ended up."""


class DirectorySink(ArtifactSink):
    """Writes each artifact to ``<root>/<kind>/<name>``."""

    def __init__(self, root: str, encoding: str = "utf-8") -> None:
        super().__init__()
        self.root = Path(root)
        self.encoding = encoding

    def _write(self, path: str, text: str, artifact: Artifact) -> str:
        target = self.root / path
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(text, encoding=self.encoding)
        except OSError as exc:
            raise SinkWriteError(path, str(exc), table=artifact.table, original_error=exc) from exc
        return str(target)


class MemorySink(ArtifactSink):
    """Keeps rendered artifacts in a dict; used by dry runs and tests."""

    def __init__(self) -> None:
        super().__init__()
        self.files: Dict[str, str] = {}

    def _write(self, path: str, text: str, artifact: Artifact) -> str:
        self.files[path] = text
        return path

    def paths(self) -> List[str]:
        return sorted(self.files)

    def text(self, path: str) -> str:
        return self.files[path]
