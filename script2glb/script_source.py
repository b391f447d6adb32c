"""
Read-only access to the configured script file
"""
import math
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from .models import (
    FileStats,
    ScriptChunkResponse,
    ScriptMetadata,
    ScriptStructure,
)

CLASS_NAME = re.compile(r"public\s+class\s+(\w+)")
METHOD = re.compile(
    r"^(?:(?:public|private|protected|internal|static|virtual|override|abstract|async)\s+)+"
    r"[\w<>\[\],.]+\s+(\w+)\s*\("
)
VARIABLE = re.compile(
    r"^(?:(?:public|private|protected|internal|static|readonly|const)\s+)+"
    r"[\w<>\[\],.]+\s+(\w+)\s*(?:=|;)"
)

METADATA_BYTES = 5000
STRUCTURE_BYTES = 10000


def _iso(timestamp: float) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).isoformat()


class ScriptSource:
    """
    Browses a single script file on disk

    The path is supplied by the caller; nothing here writes to it.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def stats(self) -> Optional[FileStats]:
        """File size and timestamps, or None if the file is missing"""
        try:
            st = self.path.stat()
        except OSError:
            return None
        return FileStats(
            size=st.st_size,
            created=_iso(st.st_ctime),
            modified=_iso(st.st_mtime),
        )

    def read_text(self) -> str:
        return self.path.read_text(encoding="utf-8", errors="replace")

    def read_range(self, start: int = 0, end: Optional[int] = None) -> str:
        """Decode bytes [start, end) of the file, clamped to its size"""
        size = self.path.stat().st_size
        start = min(max(start, 0), size)
        stop = size if end is None else min(max(end, start), size)

        with self.path.open("rb") as f:
            f.seek(start)
            data = f.read(stop - start)
        # A range may split a multi-byte character
        return data.decode("utf-8", errors="replace")

    def read_chunk(self, start: int = 0, end: Optional[int] = None,
                   chunk_size: int = 100000) -> ScriptChunkResponse:
        """
        Read one window of the file

        `end` caps the window at `start + chunk_size`; without it the
        window runs to `start + chunk_size` or the end of the file.
        """
        size = self.path.stat().st_size
        start = min(max(start, 0), size)
        chunk_end = start + chunk_size if end is None else min(end, start + chunk_size)
        chunk_end = min(max(chunk_end, start), size)

        return ScriptChunkResponse(
            content=self.read_range(start, chunk_end),
            start=start,
            end=chunk_end,
            totalSize=size,
            hasMore=chunk_end < size,
        )

    def metadata(self) -> Optional[ScriptMetadata]:
        """Header-level facts gathered from the first few kilobytes"""
        stats = self.stats()
        if stats is None:
            return None

        content = self.read_range(0, METADATA_BYTES)
        lines = content.split("\n")
        class_match = CLASS_NAME.search(content)

        return ScriptMetadata(
            **stats.model_dump(),
            fileName=self.path.name,
            firstLines=lines[:10],
            estimatedLines=math.ceil(stats.size / 80),
            className=class_match.group(1) if class_match else None,
            usingStatements=[
                line.strip() for line in lines if line.strip().startswith("using ")
            ],
        )

    def structure(self) -> ScriptStructure:
        """Outline of using statements, namespace, class, methods and fields"""
        lines = self.read_range(0, STRUCTURE_BYTES).split("\n")
        structure = ScriptStructure()

        for line in lines:
            trimmed = line.strip()

            if trimmed.startswith("using "):
                structure.usingStatements.append(trimmed)
            elif trimmed.startswith("namespace "):
                structure.namespace = trimmed[len("namespace "):].replace("{", "").strip()
            elif CLASS_NAME.search(trimmed):
                if structure.className is None:
                    structure.className = CLASS_NAME.search(trimmed).group(1)
            elif METHOD.match(trimmed):
                structure.methods.append(METHOD.match(trimmed).group(1))
            elif VARIABLE.match(trimmed):
                structure.variables.append(VARIABLE.match(trimmed).group(1))

        return structure

    def preview(self, line_count: int = 50) -> str:
        return "\n".join(self.read_range(0, STRUCTURE_BYTES).split("\n")[:line_count])
