from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path

"""FileSource: a named byte buffer handed to the pipeline by the caller.

The buffer is either already in memory (drag/drop style uploads, tests) or
read lazily from disk. Reading is the only step of per-file processing that
suspends.
"""

__all__ = [
    "FileSource",
]


@dataclass(frozen=True)
class FileSource:
    name: str  # 表示用ファイル名 (拡張子込み)
    path: Path | None = None
    data: bytes | None = None

    @classmethod
    def from_path(cls, path: Path) -> FileSource:
        return cls(name=path.name, path=path)

    @classmethod
    def from_bytes(cls, name: str, data: bytes) -> FileSource:
        return cls(name=name, data=data)

    async def read(self) -> bytes:
        """Return the raw buffer, reading from disk off the event loop if needed."""
        if self.data is not None:
            return self.data
        if self.path is None:
            raise ValueError(f"file source '{self.name}' has neither data nor path")
        return await asyncio.to_thread(self.path.read_bytes)
