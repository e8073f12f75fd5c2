"""Record types: the stored file record and the file a caller uploads."""

from __future__ import annotations

import mimetypes
import os
import time
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_MIME_TYPE = "text/csv"


def _now_ms() -> int:
    return int(time.time() * 1000)


class StoredFileRecord(BaseModel):
    """One uploaded file as persisted in an object store.

    ``name`` is the primary key and is also covered by the unique ``name``
    index. ``annotation_count`` starts at 0 and is never changed here.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: str
    size: int
    mime_type: str = Field(default=DEFAULT_MIME_TYPE, alias="mimeType")
    last_modified: int = Field(alias="lastModifiedTimestamp")
    raw_data: bytes = Field(alias="rawData", repr=False)
    annotation_count: int = Field(default=0, alias="annotationCount")

    @property
    def last_modified_at(self) -> datetime:
        return datetime.fromtimestamp(self.last_modified / 1000.0, tz=timezone.utc)

    def text(self) -> str:
        """Decode the payload as UTF-8, replacing undecodable bytes."""
        return self.raw_data.decode("utf-8", errors="replace")

    def summary(self) -> dict[str, Any]:
        """Metadata without the payload, keyed by export aliases."""
        return self.model_dump(by_alias=True, exclude={"raw_data"})


class IncomingFile(BaseModel):
    """A file handed to the upload pipeline."""

    model_config = ConfigDict(frozen=True)

    name: str
    data: bytes = Field(repr=False)
    mime_type: str | None = None
    last_modified: int = Field(default_factory=_now_ms)

    @property
    def size(self) -> int:
        return len(self.data)

    @classmethod
    def from_path(cls, path: str | os.PathLike[str]) -> IncomingFile:
        """Read a file from disk, taking the name, mime type and mtime from the filesystem."""
        path = os.fspath(path)
        with open(path, "rb") as f:
            data = f.read()
        guessed, _ = mimetypes.guess_type(path)
        return cls(
            name=os.path.basename(path),
            data=data,
            mime_type=guessed,
            last_modified=int(os.stat(path).st_mtime * 1000),
        )
