"""Upload pipeline: validate an incoming file, resolve name collisions, write the record.

The existence check and the write run in separate transactions, so two writers
uploading the same name can both see it as free. The loser of that race hits
the unique ``name`` index on write and retries with a fresh suffix, at most
``config.collision_retries`` times.
"""

from __future__ import annotations

import logging
import random
import re
import string
from typing import Iterable

from rawstore.config import StoreConfig
from rawstore.errors import DuplicateNameError, ValidationError
from rawstore.storage import READONLY, READWRITE, StoreHandle, open_store
from rawstore.types import DEFAULT_MIME_TYPE, IncomingFile, StoredFileRecord

logger = logging.getLogger(__name__)

BASE36_ALPHABET = string.digits + string.ascii_lowercase

_CSV_EXTENSION_RE = re.compile(r"\.csv$", re.IGNORECASE)
_CSV_LINE_RE = re.compile(r".+,[^,]+")
_LINE_BREAK_RE = re.compile(r"\r?\n")


def collision_suffix(length: int = 3) -> str:
    """Random lowercase base-36 token."""
    return "".join(random.choices(BASE36_ALPHABET, k=length))


def is_csv_content(text: str) -> bool:
    """True when every non-blank line has a comma between a value and more non-comma text."""
    # Rows end at \n or \r\n only; other control characters stay inside a row.
    lines = [line for line in _LINE_BREAK_RE.split(text) if line.strip()]
    if not lines:
        return False
    return all(_CSV_LINE_RE.match(line) for line in lines)


def validate_upload(file: IncomingFile | None, config: StoreConfig) -> None:
    """Raise ValidationError for the first failed check, in pipeline order."""
    if file is None:
        raise ValidationError("missing-file")
    if file.size > config.max_upload_bytes:
        raise ValidationError(
            "oversized", f"{file.size} bytes > {config.max_upload_bytes} bytes"
        )
    if not _CSV_EXTENSION_RE.search(file.name):
        raise ValidationError("bad-extension", file.name)
    if not is_csv_content(file.data.decode("utf-8", errors="replace")):
        raise ValidationError("bad-content", file.name)


def _resolve_name(handle: StoreHandle, name: str, config: StoreConfig) -> str:
    with handle.transaction(READONLY):
        existing = handle.get_by_index("name", name)
    if existing is None:
        return name
    renamed = f"{name}-{collision_suffix(config.suffix_length)}"
    logger.info("File '%s' already exists; storing as '%s'", name, renamed)
    return renamed


def _build_record(file: IncomingFile, name: str) -> StoredFileRecord:
    return StoredFileRecord(
        name=name,
        size=file.size,
        mime_type=file.mime_type or DEFAULT_MIME_TYPE,
        last_modified=file.last_modified,
        raw_data=file.data,
        annotation_count=0,
    )


def upload_file(file: IncomingFile | None, config: StoreConfig) -> StoredFileRecord:
    """Validate ``file`` and persist it, returning the stored record.

    The returned record carries the final name, which differs from
    ``file.name`` when that name was already taken.
    """
    validate_upload(file, config)
    assert file is not None

    with open_store(config) as handle:
        name = _resolve_name(handle, file.name, config)
        attempts = 0
        while True:
            attempts += 1
            record = _build_record(file, name)
            try:
                with handle.transaction(READWRITE):
                    handle.put(name, record)
                break
            except DuplicateNameError:
                if attempts > config.collision_retries:
                    raise DuplicateNameError(name, attempts) from None
                retry_name = f"{file.name}-{collision_suffix(config.suffix_length)}"
                logger.warning(
                    "Name '%s' was taken before the write committed; retrying as '%s'",
                    name,
                    retry_name,
                )
                name = retry_name

    logger.info("Uploaded '%s' (%d bytes) to store '%s'", record.name, record.size, config.store_name)
    return record


def upload_files(files: Iterable[IncomingFile], config: StoreConfig) -> list[StoredFileRecord]:
    """Upload files one after another; stops at the first failure."""
    return [upload_file(f, config) for f in files]
