"""rawstore: local CSV file-record store with search, sort and pagination."""

__version__ = "0.1.0"

from rawstore.config import StoreConfig
from rawstore.errors import (
    DuplicateNameError,
    MigrationError,
    RawStoreError,
    StorageUnavailableError,
    StoreNotFoundError,
    TransactionError,
    UnknownSortFieldError,
    ValidationError,
)
from rawstore.lookup import fetch_file_by_name, get_keys
from rawstore.parsing import parse_csv
from rawstore.query import FileQuery, fetch_files, filter_files, paginate_files, sort_files
from rawstore.storage import StoreHandle, open_store
from rawstore.types import IncomingFile, StoredFileRecord
from rawstore.upload import upload_file, upload_files, validate_upload

__all__ = [
    "__version__",
    "StoreConfig",
    "StoredFileRecord",
    "IncomingFile",
    "StoreHandle",
    "open_store",
    "upload_file",
    "upload_files",
    "validate_upload",
    "fetch_files",
    "filter_files",
    "sort_files",
    "paginate_files",
    "FileQuery",
    "get_keys",
    "fetch_file_by_name",
    "parse_csv",
    "RawStoreError",
    "ValidationError",
    "StorageUnavailableError",
    "StoreNotFoundError",
    "TransactionError",
    "DuplicateNameError",
    "UnknownSortFieldError",
    "MigrationError",
]
