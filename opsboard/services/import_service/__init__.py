"""Bulk incident import: read, normalize, validate, de-duplicate and commit."""

from .catalog import ReferenceCatalog, ReferenceEntry, resolve_references
from .committer import commit_batches, partition
from .constants import (
    ALLOWED_EXTENSIONS,
    DEFAULT_BATCH_SIZE,
    HEADER_ALIASES,
    MAX_ROWS,
    TEMPLATE_HEADERS,
)
from .duplicates import detect_duplicates
from .errors import (
    FormatError,
    ImportServiceError,
    InvalidStateError,
    ReferenceDataError,
    StorageError,
)
from .mapping import normalize_header, row_to_candidate, suggest_column_mapping
from .parsers import cell_to_text, get_file_extension, read_rows
from .processor import ImportPipeline, ImportState, record_import_audit
from .records import (
    BatchOutcome,
    CommitResult,
    ImportCandidate,
    ImportOutcome,
    ImportSummary,
    RawRow,
)
from .storage import BeanieIncidentStore, IncidentStore, load_reference_catalog
from .template import TemplateFormat, build_template, build_template_csv, build_template_xlsx
from .temporal import duration_minutes, parse_datetime
from .validator import validate_candidate, validate_rows

__all__ = [
    # Constants
    "ALLOWED_EXTENSIONS",
    "DEFAULT_BATCH_SIZE",
    "HEADER_ALIASES",
    "MAX_ROWS",
    "TEMPLATE_HEADERS",
    # Errors
    "FormatError",
    "ImportServiceError",
    "InvalidStateError",
    "ReferenceDataError",
    "StorageError",
    # Records
    "BatchOutcome",
    "CommitResult",
    "ImportCandidate",
    "ImportOutcome",
    "ImportSummary",
    "RawRow",
    # Reader
    "cell_to_text",
    "get_file_extension",
    "read_rows",
    # Normalizer
    "normalize_header",
    "row_to_candidate",
    "suggest_column_mapping",
    # Temporal parser
    "duration_minutes",
    "parse_datetime",
    # Resolver / validator
    "ReferenceCatalog",
    "ReferenceEntry",
    "resolve_references",
    "validate_candidate",
    "validate_rows",
    # Persistence, duplicates, batches
    "BeanieIncidentStore",
    "IncidentStore",
    "commit_batches",
    "detect_duplicates",
    "load_reference_catalog",
    "partition",
    # Session
    "ImportPipeline",
    "ImportState",
    "record_import_audit",
    # Template
    "TemplateFormat",
    "build_template",
    "build_template_csv",
    "build_template_xlsx",
]
