"""Exceptions raised by the import pipeline.

Only whole-file and infrastructure failures are exceptions. Per-record
and per-batch problems are accumulated as data on the candidates and on
the CommitResult.
"""


class ImportServiceError(Exception):
    """Base class for import pipeline errors."""


class FormatError(ImportServiceError):
    """The uploaded file cannot be read as a table with a header and data rows."""


class ReferenceDataError(ImportServiceError):
    """The reference catalog could not be loaded."""


class InvalidStateError(ImportServiceError):
    """An import session transition that is not allowed from its current state."""


class StorageError(ImportServiceError):
    """A persistence operation (duplicate lookup or batch insert) failed."""
