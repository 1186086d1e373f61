"""
Error kinds raised while completing a CA result.

All of them derive from CACompError so that callers (e.g. the KNIME nodes) can
translate any data consistency problem in one place.
"""


class CACompError(Exception):
    """Base class for CA result errors."""

    def __init__(self, message: str, field: str = None):
        super().__init__(message)
        self.field = field


class MissingInputError(CACompError, ValueError):
    """A required field of the CA result (or a required argument) is absent."""


class TypeMismatchError(CACompError, TypeError):
    """An argument is not the expected numeric matrix or CA result type."""


class AlignmentError(CACompError, ValueError):
    """
    Labels referenced by the CA result could not be found in the supplied matrix.
    @param labels: the offending labels, in the order they were looked up.
    """

    def __init__(self, message: str, field: str = None, labels=()):
        super().__init__(message, field)
        self.labels = list(labels)


class DimensionError(CACompError, ValueError):
    """Shape or length mismatch between D, the coordinate matrices and the row counts."""
