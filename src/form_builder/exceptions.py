# form_builder/exceptions.py
# Base exception classes for the form builder

from typing import List, Optional


class FormBuilderError(Exception):
    """Base exception class for all form builder errors."""

    def __init__(self, message: str, error_type: str = "form_builder_error", original_error: Optional[Exception] = None):
        """
        Initialize the FormBuilderError.

        Args:
            message: Error message
            error_type: Type of error for categorization
            original_error: Original exception if this is a wrapped error
        """
        self.message = message
        self.error_type = error_type
        self.original_error = original_error
        super().__init__(self.message)


class SchemaError(FormBuilderError):
    """Raised when form schema data is invalid or cannot be parsed."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(message, error_type="schema_error", original_error=original_error)


class DerivedFieldCycleError(SchemaError):
    """Raised when derived fields depend on each other in a cycle."""

    def __init__(self, cycles: List[List[str]], message: Optional[str] = None):
        self.cycles = cycles
        if message is None:
            rendered = "; ".join(" -> ".join(cycle) for cycle in cycles)
            message = f"Derived fields form a dependency cycle: {rendered}"
        super().__init__(message)
        self.error_type = "derived_cycle"


class FormStorageError(FormBuilderError):
    """Raised by storage backends when a key cannot be read or written."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(message, error_type="storage_error", original_error=original_error)
