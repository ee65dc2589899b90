"""
Pre-flight validation of uploaded resumes.

Checks run before any extraction strategy is attempted. Every rule is
evaluated so the user sees all problems at once.
"""

from typing import Iterable, Tuple

from .extractors import Document, ValidationResult

MIB = 1024 * 1024
DEFAULT_MAX_FILE_SIZE = 10 * MIB


class FileValidator:
    """Validates document type, extension and size."""

    def __init__(
        self,
        max_file_size: int = DEFAULT_MAX_FILE_SIZE,
        accepted_media_types: Iterable[str] = ("application/pdf",),
        accepted_extension: str = ".pdf",
    ):
        self.max_file_size = max_file_size
        self.accepted_media_types: Tuple[str, ...] = tuple(accepted_media_types)
        self.accepted_extension = accepted_extension.lower()

    @property
    def max_file_size(self) -> int:
        """Size ceiling in bytes."""
        return self._max_file_size

    @max_file_size.setter
    def max_file_size(self, size_in_bytes: int) -> None:
        if size_in_bytes <= 0:
            raise ValueError(f"max_file_size must be positive, got {size_in_bytes}")
        self._max_file_size = size_in_bytes

    @property
    def _format_name(self) -> str:
        return self.accepted_extension.lstrip(".").upper()

    def validate(self, document: Document) -> ValidationResult:
        """Validate a document against the current configuration."""
        errors = []
        warnings = []

        if document.media_type not in self.accepted_media_types:
            errors.append(f"File must be a {self._format_name} document")

        if not document.filename.lower().endswith(self.accepted_extension):
            errors.append(f"File must have a {self.accepted_extension} extension")

        if document.size > self.max_file_size:
            errors.append(f"File size must be less than {self.max_file_size / MIB:g}MB")

        if document.size == 0:
            errors.append("File cannot be empty")

        if document.size > self.max_file_size / 2:
            warnings.append("Large file detected - processing may take longer")

        return ValidationResult(
            is_valid=not errors,
            errors=errors,
            warnings=warnings,
            file_size=document.size,
            file_type=document.media_type,
        )
