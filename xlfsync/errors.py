from typing import Optional


class XlfSyncError(Exception):
    """Base class for hard errors that abort the current operation."""


class InvalidXliffError(XlfSyncError, ValueError):
    """
    Raised when a document cannot be parsed.
    offset is the byte offset of the offending content in the persisted file.
    """

    def __init__(self, message: str, offset: int = 0, file_name: Optional[str] = None):
        self.offset = offset
        self.file_name = file_name
        where = f" in {file_name}" if file_name else ""
        super().__init__(f"The xml{where} is invalid at byte offset {offset}: {message}")


class PreconditionError(XlfSyncError, RuntimeError):
    """Raised when an operation is invoked in a state where it cannot run (wrong mode, missing files)."""
