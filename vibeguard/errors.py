"""
Exception hierarchy for the Vibe-Guard scanner.

Fatal scan errors stop a scan before any result is produced. Skip errors
describe a single file that cannot be scanned; the scanner records them and
moves on.
"""


class VibeGuardError(Exception):
    """Base exception for all scanner errors."""
    pass


class ScanError(VibeGuardError):
    """Raised when a scan cannot produce any result."""
    pass


class PathNotFound(ScanError):
    """Raised when the scan target does not exist."""

    def __init__(self, path):
        super().__init__(f"Target path does not exist: {path}")
        self.path = path


class InvalidTargetType(ScanError):
    """Raised when the scan target is neither a file nor a directory."""

    def __init__(self, path):
        super().__init__(f"Target path is neither a file nor a directory: {path}")
        self.path = path


class DirectoryEnumerationError(ScanError):
    """Raised when walking the target directory fails."""
    pass


class FatalSingleFileReadError(ScanError):
    """Raised when the only requested file cannot be read."""
    pass


class ConfigurationError(VibeGuardError):
    """Raised when the configuration file is invalid."""
    pass


class SkipFile(VibeGuardError):
    """Raised when a single file must be skipped."""

    reason = "skipped"

    def __init__(self, path, detail=""):
        super().__init__(f"{path}: {detail}" if detail else str(path))
        self.path = path
        self.detail = detail


class FileTooLarge(SkipFile):
    """The file exceeds the size limit."""

    reason = "too_large"


class BinaryFile(SkipFile):
    """The file content looks binary."""

    reason = "binary"


class UnreadableFile(SkipFile):
    """The file could not be opened or read."""

    reason = "unreadable"
