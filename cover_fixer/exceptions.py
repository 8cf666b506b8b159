"""
Custom exception hierarchy for the cover fixer.

Only ConfigError (and CacheError at the very end of a run) is allowed to
stop a run. Everything else is per-file and ends up as an outcome record.
"""


class CoverFixerError(Exception):
    """Base exception for all cover fixer errors."""
    pass


class ConfigError(CoverFixerError):
    """Raised when the scan root is missing or not a directory."""
    pass


class NoCoverError(CoverFixerError):
    """Raised when a file has no embedded picture. Expected, not a failure."""
    pass


class ContainerError(CoverFixerError):
    """Raised when the audio container cannot be read."""
    pass


class ClassifyError(CoverFixerError):
    """Raised when cover bytes cannot be probed."""
    pass


class NormalizeError(CoverFixerError):
    """Raised when a cover cannot be re-encoded into an acceptable image."""
    pass


class ReplaceError(CoverFixerError):
    """
    Raised when the embedded picture could not be swapped.

    `partial` is True when the old picture is gone but the new one never
    made it into the file.
    """

    def __init__(self, message: str, partial: bool = False):
        super().__init__(message)
        self.partial = partial


class CacheError(CoverFixerError):
    """Raised when the cache file cannot be written."""
    pass
