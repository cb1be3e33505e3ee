class AoError(Exception):
    """Base class for archive engine errors."""


class InvalidInputError(AoError):
    pass


# Filesystem
class IoReadError(AoError):
    pass


class IoWriteError(AoError):
    pass


# Archive structure
class BadArchiveError(AoError):
    pass


class PathTraversalError(AoError):
    pass


class ArchiveTooLargeError(AoError):
    """Raised when an archive exceeds the configured extraction limits."""
