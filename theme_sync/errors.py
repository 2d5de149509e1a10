"""Error types raised by the loader, assets and watcher.

Each error also derives from the closest builtin so callers can catch
either the package error or the standard one.
"""


class ThemeSyncError(Exception):
    """Base class for all Theme Sync errors."""


class PathNotDirectoryError(ThemeSyncError, NotADirectoryError):
    """The root path given for walking or loading is not a directory."""


class AssetIsDirectoryError(ThemeSyncError, IsADirectoryError):
    """A requested asset key resolves to a directory."""


class AssetNotFoundError(ThemeSyncError, FileNotFoundError):
    """A requested asset key does not exist."""


class EncodingError(ThemeSyncError, ValueError):
    """An asset attachment is not valid base64."""


class MalformedContentError(ThemeSyncError, ValueError):
    """A ``.json`` asset does not hold valid JSON."""


class WatchSetupError(ThemeSyncError, OSError):
    """A filesystem watch could not be registered."""
