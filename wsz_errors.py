"""Errors raised while reading, rendering or writing skins.

Every failure that aborts a run is a WszError; the command line prints the
class name followed by the message and exits non-zero.
"""


class WszError(Exception):
    """Base class for all skin tool failures."""

    @property
    def kind(self):
        return type(self).__name__


class CorruptAsset(WszError):
    """A bitmap (or other asset) could not be decoded."""

    def __init__(self, name, reason):
        self.name = name
        self.reason = reason
        super().__init__(f"{name}: {reason}")


class MissingRequiredAsset(WszError):
    """A sheet with no fallback is absent from the archive."""

    def __init__(self, name):
        self.name = name
        super().__init__(f"{name} not found in skin (at any path)")


class RegionOutOfBounds(WszError):
    """Catalog or layout geometry disagrees with a bitmap or the canvas.

    This is always a defect in the tables, never something a skin author
    can cause.
    """

    def __init__(self, semantic_id, detail):
        self.semantic_id = semantic_id
        self.detail = detail
        super().__init__(f"{semantic_id}: {detail}")


class InvalidFormat(WszError):
    """A skin text file (pledit.txt, viscolor.txt, region.txt) is malformed."""

    def __init__(self, name, line, error):
        self.name = name
        self.line = line
        self.error = error
        super().__init__(f"{name}: invalid format on line {line}: {error}")


class ArchiveReadError(WszError):
    def __init__(self, path, reason):
        self.path = path
        self.reason = reason
        super().__init__(f"cannot read {path}: {reason}")


class ArchiveWriteError(WszError):
    def __init__(self, path, reason):
        self.path = path
        self.reason = reason
        super().__init__(f"cannot write {path}: {reason}")
