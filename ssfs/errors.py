"""Exception hierarchy for the virtual disk and the file system built on it."""

from __future__ import annotations


class SsfsError(Exception):
    """Base class for every error raised by this package.

    Each concrete subclass carries a stable numeric ``code``.
    """

    code: int = 0
    default_message: str = "file system error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message if message is not None else self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class DiskError(SsfsError):
    """An error reported by the virtual disk layer."""

    default_message = "virtual disk error"


class NoDiskError(DiskError):
    """The disk is not open, is empty, or could not be opened."""

    code = -1
    default_message = "no disk"


class DiskAccessError(DiskError):
    """The disk image exists but may not be accessed."""

    code = -2
    default_message = "access to disk image denied"


class DiskNotFoundError(DiskError):
    """The disk image does not exist."""

    code = -3
    default_message = "disk image does not exist"


class SectorExceededError(DiskError):
    """A sector number lies beyond the end of the disk."""

    code = -4
    default_message = "sector number exceeds disk size"


class SectorIOError(DiskError):
    """A whole sector could not be read or written."""

    code = -5
    default_message = "sector could not be transferred"


class FileSystemError(SsfsError):
    """An error reported by the file system layer."""

    default_message = "file system error"


class DiskNotMountedError(FileSystemError):
    """No disk is mounted."""

    code = -100
    default_message = "disk not mounted"


class DiskAlreadyMountedError(FileSystemError):
    """A disk is already mounted."""

    code = -101
    default_message = "disk already mounted"


class InvalidInodeError(FileSystemError):
    """The inode number is out of range or the inode is not allocated."""

    code = -102
    default_message = "invalid inode number"


class OutOfSpaceError(FileSystemError):
    """No space is left on the disk."""

    code = -103
    default_message = "no space left on disk"


class OutOfInodesError(FileSystemError):
    """No free inode is left."""

    code = -104
    default_message = "no free inodes"


class CorruptDiskError(FileSystemError):
    """The disk image does not hold a valid file system."""

    code = -105
    default_message = "corrupt disk image"


class InvalidOffsetError(FileSystemError):
    """The file offset is negative or too large."""

    code = -106
    default_message = "invalid offset"