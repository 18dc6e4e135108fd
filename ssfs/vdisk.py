"""A disk image file accessed in fixed-size sectors."""

from __future__ import annotations

import errno
import os
from pathlib import Path
from typing import BinaryIO

from .errors import (
    DiskAccessError,
    DiskNotFoundError,
    NoDiskError,
    SectorExceededError,
    SectorIOError,
)

SECTOR_SIZE = 1024


class VirtualDisk:
    """An open disk image, read and written one whole sector at a time."""

    def __init__(self, name: str, fp: BinaryIO, size_in_sectors: int,
                 sector_size: int = SECTOR_SIZE) -> None:
        self.name = name
        self.sector_size = sector_size
        self.size_in_sectors = size_in_sectors
        self._fp: BinaryIO | None = fp

    @classmethod
    def open(cls, filename) -> "VirtualDisk":
        """Open an existing image for reading and writing."""
        name = os.fspath(filename)
        try:
            fp = open(name, "r+b")
        except PermissionError as exc:
            raise DiskAccessError(f"cannot access {name}") from exc
        except FileNotFoundError as exc:
            raise DiskNotFoundError(f"{name} does not exist") from exc
        except OSError as exc:
            if exc.errno == errno.EACCES:
                raise DiskAccessError(f"cannot access {name}") from exc
            raise NoDiskError(f"cannot open {name}") from exc
        fp.seek(0, os.SEEK_END)
        size_in_sectors = fp.tell() // SECTOR_SIZE
        if size_in_sectors == 0:
            fp.close()
            raise NoDiskError(f"{name} holds no complete sector")
        return cls(name, fp, size_in_sectors)

    @property
    def closed(self) -> bool:
        return self._fp is None

    def _seek(self, sector: int) -> BinaryIO:
        if self._fp is None:
            raise NoDiskError()
        if sector < 0 or sector >= self.size_in_sectors:
            raise SectorExceededError(
                f"sector {sector} outside 0..{self.size_in_sectors - 1}")
        self._fp.seek(sector * self.sector_size)
        return self._fp

    def read(self, sector: int) -> bytes:
        """Return the contents of one sector."""
        fp = self._seek(sector)
        data = fp.read(self.sector_size)
        if len(data) != self.sector_size:
            raise SectorIOError(f"short read of sector {sector}")
        return data

    def write(self, sector: int, data) -> None:
        """Overwrite one sector with exactly ``sector_size`` bytes."""
        data = bytes(data)
        if len(data) != self.sector_size:
            raise ValueError(
                f"sector data must be {self.sector_size} bytes, got {len(data)}")
        fp = self._seek(sector)
        try:
            written = fp.write(data)
        except OSError as exc:
            raise SectorIOError(f"cannot write sector {sector}") from exc
        if written != self.sector_size:
            raise SectorIOError(f"short write of sector {sector}")

    def sync(self) -> None:
        """Flush buffered writes through to the storage device."""
        if self._fp is None:
            raise NoDiskError()
        self._fp.flush()
        os.fsync(self._fp.fileno())

    def close(self) -> None:
        """Close the image; closing twice is harmless."""
        if self._fp is None:
            return
        self._fp.close()
        self._fp = None

    def __enter__(self) -> "VirtualDisk":
        return self

    def __exit__(self, *args) -> None:
        self.close()


def create_image(filename, blocks: int) -> Path:
    """Create a zero-filled image of ``blocks`` sectors and return its path."""
    if blocks < 0:
        raise ValueError("block count must not be negative")
    path = Path(filename)
    zeros = bytes(SECTOR_SIZE)
    with open(path, "wb") as fp:
        for _ in range(blocks):
            fp.write(zeros)
    return path