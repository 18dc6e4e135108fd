"""An inode-based file system stored on a virtual disk image."""

from __future__ import annotations

import os
from collections.abc import Iterator
from pathlib import Path

from .errors import (
    CorruptDiskError,
    DiskAlreadyMountedError,
    DiskNotMountedError,
    InvalidInodeError,
    InvalidOffsetError,
    OutOfInodesError,
    OutOfSpaceError,
    SsfsError,
)
from .layout import (
    BLOCK_SIZE,
    DIRECT_LIMIT,
    DOUBLE_INDIRECT_LIMIT,
    INDIRECT_LIMIT,
    INODE_SIZE,
    INODES_PER_BLOCK,
    POINTERS_PER_BLOCK,
    Inode,
    Superblock,
    inode_location,
    pack_pointers,
    unpack_pointers,
)
from .vdisk import VirtualDisk

_ZERO_BLOCK = bytes(BLOCK_SIZE)

# Images currently mounted by some FileSystem in this process.
_mounted_images: set[Path] = set()


def _image_key(disk_name) -> Path:
    return Path(os.fspath(disk_name)).resolve()


def format_disk(disk_name, inodes: int) -> Superblock:
    """Write an empty file system with room for ``inodes`` files to an image.

    The image must already exist; its size fixes the number of blocks.
    An image that is mounted cannot be formatted.
    """
    if _image_key(disk_name) in _mounted_images:
        raise DiskAlreadyMountedError(f"{os.fspath(disk_name)} is mounted")
    inodes = max(inodes, 1)
    num_inode_blocks = max(-(-inodes // INODES_PER_BLOCK), 1)

    with VirtualDisk.open(disk_name) as disk:
        total_blocks = disk.size_in_sectors
        # The superblock, the inode table and at least one data block.
        if num_inode_blocks + 1 >= total_blocks:
            raise OutOfSpaceError(
                f"{total_blocks} blocks cannot hold {num_inode_blocks} "
                "inode blocks and any data")
        superblock = Superblock(num_blocks=total_blocks,
                                num_inode_blocks=num_inode_blocks)
        disk.write(0, superblock.pack())
        for block in range(1, num_inode_blocks + 1):
            disk.write(block, _ZERO_BLOCK)
        disk.sync()
    return superblock


def _iter_inodes(disk: VirtualDisk, superblock: Superblock) -> Iterator[Inode]:
    for block in range(1, superblock.first_data_block):
        raw = disk.read(block)
        for start in range(0, BLOCK_SIZE, INODE_SIZE):
            yield Inode.unpack(raw[start:start + INODE_SIZE])


def _mark(bitmap: list[bool], block: int) -> None:
    if block >= len(bitmap):
        raise CorruptDiskError(f"block pointer {block} beyond end of disk")
    bitmap[block] = True


def _build_bitmap(disk: VirtualDisk, superblock: Superblock) -> list[bool]:
    bitmap = [False] * superblock.num_blocks
    for block in range(superblock.first_data_block):
        _mark(bitmap, block)

    def mark_pointer_block(block: int) -> list[int]:
        _mark(bitmap, block)
        pointers = unpack_pointers(disk.read(block))
        for pointer in pointers:
            if pointer:
                _mark(bitmap, pointer)
        return pointers

    for inode in _iter_inodes(disk, superblock):
        if not inode.valid:
            continue
        for pointer in inode.direct_blocks:
            if pointer:
                _mark(bitmap, pointer)
        if inode.indirect_block:
            mark_pointer_block(inode.indirect_block)
        if inode.double_indirect_block:
            for pointer in mark_pointer_block(inode.double_indirect_block):
                if pointer:
                    mark_pointer_block(pointer)
    return bitmap


class FileSystem:
    """A mountable file system whose files are addressed by inode number."""

    def __init__(self) -> None:
        self._disk: VirtualDisk | None = None
        self._superblock: Superblock | None = None
        self._bitmap: list[bool] = []
        self._disk_name: str | None = None
        self._key: Path | None = None

    # ----- state -------------------------------------------------------

    @property
    def mounted(self) -> bool:
        return self._disk is not None

    @property
    def disk_name(self) -> str | None:
        return self._disk_name

    @property
    def superblock(self) -> Superblock:
        self._require_disk()
        assert self._superblock is not None
        return self._superblock

    @property
    def num_inodes(self) -> int:
        return self.superblock.num_inodes

    @property
    def free_blocks(self) -> int:
        """Number of data blocks not in use."""
        first = self.superblock.first_data_block
        return sum(1 for used in self._bitmap[first:] if not used)

    # ----- mounting ----------------------------------------------------

    def mount(self, disk_name) -> None:
        """Open a formatted image and rebuild the free-block map."""
        if self._disk is not None:
            raise DiskAlreadyMountedError(f"{self._disk_name} is mounted")
        key = _image_key(disk_name)
        if key in _mounted_images:
            raise DiskAlreadyMountedError(f"{os.fspath(disk_name)} is mounted")
        disk = VirtualDisk.open(disk_name)
        try:
            superblock = Superblock.unpack(disk.read(0))
            if not superblock.is_valid():
                raise CorruptDiskError(
                    f"{os.fspath(disk_name)} holds no file system")
            bitmap = _build_bitmap(disk, superblock)
        except BaseException:
            disk.close()
            raise
        self._disk = disk
        self._superblock = superblock
        self._bitmap = bitmap
        self._disk_name = os.fspath(disk_name)
        self._key = key
        _mounted_images.add(key)

    def unmount(self) -> None:
        """Flush the image and release it, even if flushing fails."""
        disk = self._require_disk()
        try:
            disk.sync()
        finally:
            disk.close()
            if self._key is not None:
                _mounted_images.discard(self._key)
            self._disk = None
            self._superblock = None
            self._bitmap = []
            self._disk_name = None
            self._key = None

    def __enter__(self) -> "FileSystem":
        return self

    def __exit__(self, *args) -> None:
        if self.mounted:
            self.unmount()

    # ----- files -------------------------------------------------------

    def create(self) -> int:
        """Allocate the lowest free inode and return its number."""
        self._require_disk()
        for inode_num in range(self.num_inodes):
            if not self._read_inode(inode_num).valid:
                self._write_inode(inode_num, Inode.cleared())
                return inode_num
        raise OutOfInodesError()

    def delete(self, inode_num: int) -> None:
        """Free a file's inode and every block it references."""
        disk = self._require_disk()
        inode = self._read_allocated(inode_num)

        for index, pointer in enumerate(inode.direct_blocks):
            if pointer:
                self._free_block(pointer)
                inode.direct_blocks[index] = 0

        if inode.indirect_block:
            for pointer in unpack_pointers(disk.read(inode.indirect_block)):
                if pointer:
                    self._free_block(pointer)
            self._free_block(inode.indirect_block)
            inode.indirect_block = 0

        if inode.double_indirect_block:
            outer = unpack_pointers(disk.read(inode.double_indirect_block))
            for indirect in outer:
                if not indirect:
                    continue
                for pointer in unpack_pointers(disk.read(indirect)):
                    if pointer:
                        self._free_block(pointer)
                self._free_block(indirect)
            self._free_block(inode.double_indirect_block)
            inode.double_indirect_block = 0

        inode.valid = False
        inode.size = 0
        self._write_inode(inode_num, inode)

    def stat(self, inode_num: int) -> int:
        """Return the size of a file in bytes."""
        self._require_disk()
        return self._read_allocated(inode_num).size

    def read(self, inode_num: int, length: int, offset: int) -> bytes:
        """Return up to ``length`` bytes of a file starting at ``offset``."""
        disk = self._require_disk()
        inode = self._read_allocated(inode_num)
        if offset < 0 or offset >= inode.size:
            return b""
        wanted = min(inode.size - offset, length)
        if wanted <= 0:
            return b""

        result = bytearray()
        position = offset
        while len(result) < wanted:
            block_offset = position % BLOCK_SIZE
            try:
                block_num = self._block_for_offset(inode, position,
                                                   allocate=False)
            except SsfsError:
                break
            if block_num <= 0:
                break
            try:
                block = disk.read(block_num)
            except SsfsError:
                if result:
                    return bytes(result)
                raise
            count = min(BLOCK_SIZE - block_offset, wanted - len(result))
            result += block[block_offset:block_offset + count]
            position += count
        return bytes(result)

    def write(self, inode_num: int, data, offset: int) -> int:
        """Write ``data`` at ``offset`` and return the number of bytes written.

        Writing past the end of the file fills the gap with zeros. When
        space runs out part way, the bytes already written are kept and
        their count returned.
        """
        disk = self._require_disk()
        inode = self._read_allocated(inode_num)
        data = bytes(data)
        if offset < 0:
            raise InvalidOffsetError(f"offset {offset} is negative")

        if offset > inode.size:
            self._zero_fill(inode_num, inode, offset)
            inode.size = offset

        written = 0
        position = offset
        while written < len(data):
            block_offset = position % BLOCK_SIZE
            count = min(BLOCK_SIZE - block_offset, len(data) - written)
            chunk = data[written:written + count]
            try:
                block_num = self._block_for_offset(inode, position,
                                                   allocate=True)
                if count < BLOCK_SIZE:
                    block = bytearray(disk.read(block_num))
                    block[block_offset:block_offset + count] = chunk
                else:
                    block = chunk
                disk.write(block_num, block)
            except SsfsError:
                if written == 0:
                    raise
                self._extend_size(inode_num, inode, position)
                return written
            written += count
            position += count

        self._extend_size(inode_num, inode, position)
        return written

    # ----- helpers -----------------------------------------------------

    def _require_disk(self) -> VirtualDisk:
        if self._disk is None:
            raise DiskNotMountedError()
        return self._disk

    def _check_inode_number(self, inode_num: int) -> None:
        if not 0 <= inode_num < self.num_inodes:
            raise InvalidInodeError(f"inode {inode_num} out of range")

    def _read_inode(self, inode_num: int) -> Inode:
        disk = self._require_disk()
        self._check_inode_number(inode_num)
        block, start = inode_location(inode_num)
        raw = disk.read(block)
        return Inode.unpack(raw[start:start + INODE_SIZE])

    def _write_inode(self, inode_num: int, inode: Inode) -> None:
        disk = self._require_disk()
        self._check_inode_number(inode_num)
        block, start = inode_location(inode_num)
        raw = bytearray(disk.read(block))
        raw[start:start + INODE_SIZE] = inode.pack()
        disk.write(block, raw)

    def _read_allocated(self, inode_num: int) -> Inode:
        self._check_inode_number(inode_num)
        inode = self._read_inode(inode_num)
        if not inode.valid:
            raise InvalidInodeError(f"inode {inode_num} is not allocated")
        return inode

    def _extend_size(self, inode_num: int, inode: Inode, position: int) -> None:
        """Grow the recorded size to ``position``; a failed update is ignored."""
        if position > inode.size:
            inode.size = position
            try:
                self._write_inode(inode_num, inode)
            except SsfsError:
                pass

    def _zero_fill(self, inode_num: int, inode: Inode, end: int) -> None:
        disk = self._require_disk()
        position = inode.size
        while position < end:
            block_offset = position % BLOCK_SIZE
            count = min(BLOCK_SIZE - block_offset, end - position)
            try:
                block_num = self._block_for_offset(inode, position,
                                                   allocate=True)
                if count < BLOCK_SIZE:
                    block = bytearray(disk.read(block_num))
                    block[block_offset:block_offset + count] = bytes(count)
                else:
                    block = _ZERO_BLOCK
                disk.write(block_num, block)
            except SsfsError:
                inode.size = max(position, inode.size)
                try:
                    self._write_inode(inode_num, inode)
                except SsfsError:
                    pass
                raise
            position += count

    def _find_free_block(self) -> int:
        self._require_disk()
        first = self.superblock.first_data_block
        for block in range(first, len(self._bitmap)):
            if not self._bitmap[block]:
                self._bitmap[block] = True
                return block
        raise OutOfSpaceError()

    def _free_block(self, block: int) -> None:
        if self._disk is not None and 0 < block < len(self._bitmap):
            self._bitmap[block] = False

    def _allocate_block(self) -> int:
        """Claim a free block and clear it on disk."""
        disk = self._require_disk()
        block = self._find_free_block()
        try:
            disk.write(block, _ZERO_BLOCK)
        except SsfsError:
            self._free_block(block)
            raise
        return block

    def _resolve_in(self, table_block: int, index: int, allocate: bool) -> int:
        """Return entry ``index`` of a pointer block, allocating it if asked."""
        disk = self._require_disk()
        pointers = unpack_pointers(disk.read(table_block))
        if pointers[index] == 0 and allocate:
            new_block = self._allocate_block()
            pointers[index] = new_block
            try:
                disk.write(table_block, pack_pointers(pointers))
            except SsfsError:
                self._free_block(new_block)
                raise
        return pointers[index]

    def _block_for_offset(self, inode: Inode, offset: int,
                          allocate: bool) -> int:
        """Return the block holding ``offset`` of a file, or 0 if none."""
        self._require_disk()
        if offset < 0:
            raise InvalidOffsetError(f"offset {offset} is negative")
        index = offset // BLOCK_SIZE

        if index < DIRECT_LIMIT:
            if inode.direct_blocks[index] == 0 and allocate:
                inode.direct_blocks[index] = self._allocate_block()
            return inode.direct_blocks[index]

        if index < INDIRECT_LIMIT:
            if inode.indirect_block == 0:
                if not allocate:
                    return 0
                inode.indirect_block = self._allocate_block()
            return self._resolve_in(inode.indirect_block,
                                    index - DIRECT_LIMIT, allocate)

        if index < DOUBLE_INDIRECT_LIMIT:
            if inode.double_indirect_block == 0:
                if not allocate:
                    return 0
                inode.double_indirect_block = self._allocate_block()
            outer, inner = divmod(index - INDIRECT_LIMIT, POINTERS_PER_BLOCK)
            indirect = self._resolve_in(inode.double_indirect_block, outer,
                                        allocate)
            if indirect == 0:
                return 0
            return self._resolve_in(indirect, inner, allocate)

        raise InvalidOffsetError(f"offset {offset} beyond largest file size")