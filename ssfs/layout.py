"""On-disk layout of the file system: superblock, inodes and pointer blocks."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field

from .errors import InvalidInodeError

BLOCK_SIZE = 1024
INODE_SIZE = 32
INODES_PER_BLOCK = BLOCK_SIZE // INODE_SIZE
POINTER_SIZE = 4
POINTERS_PER_BLOCK = BLOCK_SIZE // POINTER_SIZE
DIRECT_POINTERS = 4
MAGIC = b"\xf0\x55\x4c\x49\x45\x47\x45\x49\x4e\x46\x4f\x30\x39\x34\x30\x0f"

# Block indices reachable through each kind of pointer.
DIRECT_LIMIT = DIRECT_POINTERS
INDIRECT_LIMIT = DIRECT_LIMIT + POINTERS_PER_BLOCK
DOUBLE_INDIRECT_LIMIT = INDIRECT_LIMIT + POINTERS_PER_BLOCK * POINTERS_PER_BLOCK
MAX_FILE_SIZE = DOUBLE_INDIRECT_LIMIT * BLOCK_SIZE

_SUPERBLOCK = struct.Struct("<16sIII")
# One flag byte, three bytes of padding, then six 32-bit words.
_INODE = struct.Struct("<B3xI4III")
_POINTERS = struct.Struct(f"<{POINTERS_PER_BLOCK}I")

assert _INODE.size == INODE_SIZE
assert _POINTERS.size == BLOCK_SIZE


@dataclass
class Superblock:
    """Block 0 of a formatted disk."""

    num_blocks: int
    num_inode_blocks: int
    block_size: int = BLOCK_SIZE
    magic: bytes = MAGIC

    @property
    def num_inodes(self) -> int:
        return self.num_inode_blocks * INODES_PER_BLOCK

    @property
    def first_data_block(self) -> int:
        return 1 + self.num_inode_blocks

    def pack(self) -> bytes:
        """Return the superblock as a whole zero-padded block."""
        if len(self.magic) != len(MAGIC):
            raise ValueError(f"magic must be {len(MAGIC)} bytes")
        raw = _SUPERBLOCK.pack(self.magic, self.num_blocks,
                               self.num_inode_blocks, self.block_size)
        return raw.ljust(BLOCK_SIZE, b"\0")

    @classmethod
    def unpack(cls, data) -> "Superblock":
        """Decode a superblock from the start of ``data``."""
        data = bytes(data)
        if len(data) < _SUPERBLOCK.size:
            raise ValueError(
                f"superblock needs {_SUPERBLOCK.size} bytes, got {len(data)}")
        magic, num_blocks, num_inode_blocks, block_size = \
            _SUPERBLOCK.unpack_from(data)
        return cls(num_blocks=num_blocks, num_inode_blocks=num_inode_blocks,
                   block_size=block_size, magic=magic)

    def is_valid(self) -> bool:
        """Whether the magic number marks a formatted disk."""
        return self.magic == MAGIC


@dataclass
class Inode:
    """A 32-byte file descriptor stored in the inode table."""

    valid: bool = False
    size: int = 0
    direct_blocks: list[int] = field(
        default_factory=lambda: [0] * DIRECT_POINTERS)
    indirect_block: int = 0
    double_indirect_block: int = 0

    def __post_init__(self) -> None:
        self.direct_blocks = list(self.direct_blocks)
        if len(self.direct_blocks) != DIRECT_POINTERS:
            raise ValueError(
                f"an inode has exactly {DIRECT_POINTERS} direct pointers")

    def pack(self) -> bytes:
        """Return the 32-byte on-disk form."""
        return _INODE.pack(1 if self.valid else 0, self.size,
                           *self.direct_blocks, self.indirect_block,
                           self.double_indirect_block)

    @classmethod
    def unpack(cls, data) -> "Inode":
        """Decode an inode from the first 32 bytes of ``data``."""
        data = bytes(data)
        if len(data) < INODE_SIZE:
            raise ValueError(
                f"inode needs {INODE_SIZE} bytes, got {len(data)}")
        valid, size, d0, d1, d2, d3, indirect, double = _INODE.unpack_from(data)
        return cls(valid=valid != 0, size=size, direct_blocks=[d0, d1, d2, d3],
                   indirect_block=indirect, double_indirect_block=double)

    @classmethod
    def cleared(cls) -> "Inode":
        """Return a freshly allocated, empty inode."""
        return cls(valid=True)


def inode_location(inode_num: int) -> tuple[int, int]:
    """Return the block holding an inode and the byte offset within it."""
    if inode_num < 0:
        raise InvalidInodeError(f"inode number {inode_num} is negative")
    block, index = divmod(inode_num, INODES_PER_BLOCK)
    return 1 + block, index * INODE_SIZE


def unpack_pointers(block) -> list[int]:
    """Decode a block of 32-bit block pointers."""
    block = bytes(block)
    if len(block) != BLOCK_SIZE:
        raise ValueError(
            f"pointer block must be {BLOCK_SIZE} bytes, got {len(block)}")
    return list(_POINTERS.unpack(block))


def pack_pointers(pointers) -> bytes:
    """Encode exactly one block's worth of 32-bit block pointers."""
    pointers = list(pointers)
    if len(pointers) != POINTERS_PER_BLOCK:
        raise ValueError(
            f"a pointer block holds {POINTERS_PER_BLOCK} pointers, "
            f"got {len(pointers)}")
    return _POINTERS.pack(*pointers)