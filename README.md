# ssfs

A small inode-based file system that lives inside a virtual disk image made of
1024-byte blocks. Block 0 holds the superblock, the next blocks hold the inode
table (32 inodes per block), and everything after that holds file data. Each
inode addresses its data through four direct pointers, one single-indirect
block and one double-indirect block.

Files have no names: each one is known only by its inode number.

## Installing

```
pip install .
```

No third-party libraries are needed. The tests use pytest
(`pip install .[test]`).

## Using the library

A disk image is a plain file whose size is a whole number of blocks. Create one,
format it, then mount it:

```python
from ssfs.vdisk import create_image
from ssfs.filesystem import FileSystem, format_disk

create_image("disk.img", 100)      # 100 blocks of 1024 bytes, all zero
format_disk("disk.img", 10)        # room for at least 10 inodes; returns the Superblock

with FileSystem() as fs:
    fs.mount("disk.img")
    inode = fs.create()                      # lowest free inode number
    fs.write(inode, b"Hello, world!", 0)     # returns the number of bytes written
    print(fs.stat(inode))                    # file size in bytes
    print(fs.read(inode, 1024, 0))           # bytes read from offset 0
    print(fs.free_blocks)                    # data blocks not in use
    fs.delete(inode)
```

Points worth knowing:

- `format_disk` needs an existing image; the image's size fixes the number of
  blocks. The inode count is rounded up to whole inode blocks, and the image
  must have room for the superblock, the inode table and at least one data
  block, or `OutOfSpaceError` is raised.
- Leaving the `with` block unmounts the disk if it is still mounted, flushing
  it to storage. `unmount()` does the same explicitly.
- The same image cannot be mounted twice at once in one process, and a mounted
  image cannot be formatted (`DiskAlreadyMountedError`).
- The free-block map is kept in memory and rebuilt from the inodes on each mount.
- Writing past the end of a file fills the gap with zeros. If space runs out
  part way through a write, the bytes already written are kept and their count
  is returned. A negative offset raises `InvalidOffsetError`.
- Reading past the end of a file returns fewer bytes than asked for, or `b""`.
- `FileSystem` also exposes `mounted`, `disk_name`, `superblock` and
  `num_inodes`.

Failures are reported as exceptions from `ssfs.errors`. Every exception derives
from `SsfsError` and carries a numeric `code`; disk-level problems derive from
`DiskError` (`NoDiskError`, `DiskAccessError`, `DiskNotFoundError`,
`SectorExceededError`, `SectorIOError`) and file-system problems derive from
`FileSystemError` (`DiskNotMountedError`, `DiskAlreadyMountedError`,
`InvalidInodeError`, `OutOfSpaceError`, `OutOfInodesError`,
`CorruptDiskError`, `InvalidOffsetError`).

The on-disk structures are in `ssfs.layout` (`Superblock`, `Inode`,
`inode_location`, `pack_pointers`, `unpack_pointers`), and raw sector access
is in `ssfs.vdisk` (`VirtualDisk`, `create_image`).

## Self-test

The package ships a self-test command that formats an existing disk image with
10 inodes, mounts it, then creates, writes, reads, appends, deletes and
remounts files, printing a report for each step and a summary. The image is
not created for you, and formatting erases whatever it held:

```
python -c "from ssfs.vdisk import create_image; create_image('test_disk.img', 100)"
ssfs-selftest                 # uses test_disk.img in the current directory
ssfs-selftest other.img       # or name another image
```

It exits with status 1 if any step fails and 0 otherwise.

## What it does not do

There are no directories and no file names, no permissions or timestamps, and
no command for working with files interactively: files are reached only
through the `FileSystem` methods, by inode number.