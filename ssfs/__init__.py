"""A simple inode-based file system stored in a virtual disk image."""

__version__ = "0.1.0"