"""Command-line test suite that exercises the file system on a disk image."""

from __future__ import annotations

import argparse
import os
import time
from dataclasses import dataclass

from .errors import SsfsError
from .filesystem import FileSystem, format_disk
from .layout import BLOCK_SIZE

DEFAULT_DISK = "test_disk.img"
NUM_INODES = 10
TEST_DATA = b"Hello, File System World!"
ADDITIONAL_DATA = b" This is additional data."


@dataclass
class SuiteResults:
    """Running tally of test outcomes."""

    total: int = 0
    passed: int = 0
    failed: int = 0

    def record(self, passed: bool) -> None:
        """Count one test as passed or failed."""
        self.total += 1
        if passed:
            self.passed += 1
        else:
            self.failed += 1

    def success_rate(self) -> float:
        """Percentage of tests that passed, 0.0 when nothing ran."""
        if self.total == 0:
            return 0.0
        return self.passed * 100.0 / self.total


def log_message(level: str, message: str) -> None:
    """Print a timestamped log line; TEST lines start on a fresh line."""
    timestamp = time.strftime("%Y-%m-%d %H:%M:%S", time.localtime())
    prefix = "\n" if level == "TEST" else ""
    print(f"{prefix}[{level}] {timestamp} - {message}")


def _log_test(message: str) -> None:
    log_message("TEST", message)
    print("\n====================================")
    print(f"TEST: {message}")
    print("====================================")


def _print_header(test_name: str) -> None:
    print(f"\n===== TESTING: {test_name} =====")


def _print_result(test_name: str, success: bool, result_code: int) -> None:
    if success:
        print(f"✓ PASS: {test_name}")
    else:
        print(f"✗ FAIL: {test_name} (Error code: {result_code})")


def print_test_summary(results: SuiteResults) -> None:
    """Print totals and the success rate."""
    print("\n===== TEST SUMMARY =====")
    print(f"Total tests: {results.total}")
    print(f"Passed: {results.passed}")
    print(f"Failed: {results.failed}")
    print(f"Success rate: {results.success_rate():.1f}%")


def display_file_contents(fs: FileSystem, inode_num: int, file_size: int) -> None:
    """Print a file's contents, reading it one block at a time."""
    print("File contents:")
    offset = 0
    chunk_size = BLOCK_SIZE
    while offset < file_size:
        chunk_size = min(chunk_size, file_size - offset)
        try:
            data = fs.read(inode_num, chunk_size, offset)
        except SsfsError:
            data = b""
        if not data:
            print(f"Error reading file at offset {offset}")
            break
        text = data.split(b"\0", 1)[0].decode("utf-8", errors="replace")
        print(text, end="")
        offset += len(data)
    print()


def _attempt(call, *args):
    """Run ``call``; return its value and 0, or None and the error code."""
    try:
        return call(*args), 0
    except SsfsError as exc:
        return None, exc.code


def _run_steps(fs: FileSystem, disk_name: str, results: SuiteResults) -> None:
    _log_test("Basic File System Tests")
    print("Starting Basic File System Testing Suite")
    print("----------------------------------")

    # Format: nothing else can run without it.
    _print_header("Format")
    _, code = _attempt(format_disk, disk_name, NUM_INODES)
    if code != 0:
        print(f"Format failed with error code: {code}")
        results.record(False)
        print_test_summary(results)
        return
    print(f"Disk '{disk_name}' formatted successfully with {NUM_INODES} inodes")
    results.record(True)
    _print_result("Format disk", True, code)

    # Mount: nothing else can run without it.
    _print_header("Mount")
    _, code = _attempt(fs.mount, disk_name)
    if code != 0:
        print(f"Mount failed with error code: {code}")
        results.record(False)
        print_test_summary(results)
        return
    print(f"Disk '{disk_name}' mounted successfully")
    results.record(True)
    _print_result("Mount disk", True, code)

    _print_header("Create file")
    test_inode, code = _attempt(fs.create)
    if test_inode is not None:
        print(f"File created successfully with inode number: {test_inode}")
    else:
        print(f"File creation failed with error code: {code}")
    results.record(test_inode is not None)
    _print_result("Create file", test_inode is not None,
                  test_inode if test_inode is not None else code)

    _print_header("Create second file")
    test_inode2, code = _attempt(fs.create)
    if test_inode2 is not None:
        print(f"Second file created successfully with inode number: {test_inode2}")
    else:
        print(f"Second file creation failed with error code: {code}")
    results.record(test_inode2 is not None)
    _print_result("Create second file", test_inode2 is not None,
                  test_inode2 if test_inode2 is not None else code)

    if test_inode is not None:
        _print_header("Write to file")
        written, code = _attempt(fs.write, test_inode, TEST_DATA, 0)
        outcome = written if written is not None else code
        ok = written == len(TEST_DATA)
        if ok:
            print(f"Wrote {written} bytes to inode {test_inode}")
        else:
            print(f"Write failed or incomplete: wrote {written or 0} of "
                  f"{len(TEST_DATA)} bytes, error code: {outcome}")
        results.record(ok)
        _print_result("Write to file", ok, outcome)

    file_size = None
    if test_inode is not None:
        _print_header("Stat file")
        file_size, code = _attempt(fs.stat, test_inode)
        if file_size is not None:
            print(f"File with inode {test_inode} has size: {file_size} bytes")
        else:
            print(f"Stat failed with error code: {code}")
        results.record(file_size is not None)
        _print_result("Stat file", file_size is not None,
                      file_size if file_size is not None else code)

    if test_inode is not None and file_size:
        _print_header("Read from file")
        data, code = _attempt(fs.read, test_inode, file_size, 0)
        outcome = len(data) if data is not None else code
        verified = False
        if data is not None and len(data) == file_size:
            text = data.decode("utf-8", errors="replace")
            print(f"Read {len(data)} bytes from inode {test_inode}: '{text}'")
            verified = data == TEST_DATA[:len(data)]
            if verified:
                print("Data verification successful")
            else:
                print(f"Data verification failed: got '{text}', "
                      f"expected '{TEST_DATA.decode()}'")
        else:
            print(f"Read failed with error code: {outcome}")
        results.record(verified)
        _print_result("Read from file", verified, outcome)

    if test_inode is not None and file_size:
        _print_header("Append to file")
        written, code = _attempt(fs.write, test_inode, ADDITIONAL_DATA, file_size)
        outcome = written if written is not None else code
        ok = written == len(ADDITIONAL_DATA)
        if ok:
            print(f"Appended {written} bytes to inode {test_inode}")
            results.record(True)
            file_size, _ = _attempt(fs.stat, test_inode)
            if file_size:
                display_file_contents(fs, test_inode, file_size)
        else:
            print(f"Append failed with error code: {outcome}")
            results.record(False)
        _print_result("Append to file", ok, outcome)

    if test_inode2 is not None:
        _print_header("Delete file")
        _, code = _attempt(fs.delete, test_inode2)
        if code == 0:
            print(f"File with inode {test_inode2} deleted successfully")
        else:
            print(f"File deletion failed with error code: {code}")
        results.record(code == 0)
        _print_result("Delete file", code == 0, code)

    _print_header("Create file after deletion")
    recycled, code = _attempt(fs.create)
    if recycled is not None:
        print(f"New file created with inode number: {recycled}")
        if recycled == test_inode2:
            print("Successfully recycled the deleted inode")
        else:
            print("Created new inode instead of recycling")
    else:
        print(f"File creation failed with error code: {code}")
    results.record(recycled is not None)
    _print_result("Create file after deletion", recycled is not None,
                  recycled if recycled is not None else code)

    _print_header("Unmount")
    _, code = _attempt(fs.unmount)
    if code == 0:
        print("Disk unmounted successfully")
    else:
        print(f"Unmount failed with error code: {code}")
    results.record(code == 0)
    _print_result("Unmount disk", code == 0, code)

    _print_header("Remount and verify persistence")
    _, code = _attempt(fs.mount, disk_name)
    persisted = False
    if code == 0:
        print(f"Disk '{disk_name}' remounted successfully")
        if test_inode is not None:
            file_size, stat_code = _attempt(fs.stat, test_inode)
            if file_size:
                print(f"File with inode {test_inode} still exists with size: "
                      f"{file_size} bytes")
                display_file_contents(fs, test_inode, file_size)
                results.record(True)
                persisted = True
            else:
                print("File data persistence test failed: stat returned "
                      f"{file_size if file_size is not None else stat_code}")
                results.record(False)
        else:
            results.total += 1
    else:
        print(f"Remount failed with error code: {code}")
        results.record(False)
    _print_result("Remount and verify persistence", code == 0 and persisted, code)

    _attempt(fs.unmount)


def run_basic_tests(disk_name=DEFAULT_DISK) -> SuiteResults:
    """Run the basic suite against an existing image and return the tally."""
    results = SuiteResults()
    fs = FileSystem()
    try:
        _run_steps(fs, os.fspath(disk_name), results)
    finally:
        if fs.mounted:
            _attempt(fs.unmount)
    return results


def main(argv=None) -> int:
    """Run the suite; return 1 if any test failed, else 0."""
    parser = argparse.ArgumentParser(
        prog="ssfs",
        description="Run the basic file system test suite on a disk image.")
    parser.add_argument("disk", nargs="?", default=DEFAULT_DISK,
                        help="existing disk image to format and test "
                             f"(default: {DEFAULT_DISK})")
    args = parser.parse_args(argv)

    print("File System Testing Suite")
    print("=======================\n")

    results = run_basic_tests(args.disk)

    print("\n\n==== FINAL TEST SUMMARY ====")
    print(f"Basic Tests: {results.passed}/{results.total} passed "
          f"({results.success_rate():.1f}%)")
    print_test_summary(results)

    return 1 if results.failed > 0 else 0


if __name__ == "__main__":
    raise SystemExit(main())