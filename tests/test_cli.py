import re

import pytest

from ssfs.cli import (
    ADDITIONAL_DATA,
    TEST_DATA,
    SuiteResults,
    display_file_contents,
    log_message,
    main,
    print_test_summary,
    run_basic_tests,
)
from ssfs.filesystem import FileSystem, format_disk
from ssfs.vdisk import create_image


@pytest.fixture
def image(tmp_path):
    return create_image(tmp_path / "disk.img", 100)


@pytest.fixture
def mounted(image):
    format_disk(image, 10)
    fs = FileSystem()
    fs.mount(image)
    yield fs
    if fs.mounted:
        fs.unmount()


def test_suite_results_record_counts():
    results = SuiteResults()
    results.record(True)
    results.record(False)
    results.record(True)
    assert (results.total, results.passed, results.failed) == (3, 2, 1)


def test_success_rate_half():
    results = SuiteResults()
    results.record(True)
    results.record(False)
    assert results.success_rate() == 50.0


def test_success_rate_empty_is_zero():
    assert SuiteResults().success_rate() == 0.0


def test_log_message_format(capsys):
    log_message("INFO", "hello")
    out = capsys.readouterr().out
    assert out.startswith("[INFO] ")
    assert out.endswith(" - hello\n")
    timestamp = out[len("[INFO] "):-len(" - hello\n")]
    assert len(timestamp) == 19
    assert re.sub(r"\d", "0", timestamp) == "0000-00-00 00:00:00"


def test_log_message_test_level_starts_new_line(capsys):
    log_message("TEST", "suite")
    out = capsys.readouterr().out
    assert out.startswith("\n[TEST] ")
    assert out.endswith(" - suite\n")


def test_print_test_summary(capsys):
    results = SuiteResults()
    results.record(True)
    results.record(False)
    print_test_summary(results)
    out = capsys.readouterr().out
    assert "Total tests: 2" in out
    assert "Passed: 1" in out
    assert "Failed: 1" in out
    assert "Success rate: 50.0%" in out


def test_display_file_contents(mounted, capsys):
    inode = mounted.create()
    mounted.write(inode, b"Hello", 0)
    capsys.readouterr()
    display_file_contents(mounted, inode, 5)
    assert capsys.readouterr().out == "File contents:\nHello\n"


def test_display_file_contents_spans_blocks(mounted, capsys):
    inode = mounted.create()
    data = b"abc" * 700
    mounted.write(inode, data, 0)
    capsys.readouterr()
    display_file_contents(mounted, inode, len(data))
    assert capsys.readouterr().out == "File contents:\n" + data.decode() + "\n"


def test_display_file_contents_reports_short_file(mounted, capsys):
    inode = mounted.create()
    mounted.write(inode, b"Hello", 0)
    capsys.readouterr()
    display_file_contents(mounted, inode, 8)
    out = capsys.readouterr().out
    assert "Error reading file at offset 5" in out


def test_run_basic_tests_all_pass(image, capsys):
    results = run_basic_tests(image)
    out = capsys.readouterr().out
    assert results.failed == 0
    assert results.passed == results.total
    assert "Successfully recycled the deleted inode" in out
    assert "Data verification successful" in out


def test_run_basic_tests_persists_data(image, capsys):
    run_basic_tests(image)
    fs = FileSystem()
    with fs:
        fs.mount(image)
        size = fs.stat(0)
        assert fs.read(0, size, 0) == TEST_DATA + ADDITIONAL_DATA


def test_run_basic_tests_leaves_disk_unmounted(image, capsys):
    run_basic_tests(image)
    fs = FileSystem()
    fs.mount(image)
    assert fs.mounted
    fs.unmount()


def test_run_basic_tests_missing_image(tmp_path, capsys):
    results = run_basic_tests(tmp_path / "missing.img")
    out = capsys.readouterr().out
    assert (results.total, results.passed, results.failed) == (1, 0, 1)
    assert "Format failed with error code: -3" in out


def test_run_basic_tests_image_too_small(tmp_path, capsys):
    path = create_image(tmp_path / "tiny.img", 2)
    results = run_basic_tests(path)
    out = capsys.readouterr().out
    assert results.failed == 1
    assert "Format failed with error code: -103" in out


def test_main_success(image, capsys):
    assert main([str(image)]) == 0
    out = capsys.readouterr().out
    assert out.startswith("File System Testing Suite\n")
    assert "==== FINAL TEST SUMMARY ====" in out
    assert "Failed: 0" in out


def test_main_failure_exit_code(tmp_path, capsys):
    assert main([str(tmp_path / "missing.img")]) == 1
    out = capsys.readouterr().out
    assert "Basic Tests: 0/1 passed (0.0%)" in out