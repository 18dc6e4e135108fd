import pytest

from ssfs import errors


def _check_disk_error(err, code):
    assert err.code == code
    assert isinstance(err, errors.DiskError)
    assert isinstance(err, errors.SsfsError)
    assert not isinstance(err, errors.FileSystemError)
    assert str(err) == err.default_message
    assert err.message == err.default_message


def _check_fs_error(err, code):
    assert err.code == code
    assert isinstance(err, errors.FileSystemError)
    assert isinstance(err, errors.SsfsError)
    assert not isinstance(err, errors.DiskError)
    assert str(err) == err.default_message
    assert err.message == err.default_message


def test_no_disk_error():
    _check_disk_error(errors.NoDiskError(), -1)


def test_disk_access_error():
    _check_disk_error(errors.DiskAccessError(), -2)


def test_disk_not_found_error():
    _check_disk_error(errors.DiskNotFoundError(), -3)


def test_sector_exceeded_error():
    _check_disk_error(errors.SectorExceededError(), -4)


def test_sector_io_error():
    _check_disk_error(errors.SectorIOError(), -5)


def test_disk_not_mounted_error():
    _check_fs_error(errors.DiskNotMountedError(), -100)


def test_disk_already_mounted_error():
    _check_fs_error(errors.DiskAlreadyMountedError(), -101)


def test_invalid_inode_error():
    _check_fs_error(errors.InvalidInodeError(), -102)


def test_out_of_space_error():
    _check_fs_error(errors.OutOfSpaceError(), -103)


def test_out_of_inodes_error():
    _check_fs_error(errors.OutOfInodesError(), -104)


def test_corrupt_disk_error():
    _check_fs_error(errors.CorruptDiskError(), -105)


def test_invalid_offset_error():
    _check_fs_error(errors.InvalidOffsetError(), -106)


def test_codes_are_unique():
    instances = [
        errors.NoDiskError(),
        errors.DiskAccessError(),
        errors.DiskNotFoundError(),
        errors.SectorExceededError(),
        errors.SectorIOError(),
        errors.DiskNotMountedError(),
        errors.DiskAlreadyMountedError(),
        errors.InvalidInodeError(),
        errors.OutOfSpaceError(),
        errors.OutOfInodesError(),
        errors.CorruptDiskError(),
        errors.InvalidOffsetError(),
    ]
    codes = [err.code for err in instances]
    assert len(set(codes)) == len(codes)


@pytest.mark.parametrize(
    ("error_class", "code"),
    [
        (errors.OutOfSpaceError, -103),
        (errors.InvalidOffsetError, -106),
        (errors.NoDiskError, -1),
        (errors.SectorIOError, -5),
    ],
)
def test_catchable_as_base(error_class, code):
    caught = None
    try:
        raise error_class()
    except errors.SsfsError as err:
        caught = err
    assert caught.code == code
    assert str(caught) == error_class.default_message


def test_custom_message_is_kept():
    err = errors.InvalidInodeError("inode 7 is free")
    assert str(err) == "inode 7 is free"
    assert err.code == -102