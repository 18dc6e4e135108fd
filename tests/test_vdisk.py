import pytest

from ssfs.errors import (
    DiskNotFoundError,
    NoDiskError,
    SectorExceededError,
)
from ssfs.vdisk import SECTOR_SIZE, VirtualDisk, create_image


@pytest.fixture
def image(tmp_path):
    return create_image(tmp_path / "disk.img", 8)


def test_sector_size_is_1024(tmp_path):
    path = create_image(tmp_path / "one.img", 1)
    with VirtualDisk.open(path) as disk:
        assert disk.sector_size == 1024
        assert len(disk.read(0)) == 1024
    assert SECTOR_SIZE == 1024


def test_create_image_size(tmp_path):
    path = create_image(tmp_path / "d.img", 5)
    assert path.stat().st_size == 5 * SECTOR_SIZE
    assert path.read_bytes() == bytes(5 * SECTOR_SIZE)


def test_create_image_rejects_negative(tmp_path):
    with pytest.raises(ValueError):
        create_image(tmp_path / "d.img", -1)


def test_open_reports_geometry(image):
    with VirtualDisk.open(image) as disk:
        assert disk.size_in_sectors == 8
        assert disk.sector_size == SECTOR_SIZE
        assert disk.name == str(image)


def test_fresh_sectors_are_zero(image):
    with VirtualDisk.open(image) as disk:
        assert all(disk.read(i) == bytes(SECTOR_SIZE) for i in range(8))


def test_write_read_round_trip(image):
    payload = bytes(range(256)) * 4
    with VirtualDisk.open(image) as disk:
        disk.write(3, payload)
        assert disk.read(3) == payload
        assert disk.read(2) == bytes(SECTOR_SIZE)
        assert disk.read(4) == bytes(SECTOR_SIZE)


def test_data_persists_after_reopen(image):
    payload = b"\xab" * SECTOR_SIZE
    with VirtualDisk.open(image) as disk:
        disk.write(7, payload)
        disk.sync()
    with VirtualDisk.open(image) as disk:
        assert disk.read(7) == payload
    assert image.read_bytes()[7 * SECTOR_SIZE:] == payload


@pytest.mark.parametrize("sector", [8, 100, -1])
def test_out_of_range_sector(image, sector):
    with VirtualDisk.open(image) as disk:
        with pytest.raises(SectorExceededError):
            disk.read(sector)
        with pytest.raises(SectorExceededError):
            disk.write(sector, bytes(SECTOR_SIZE))


def test_write_requires_whole_sector(image):
    with VirtualDisk.open(image) as disk:
        with pytest.raises(ValueError):
            disk.write(0, b"short")


def test_missing_image(tmp_path):
    with pytest.raises(DiskNotFoundError) as info:
        VirtualDisk.open(tmp_path / "absent.img")
    assert info.value.code == -3


def test_empty_image_is_no_disk(tmp_path):
    path = create_image(tmp_path / "empty.img", 0)
    with pytest.raises(NoDiskError) as info:
        VirtualDisk.open(path)
    assert info.value.code == -1


def test_partial_sector_is_ignored(tmp_path):
    path = tmp_path / "odd.img"
    path.write_bytes(bytes(SECTOR_SIZE + 500))
    with VirtualDisk.open(path) as disk:
        assert disk.size_in_sectors == 1
        with pytest.raises(SectorExceededError):
            disk.read(1)


def test_closed_disk_raises(image):
    disk = VirtualDisk.open(image)
    disk.close()
    assert disk.closed
    with pytest.raises(NoDiskError):
        disk.read(0)
    with pytest.raises(NoDiskError):
        disk.write(0, bytes(SECTOR_SIZE))
    with pytest.raises(NoDiskError):
        disk.sync()


def test_close_twice_and_context_manager(image):
    with VirtualDisk.open(image) as disk:
        assert not disk.closed
    assert disk.closed
    disk.close()
    assert disk.closed