import pytest

from mountkit.mount import MountPoint
from mountkit.windows import (
    is_corrupted_mnt_windows,
    is_mount_point_match_windows,
    normalize_windows_path,
    path_exists_windows,
    validate_disk_number,
)

EXPECTED = (
    "c:\\var\\lib\\kubelet\\pods\\146f8428-83e7-11e7-8dd4-000d3a31dac4"
    "\\volumes\\kubernetes.io~azure-disk"
)


@pytest.mark.parametrize(
    "path, expected",
    [
        (
            "/var/lib/kubelet/pods/146f8428-83e7-11e7-8dd4-000d3a31dac4/volumes/kubernetes.io~azure-disk",
            EXPECTED,
        ),
        (
            "/var/lib/kubelet/pods/146f8428-83e7-11e7-8dd4-000d3a31dac4\\volumes\\kubernetes.io~azure-disk",
            EXPECTED,
        ),
        ("/", "c:\\"),
        ("d:/data", "d:\\data"),
    ],
)
def test_normalize_windows_path(path, expected):
    assert normalize_windows_path(path) == expected


@pytest.mark.parametrize("disk", ["0", "99", "100", "200", "-1", "+7"])
def test_validate_disk_number_accepts(disk):
    assert validate_disk_number(disk) is None


@pytest.mark.parametrize("disk", ["invalid", "", " 1", "1_0", "99999999999999999999"])
def test_validate_disk_number_rejects(disk):
    with pytest.raises(ValueError, match="wrong disk number format"):
        validate_disk_number(disk)


@pytest.mark.parametrize("code", [53, 54, 59, 64, 65, 66, 67, 1219, 1326, 10064])
def test_is_corrupted_mnt_windows_codes(code):
    assert is_corrupted_mnt_windows(OSError(code, "network failure")) is True


@pytest.mark.parametrize(
    "err", [None, OSError(2, "missing"), ValueError("nope"), OSError("no code")]
)
def test_is_corrupted_mnt_windows_other(err):
    assert is_corrupted_mnt_windows(err) is False


def test_is_mount_point_match_windows():
    mp = MountPoint(path="c:\\mnt\\a")
    assert is_mount_point_match_windows(mp, "c:\\mnt\\a") is True
    assert is_mount_point_match_windows(mp, "c:\\mnt\\b") is False


def test_path_exists_windows(tmp_path):
    assert path_exists_windows(str(tmp_path)) is True
    assert path_exists_windows(str(tmp_path / "missing")) is False