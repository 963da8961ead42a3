import errno
import os

import pytest

from mountkit.fake import (
    FAKE_ACTION_MOUNT,
    FAKE_ACTION_UNMOUNT,
    FakeAction,
    FakeMounter,
)
from mountkit.mount import MountPoint, get_device_name_from_mount


@pytest.fixture
def base(tmp_path):
    return os.path.realpath(tmp_path)


def test_mount_records_mount_point_and_log(base):
    fake = FakeMounter()
    fake.mount("/dev/foo", base, "ext4", ["ro"])
    assert fake.list() == [MountPoint(device="/dev/foo", path=base, type="ext4", opts=["ro"])]
    assert fake.log == [FakeAction(FAKE_ACTION_MOUNT, base, "/dev/foo", "ext4")]
    assert fake.log[0].action == "mount"


def test_mount_sensitive_appends_sensitive_options(base):
    fake = FakeMounter()
    fake.mount_sensitive("/dev/foo", base, "cifs", ["vers=2"], ["pass=secret"])
    assert fake.list()[0].opts == ["vers=2", "pass=secret"]


@pytest.mark.parametrize("flags", [None, ["--no-block"]])
def test_without_systemd_drops_sensitive_options(base, flags):
    fake = FakeMounter()
    if flags is None:
        fake.mount_sensitive_without_systemd("/dev/foo", base, "cifs", ["vers=2"], ["pass=secret"])
    else:
        fake.mount_sensitive_without_systemd_with_mount_flags(
            "/dev/foo", base, "cifs", ["vers=2"], ["pass=secret"], flags
        )
    assert fake.list()[0].opts == ["vers=2"]


def test_bind_mount_uses_original_device(base):
    fake = FakeMounter([MountPoint(device="/dev/sda", path="/mnt/test")])
    fake.mount("/mnt/test", "/mnt/bound", "", ["bind"])
    assert fake.list()[-1].device == "/dev/sda"
    assert fake.list()[-1].path == "/mnt/bound"


def test_mount_resolves_symlink_target(base):
    real = os.path.join(base, "real")
    link = os.path.join(base, "link")
    os.mkdir(real)
    os.symlink(real, link)
    fake = FakeMounter()
    fake.mount("/dev/foo", link, "ext4", None)
    assert fake.list()[0].path == real
    assert fake.is_mount_point(link) is True


def test_unmount_removes_and_logs(base):
    fake = FakeMounter([MountPoint(device="/dev/foo", path=base), MountPoint(device="/dev/bar", path="/other")])
    fake.unmount(base)
    assert [mp.path for mp in fake.list()] == ["/other"]
    assert fake.log == [FakeAction(FAKE_ACTION_UNMOUNT, base)]
    assert fake.log[0].action == "unmount"


def test_unmount_clears_mount_check_error(base):
    fake = FakeMounter([MountPoint(device="/dev/foo", path=base)])
    fake.mount_check_errors[base] = OSError(errno.EIO, "io")
    fake.unmount(base)
    assert base not in fake.mount_check_errors
    assert fake.is_likely_not_mount_point(base) is True


def test_unmount_func_error_keeps_mount_points(base):
    fake = FakeMounter([MountPoint(device="/dev/foo", path=base)])
    seen = []

    def refuse(path):
        seen.append(path)
        raise OSError(errno.EBUSY, "busy")

    fake.unmount_func = refuse
    with pytest.raises(OSError) as excinfo:
        fake.unmount(base)
    assert excinfo.value.errno == errno.EBUSY
    assert seen == [base]
    assert [mp.path for mp in fake.list()] == [base]
    assert fake.log == []


def test_is_likely_not_mount_point(base):
    other = os.path.join(base, "other")
    os.mkdir(other)
    fake = FakeMounter([MountPoint(device="/dev/foo", path=base)])
    assert fake.is_likely_not_mount_point(base) is False
    assert fake.is_likely_not_mount_point(other) is True
    assert fake.is_mount_point(base) is True
    assert fake.is_mount_point(other) is False


def test_missing_path_raises(base):
    fake = FakeMounter()
    with pytest.raises(FileNotFoundError):
        fake.is_likely_not_mount_point(os.path.join(base, "absent"))
    with pytest.raises(FileNotFoundError):
        fake.is_mount_point(os.path.join(base, "absent"))


def test_mount_check_error_is_raised(base):
    fake = FakeMounter([MountPoint(device="/dev/foo", path=base)])
    err = OSError(errno.ESTALE, "stale")
    fake.mount_check_errors[base] = err
    with pytest.raises(OSError) as excinfo:
        fake.is_mount_point(base)
    assert excinfo.value is err


def test_reset_log(base):
    fake = FakeMounter()
    fake.mount("/dev/foo", base, "ext4", None)
    fake.unmount(base)
    assert len(fake.log) == 2
    fake.reset_log()
    assert fake.log == []


def test_skip_mount_point_check():
    fake = FakeMounter()
    assert fake.can_safely_skip_mount_point_check() is False
    assert fake.with_skip_mount_point_check() is fake
    assert fake.can_safely_skip_mount_point_check() is True


def test_get_mount_refs():
    fake = FakeMounter(
        [
            MountPoint(device="/dev/sdc", path="/path/a"),
            MountPoint(device="/dev/sdc", path="/path/b"),
            MountPoint(device="/dev/sdd", path="/path/c"),
        ]
    )
    assert fake.get_mount_refs("/path/a") == ["/path/b"]
    assert fake.get_mount_refs("/path/b") == ["/path/a"]
    assert fake.get_mount_refs("/path/c") == []


def test_device_name_from_mount_round_trip(base):
    fake = FakeMounter()
    fake.mount("/dev/foo", base, "ext4", None)
    fake.mount("/mnt/elsewhere", "/mnt/bound", "", ["bind"])
    assert get_device_name_from_mount(fake, base) == ("/dev/foo", 1)