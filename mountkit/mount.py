"""Mount points, the mounter interface and helpers for mount options."""

from __future__ import annotations

import abc
import enum
import os
from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence

SENSITIVE_OPTIONS_REMOVED = "<masked>"


@dataclass
class MountPoint:
    """A single line of /proc/mounts or /etc/fstab.

    ``opts`` may hold sensitive options and must never be logged.
    """

    device: str = ""
    path: str = ""
    type: str = ""
    opts: list[str] = field(default_factory=list)
    freq: int = 0
    passno: int = 0


class MountErrorType(str, enum.Enum):
    FILESYSTEM_MISMATCH = "FilesystemMismatch"
    HAS_FILESYSTEM_ERRORS = "HasFilesystemErrors"
    UNFORMATTED_READ_ONLY = "UnformattedReadOnly"
    FORMAT_FAILED = "FormatFailed"
    GET_DISK_FORMAT_FAILED = "GetDiskFormatFailed"
    UNKNOWN_MOUNT_ERROR = "UnknownMountError"


class MountError(Exception):
    """A mount failure tagged with its kind."""

    def __init__(self, error_type: MountErrorType, message: str) -> None:
        super().__init__(message)
        self.type = error_type
        self.message = message

    def __str__(self) -> str:
        return self.message


class Mounter(abc.ABC):
    """Operations for mounting and inspecting filesystems."""

    def mount(self, source, target, fstype, options):
        """Mount source on target; options must hold nothing sensitive."""
        return self.mount_sensitive(source, target, fstype, options, None)

    @abc.abstractmethod
    def mount_sensitive(self, source, target, fstype, options, sensitive_options):
        """Mount source on target, keeping sensitive_options out of logs."""

    def mount_sensitive_without_systemd(
        self, source, target, fstype, options, sensitive_options
    ):
        """Like mount_sensitive, without going through systemd."""
        return self.mount_sensitive(source, target, fstype, options, sensitive_options)

    def mount_sensitive_without_systemd_with_mount_flags(
        self, source, target, fstype, options, sensitive_options, mount_flags
    ):
        """Like mount_sensitive_without_systemd, with extra mount flags."""
        return self.mount_sensitive_without_systemd(
            source, target, fstype, options, sensitive_options
        )

    @abc.abstractmethod
    def unmount(self, target):
        """Unmount target."""

    @abc.abstractmethod
    def list(self):
        """Return every mounted filesystem as a list of MountPoint."""

    @abc.abstractmethod
    def is_likely_not_mount_point(self, file):
        """Guess cheaply whether file is not a mount point.

        Raises FileNotFoundError when the path does not exist.
        """

    def can_safely_skip_mount_point_check(self):
        """Whether operations on non-mount-points never fail for this mounter."""
        return False

    @abc.abstractmethod
    def is_mount_point(self, file):
        """Decide whether file is a mount point, detecting bind mounts too.

        Raises FileNotFoundError when the path does not exist.
        """

    @abc.abstractmethod
    def get_mount_refs(self, pathname):
        """Return the other paths that mount the same device as pathname."""


class ForceUnmounter(Mounter):
    """A mounter that can retry an unmount with force after a timeout."""

    @abc.abstractmethod
    def unmount_with_force(self, target, umount_timeout):
        """Unmount target, forcing it after umount_timeout seconds."""


def _eval_symlinks(path: str) -> str:
    try:
        return os.path.realpath(path, strict=True)
    except (OSError, ValueError):
        return path


def get_mount_refs_by_dev(mounter: Mounter, mount_path: str) -> list[str]:
    """Return the paths referring to the device mounted at mount_path.

    mount_path must already have its symbolic links resolved.
    """
    mount_points = mounter.list()
    disk_dev = next(
        (mp.device for mp in mount_points if mp.path == mount_path), ""
    )
    return [
        mp.path
        for mp in mount_points
        if (mp.device == disk_dev or mp.device == mount_path)
        and mp.path != mount_path
    ]


def is_not_mount_point(mounter: Mounter, file: str) -> bool:
    """Return True when file is not a mount point, via is_mount_point."""
    return not mounter.is_mount_point(file)


def get_device_name_from_mount(mounter: Mounter, mount_path: str) -> tuple[str, int]:
    """Return the device mounted at mount_path and how often it is mounted."""
    mount_points = mounter.list()
    target = _eval_symlinks(mount_path)
    device = next((mp.device for mp in mount_points if mp.path == target), "")
    ref_count = sum(1 for mp in mount_points if mp.device == device)
    return device, ref_count


def make_bind_opts(options: Optional[Iterable[str]]) -> tuple[bool, list[str], list[str]]:
    """Detect a bind mount and build the options for it and its remount."""
    bind, bind_opts, remount_opts, _ = make_bind_opts_sensitive(options, None)
    return bind, bind_opts, remount_opts


def make_bind_opts_sensitive(
    options: Optional[Iterable[str]],
    sensitive_options: Optional[Iterable[str]],
) -> tuple[bool, list[str], list[str], list[str]]:
    """Like make_bind_opts, keeping sensitive options in a separate list."""
    options = list(options or [])
    sensitive_options = list(sensitive_options or [])

    bind_remount_opts = ["bind", "remount"]
    bind_remount_sensitive_opts: list[str] = []
    bind_opts = ["bind"]

    # _netdev is a userspace option that a bind mount does not inherit.
    if "_netdev" in options or "_netdev" in sensitive_options:
        bind_opts.append("_netdev")

    bind = False
    for option in options:
        if option == "bind":
            bind = True
        elif option != "remount":
            bind_remount_opts.append(option)
    for option in sensitive_options:
        if option == "bind":
            bind = True
        elif option != "remount":
            bind_remount_sensitive_opts.append(option)

    return bind, bind_opts, bind_remount_opts, bind_remount_sensitive_opts


def path_within_base(full_path: str, base_path: str) -> bool:
    """Return True if full_path lies inside base_path."""
    if os.path.isabs(full_path) != os.path.isabs(base_path):
        return False
    try:
        rel = os.path.relpath(full_path, base_path)
    except ValueError:
        return False
    return not starts_with_backstep(rel)


def starts_with_backstep(rel: str) -> bool:
    """Return True if the relative path begins with a '..' segment."""
    return rel == ".." or rel.replace(os.sep, "/").startswith("../")


def sanitized_options_for_logging(
    options: Optional[Sequence[str]], sensitive_options: Optional[Sequence[str]]
) -> str:
    """Join options with commas, masking each sensitive one."""
    masked = [SENSITIVE_OPTIONS_REMOVED] * len(sensitive_options or [])
    return ",".join([*(options or []), *masked])