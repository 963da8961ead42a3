"""An in-memory mounter for tests."""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass
from typing import Callable, Optional

from mountkit.mount import Mounter, MountPoint, get_mount_refs_by_dev

log = logging.getLogger(__name__)

FAKE_ACTION_MOUNT = "mount"
FAKE_ACTION_UNMOUNT = "unmount"


@dataclass
class FakeAction:
    """A mount or unmount recorded by FakeMounter."""

    action: str
    target: str
    source: str = ""
    fstype: str = ""


def _eval_symlinks(path: str) -> str:
    try:
        return os.path.realpath(path, strict=True)
    except (OSError, ValueError):
        return path


class FakeMounter(Mounter):
    """Keeps mount points in memory and records every mount and unmount.

    ``mount_check_errors`` maps a path to the exception that
    is_likely_not_mount_point raises for it; ``unmount_func`` is called
    with the target of each mount point being unmounted.
    """

    def __init__(self, mount_points: Optional[list[MountPoint]] = None) -> None:
        self.mount_points: list[MountPoint] = list(mount_points or [])
        self.mount_check_errors: dict[str, Optional[BaseException]] = {}
        self.unmount_func: Optional[Callable[[str], None]] = None
        self._log: list[FakeAction] = []
        self._skip_mount_point_check = False
        self._lock = threading.Lock()

    def with_skip_mount_point_check(self) -> "FakeMounter":
        """Make the mounter report that mount point checks may be skipped."""
        self._skip_mount_point_check = True
        return self

    def reset_log(self) -> None:
        """Forget every recorded action."""
        with self._lock:
            self._log = []

    @property
    def log(self) -> list[FakeAction]:
        """The actions recorded so far."""
        with self._lock:
            return list(self._log)

    def mount(self, source, target, fstype, options):
        return self.mount_sensitive(source, target, fstype, options, None)

    def mount_sensitive(self, source, target, fstype, options, sensitive_options):
        with self._lock:
            options = list(options or [])
            if "bind" in options:
                # A bind mount shows the original device as its source,
                # as the kernel's mount table does.
                source = next(
                    (mp.device for mp in self.mount_points if mp.path == source),
                    source,
                )
            abs_target = _eval_symlinks(target)
            self.mount_points.append(
                MountPoint(
                    device=source,
                    path=abs_target,
                    type=fstype,
                    opts=[*options, *(sensitive_options or [])],
                )
            )
            log.debug("Fake mounter: mounted %s to %s", source, abs_target)
            self._log.append(
                FakeAction(FAKE_ACTION_MOUNT, abs_target, source, fstype)
            )

    def mount_sensitive_without_systemd(
        self, source, target, fstype, options, sensitive_options
    ):
        return self.mount_sensitive(source, target, fstype, options, None)

    def mount_sensitive_without_systemd_with_mount_flags(
        self, source, target, fstype, options, sensitive_options, mount_flags
    ):
        return self.mount_sensitive(source, target, fstype, options, None)

    def unmount(self, target):
        with self._lock:
            abs_target = _eval_symlinks(target)
            remaining = []
            for mp in self.mount_points:
                if mp.path == abs_target:
                    if self.unmount_func is not None:
                        self.unmount_func(abs_target)
                    log.debug("Fake mounter: unmounted %s from %s", mp.device, abs_target)
                    continue
                remaining.append(MountPoint(device=mp.device, path=mp.path, type=mp.type))
            self.mount_points = remaining
            self._log.append(FakeAction(FAKE_ACTION_UNMOUNT, abs_target))
            self.mount_check_errors.pop(target, None)

    def list(self):
        with self._lock:
            return self.mount_points

    def is_likely_not_mount_point(self, file):
        with self._lock:
            err = self.mount_check_errors.get(file)
            if err is not None:
                raise err
            os.stat(file)
            abs_file = _eval_symlinks(file)
            mounted = any(mp.path == abs_file for mp in self.mount_points)
            log.debug("isLikelyNotMountPoint for %s: %s", file, not mounted)
            return not mounted

    def can_safely_skip_mount_point_check(self):
        return self._skip_mount_point_check

    def is_mount_point(self, file):
        return not self.is_likely_not_mount_point(file)

    def get_mount_refs(self, pathname):
        # Paths of a fake mount need not exist, so an unresolvable one is used as is.
        return get_mount_refs_by_dev(self, _eval_symlinks(pathname))