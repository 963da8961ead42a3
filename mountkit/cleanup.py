"""Unmounting a mount point and removing the directory left behind."""

from __future__ import annotations

import logging
import os
from typing import Callable

from mountkit.mount import ForceUnmounter, Mounter, is_not_mount_point
from mountkit.mountinfo import is_corrupted_mnt, path_exists

log = logging.getLogger(__name__)


def _check_path(mount_path) -> tuple[bool, bool]:
    """Return (exists, corrupted); raise for errors other than a corrupted mount."""
    try:
        return path_exists(mount_path), False
    except OSError as exc:
        if not is_corrupted_mnt(exc):
            raise OSError(exc.errno, f"Error checking path: {exc}") from exc
        return True, True


def cleanup_mount_point(mount_path, mounter: Mounter, extensive_mount_point_check: bool) -> None:
    """Unmount mount_path and delete the directory left behind.

    With extensive_mount_point_check, is_not_mount_point is used instead of
    is_likely_not_mount_point; it costs more but handles bind mounts.
    """
    exists, corrupted = _check_path(mount_path)
    if not exists:
        log.warning("Warning: mount cleanup skipped because path does not exist: %s", mount_path)
        return
    do_cleanup_mount_point(mount_path, mounter, extensive_mount_point_check, corrupted)


def cleanup_mount_with_force(
    mount_path, mounter: ForceUnmounter, extensive_mount_point_check: bool, umount_timeout
) -> None:
    """Like cleanup_mount_point, forcing the unmount after umount_timeout seconds."""
    exists, corrupted = _check_path(mount_path)
    if not exists:
        log.warning("Warning: mount cleanup skipped because path does not exist: %s", mount_path)
        return
    _cleanup(
        mount_path,
        mounter,
        extensive_mount_point_check,
        corrupted,
        lambda path: mounter.unmount_with_force(path, umount_timeout),
    )


def do_cleanup_mount_point(
    mount_path, mounter: Mounter, extensive_mount_point_check: bool, corrupted_mnt: bool
) -> None:
    """Unmount mount_path and delete the directory left behind.

    A corrupted mount, or a mounter that allows it, skips the mount point check.
    """
    _cleanup(mount_path, mounter, extensive_mount_point_check, corrupted_mnt, mounter.unmount)


def _cleanup(
    mount_path,
    mounter: Mounter,
    extensive_mount_point_check: bool,
    corrupted_mnt: bool,
    unmount: Callable[[str], None],
) -> None:
    skip_check = mounter.can_safely_skip_mount_point_check()
    if corrupted_mnt or skip_check:
        log.debug(
            "unmounting %r (corruptedMount: %s, mounterCanSkipMountPointChecks: %s)",
            mount_path, corrupted_mnt, skip_check,
        )
        unmount(mount_path)
        _remove_path(mount_path)
        return

    if _remove_path_if_not_mount_point(mount_path, mounter, extensive_mount_point_check):
        return

    log.debug("%r is a mountpoint, unmounting", mount_path)
    unmount(mount_path)

    if _remove_path_if_not_mount_point(mount_path, mounter, extensive_mount_point_check):
        return
    raise OSError(f"failed to cleanup mount point {mount_path}")


def _remove(path) -> None:
    if os.path.isdir(path) and not os.path.islink(path):
        os.rmdir(path)
    else:
        os.remove(path)


def _remove_path_if_not_mount_point(
    mount_path, mounter: Mounter, extensive_mount_point_check: bool
) -> bool:
    """Remove mount_path if it is not a mount point; return whether it was not one."""
    try:
        if extensive_mount_point_check:
            not_mnt = is_not_mount_point(mounter, mount_path)
        else:
            not_mnt = mounter.is_likely_not_mount_point(mount_path)
    except FileNotFoundError:
        log.debug("%r does not exist", mount_path)
        return True

    if not_mnt:
        log.debug("%r is not a mountpoint, deleting", mount_path)
        _remove(mount_path)
    return not_mnt


def _remove_path(mount_path) -> None:
    log.debug("Deleting path %r", mount_path)
    try:
        _remove(mount_path)
    except FileNotFoundError:
        log.debug("%r does not exist", mount_path)