"""Path and error helpers for mounts on Windows hosts."""

from __future__ import annotations

import logging
import os
import re

from mountkit.mount import MountPoint

log = logging.getLogger(__name__)

# Network and logon failures that mean a mount is unusable:
# bad netpath, network busy, unexpected net error, netname deleted,
# network access denied, bad device type, bad net name,
# session credential conflict, logon failure, host down.
_CORRUPTED_ERROR_CODES = frozenset({53, 54, 59, 64, 65, 66, 67, 1219, 1326, 10064})

_INTEGER = re.compile(r"[+-]?[0-9]+")
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


def is_corrupted_mnt_windows(err) -> bool:
    """Return True if err reports a corrupted (unreachable) mount."""
    if not isinstance(err, OSError):
        return False
    code = getattr(err, "winerror", None)
    if code is None:
        code = err.errno
    if code in _CORRUPTED_ERROR_CODES:
        log.warning("mount looks corrupted: %s, error code: %s", err, code)
        return True
    return False


def normalize_windows_path(path: str) -> str:
    """Use backslashes throughout and put 'c:' before a rooted path."""
    normalized = path.replace("/", "\\")
    if normalized.startswith("\\"):
        normalized = "c:" + normalized
    return normalized


def validate_disk_number(disk: str) -> None:
    """Raise ValueError unless disk is a decimal integer."""
    if not _INTEGER.fullmatch(disk):
        raise ValueError(f'wrong disk number format: "{disk}": invalid syntax')
    if not _INT64_MIN <= int(disk) <= _INT64_MAX:
        raise ValueError(f'wrong disk number format: "{disk}": value out of range')


def is_mount_point_match_windows(mp: MountPoint, directory: str) -> bool:
    """Return True if the mount point's path is directory."""
    return mp.path == directory


def path_exists_windows(path: str) -> bool:
    """Return whether path exists.

    A missing path gives False; any other failure, corrupted mounts included,
    is raised so that the caller can inspect it.
    """
    try:
        os.stat(path)
    except FileNotFoundError:
        return False
    return True