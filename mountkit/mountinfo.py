"""Parsing of /proc/<pid>/mountinfo and path checks on Unix hosts."""

from __future__ import annotations

import errno
import functools
import logging
import os
import re
from dataclasses import dataclass, field

from mountkit.mount import MountPoint

log = logging.getLogger(__name__)

# Lines of /proc/<pid>/mountinfo carry at least this many fields.
EXPECTED_AT_LEAST_NUM_FIELDS_PER_MOUNT_INFO = 10
# How many times to retry for a consistent read of the mount table.
MAX_LIST_TRIES = 10

_DELETED_SUFFIX = "\\040(deleted)"
_INTEGER = re.compile(r"[+-]?[0-9]+")
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1

_CORRUPTED_ERRNOS = frozenset(
    code
    for code in (
        getattr(errno, name, None)
        for name in (
            "ENOTCONN",
            "ESTALE",
            "EIO",
            "EACCES",
            "EHOSTDOWN",
            "EWOULDBLOCK",
            "ENODEV",
        )
    )
    if code is not None
)


@dataclass
class MountInfo:
    """A single line of /proc/<pid>/mountinfo."""

    id: int = 0
    parent_id: int = 0
    major: int = 0
    minor: int = 0
    root: str = ""
    source: str = ""
    mount_point: str = ""
    optional_fields: list[str] = field(default_factory=list)
    fs_type: str = ""
    mount_options: list[str] = field(default_factory=list)
    super_options: list[str] = field(default_factory=list)


def is_corrupted_mnt(err) -> bool:
    """Return True if err reports a corrupted mount point."""
    if not isinstance(err, OSError):
        return False
    return err.errno in _CORRUPTED_ERRNOS


def _atoi(text: str) -> int:
    if not _INTEGER.fullmatch(text):
        raise ValueError(f'parsing "{text}": invalid syntax')
    value = int(text)
    if not _INT64_MIN <= value <= _INT64_MAX:
        raise ValueError(f'parsing "{text}": value out of range')
    return value


def _atoi_or_zero(text: str) -> int:
    try:
        return _atoi(text)
    except ValueError:
        return 0


def parse_mount_info(filename) -> list[MountInfo]:
    """Parse a mountinfo file into a list of MountInfo.

    Raises OSError when the file cannot be read and ValueError when a line
    is malformed.
    """
    content = _read_mount_info(filename).decode("utf-8", errors="surrogateescape")
    infos = []
    for line in content.split("\n"):
        if not line:
            continue
        fields = line.split()
        if len(fields) < EXPECTED_AT_LEAST_NUM_FIELDS_PER_MOUNT_INFO:
            raise ValueError(
                "wrong number of fields in (expected at least "
                f"{EXPECTED_AT_LEAST_NUM_FIELDS_PER_MOUNT_INFO}, got {len(fields)}): {line}"
            )
        mount_id = _atoi(fields[0])
        parent_id = _atoi(fields[1])
        major_minor = fields[2].split(":")
        if len(major_minor) != 2:
            raise ValueError(
                f"parsing '{line}' failed: unexpected minor:major pair "
                f"[{' '.join(major_minor)}]"
            )
        major_text, minor_text = major_minor
        try:
            major = _atoi(major_text)
        except ValueError as exc:
            raise ValueError(
                f"parsing '{major_text}' failed: unable to parse major device id, err:{exc}"
            ) from exc
        try:
            minor = _atoi(minor_text)
        except ValueError as exc:
            raise ValueError(
                f"parsing '{minor_text}' failed: unable to parse minor device id, err:{exc}"
            ) from exc

        # Everything up to "-" is an optional field.
        try:
            separator = fields.index("-", 6)
        except ValueError:
            separator = len(fields)
        tail = fields[separator + 1:]
        if len(tail) < 3:
            raise ValueError(
                f"expect 3 fields in {line}, got {len(fields) - separator - 1}"
            )
        infos.append(
            MountInfo(
                id=mount_id,
                parent_id=parent_id,
                major=major,
                minor=minor,
                root=fields[3],
                source=tail[1],
                mount_point=fields[4],
                optional_fields=fields[6:separator],
                fs_type=tail[0],
                mount_options=split_mount_options(fields[5]),
                super_options=split_mount_options(tail[2]),
            )
        )
    return infos


def split_mount_options(s: str) -> list[str]:
    """Split comma-separated mount options, keeping commas inside double quotes."""
    options = []
    current: list[str] = []
    in_quotes = False
    for char in s:
        if char == '"':
            in_quotes = not in_quotes
        if char == "," and not in_quotes:
            if current:
                options.append("".join(current))
            current = []
        else:
            current.append(char)
    if current:
        options.append("".join(current))
    return options


def is_mount_point_match(mp: MountPoint, directory: str) -> bool:
    """Return True if mp is mounted at directory, even if it was renamed as deleted."""
    return mp.path.removesuffix(_DELETED_SUFFIX) == directory


def path_exists(path) -> bool:
    """Return whether path exists.

    A missing path gives False. Any other failure is raised, corrupted mounts
    included; a path that stat cannot see but access can is reported as a
    stale file handle.
    """
    try:
        os.stat(path)
    except FileNotFoundError:
        if os.access(path, os.F_OK):
            # Seen on CIFS when the path was removed on the server.
            log.warning("Potential stale file handle detected: %s", path)
            raise OSError(errno.ESTALE, os.strerror(errno.ESTALE), path) from None
        return False
    return True


@functools.lru_cache(maxsize=None)
def kernel_has_mountinfo_bug() -> bool:
    """Return True if the kernel may return incomplete mountinfo (before 5.8)."""
    try:
        release = os.uname().release
    except (AttributeError, OSError):
        return True
    parts = release.split(".", 2)
    if len(parts) != 3:
        return True
    major = _atoi_or_zero(parts[0])
    minor = _atoi_or_zero(parts[1])
    return not (major > 5 or (major == 5 and minor >= 8))


def _read_bytes(path) -> bytes:
    with open(path, "rb") as handle:
        return handle.read()


def _consistent_read(path, attempts: int) -> bytes:
    old = _read_bytes(path)
    for _ in range(attempts):
        new = _read_bytes(path)
        if new == old:
            return new
        old = new
    raise OSError(f"could not get consistent content of {path} after {attempts} attempts")


def _read_mount_info(path) -> bytes:
    if kernel_has_mountinfo_bug():
        return _consistent_read(path, MAX_LIST_TRIES)
    return _read_bytes(path)