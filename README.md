# mountkit

Helpers for working with mounted filesystems from Python.

- `mountkit.mountinfo`: parse `/proc/<pid>/mountinfo` into `MountInfo`
  records (`parse_mount_info`), split mount option strings that may hold
  quoted commas (`split_mount_options`), match mount points whose directory
  was renamed as deleted (`is_mount_point_match`), check whether a path
  exists while telling corrupted mounts apart (`path_exists`,
  `is_corrupted_mnt`), and tell whether the running kernel may return
  incomplete mountinfo (`kernel_has_mountinfo_bug`).
- `mountkit.mount`: the `MountPoint` record, the abstract `Mounter` and
  `ForceUnmounter` interfaces, `MountError` with its `MountErrorType`, and
  helpers that work over any mounter: `get_mount_refs_by_dev`,
  `get_device_name_from_mount`, `is_not_mount_point`. It also builds
  bind-mount and remount options (`make_bind_opts`,
  `make_bind_opts_sensitive`), masks sensitive options for logs
  (`sanitized_options_for_logging`) and checks that one path lies inside
  another (`path_within_base`, `starts_with_backstep`).
- `mountkit.cleanup`: unmount a mount point and remove the directory left
  behind (`cleanup_mount_point`, `cleanup_mount_with_force`,
  `do_cleanup_mount_point`), unmounting corrupted mounts without checking
  them first.
- `mountkit.fake`: `FakeMounter`, a `Mounter` that keeps its mount points in
  memory and records each mount and unmount as a `FakeAction` in its `log`.
- `mountkit.windows`: `normalize_windows_path`, `validate_disk_number`,
  `is_mount_point_match_windows`, `path_exists_windows` and
  `is_corrupted_mnt_windows`.

## Installation

```
pip install mountkit
```

## Examples

Parse the mount table of the current process:

```python
from mountkit.mountinfo import parse_mount_info

for info in parse_mount_info("/proc/self/mountinfo"):
    print(info.id, info.mount_point, info.fs_type, info.mount_options)
```

A malformed line raises `ValueError`; an unreadable file raises `OSError`.

Options for a bind mount that has to be remounted:

```python
from mountkit.mount import make_bind_opts

bind, bind_opts, remount_opts = make_bind_opts(["bind", "ro", "_netdev"])
# True, ["bind", "_netdev"], ["bind", "remount", "ro", "_netdev"]
```

Keep secrets out of log lines:

```python
from mountkit.mount import sanitized_options_for_logging

sanitized_options_for_logging(["ro"], ["password"])  # "ro,<masked>"
```

Clean up a mount point with the fake mounter:

```python
import os
import tempfile

from mountkit.cleanup import cleanup_mount_point
from mountkit.fake import FakeMounter
from mountkit.mount import MountPoint

path = os.path.realpath(tempfile.mkdtemp())
mounter = FakeMounter([MountPoint(device="/dev/sdb", path=path)])
cleanup_mount_point(path, mounter, True)
print(mounter.list())       # []
print(os.path.exists(path))  # False
print(mounter.log)          # [FakeAction(action='unmount', target=path, ...)]
```

Cleanup raises `OSError` when the path cannot be checked or is still a mount
point after unmounting; a path that does not exist is skipped with a warning.

## What this package does not do

There is no mounter that mounts or unmounts real filesystems: `Mounter` and
`ForceUnmounter` are abstract, and `FakeMounter` is the only implementation
included. Nothing here formats a device or checks a filesystem before
mounting it; `MountError` and `MountErrorType` describe such failures for
mounters that do, but no code in the package raises them. There is no
command-line tool.

## Running the tests

```
pip install -e ".[test]"
pytest
```