from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List, Optional, Set

from .base import Mounter, MountFlags, MountPoint, UnmountFlags


@dataclass
class FakeAction:
    """A mount or unmount call recorded by FakeMounter."""

    action: str
    target: str
    source: str = ""
    fstype: str = ""


class FakeMounter(Mounter):
    """In-memory mount table for exercising mount logic without root.
    Paths must exist on the real filesystem for is_mount_point(), so tests can
    observe directory creation and removal.
    """

    def __init__(self, mount_points: Optional[List[MountPoint]] = None):
        self.mount_points: List[MountPoint] = list(mount_points or [])
        self.log: List[FakeAction] = []
        self.mount_error: Optional[Exception] = None
        # when set, a failing mount still adds its entry
        self.mount_error_leaves_mounted = False
        self.unmount_error: Optional[Exception] = None
        # targets that survive unmount()
        self.stuck_mounts: Set[str] = set()

    def mount(
        self,
        source: str,
        target: str,
        fstype: str = "",
        flags: MountFlags = MountFlags(0),
        options: Optional[List[str]] = None,
    ) -> None:
        target = os.path.normpath(target)
        self.log.append(FakeAction("mount", target, source, fstype))
        device = source
        opts = list(options or [])
        if flags & MountFlags.BIND:
            opts.append("bind")
            for mp in self.mount_points:
                if os.path.normpath(mp.path) == os.path.normpath(source):
                    device = mp.device
                    break
        if flags & MountFlags.READ_ONLY:
            opts.append("ro")
        entry = MountPoint(device=device, path=target, fstype=fstype, opts=opts)
        if self.mount_error is not None:
            if self.mount_error_leaves_mounted:
                self.mount_points.append(entry)
            raise self.mount_error
        self.mount_points.append(entry)

    def unmount(self, target: str, flags: UnmountFlags = UnmountFlags(0)) -> None:
        target = os.path.normpath(target)
        self.log.append(FakeAction("unmount", target))
        if self.unmount_error is not None:
            raise self.unmount_error
        if target in self.stuck_mounts:
            return
        self.mount_points = [mp for mp in self.mount_points if os.path.normpath(mp.path) != target]

    def list(self) -> List[MountPoint]:
        return list(self.mount_points)

    def is_mount_point(self, path: str) -> bool:
        os.stat(path)
        path = os.path.normpath(path)
        return any(os.path.normpath(mp.path) == path for mp in self.mount_points)

    def reset_log(self) -> None:
        self.log = []
