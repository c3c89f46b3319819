from __future__ import annotations

import os
from typing import TYPE_CHECKING, List, Optional, Tuple

from backend.mount import FakeMounter

if TYPE_CHECKING:
    from orchestration.persistent_disk import PersistentDisk


class FakeDiskManager:
    """DiskManager that records calls and mounts a pretend device on a FakeMounter."""

    def __init__(self, mounter: Optional[FakeMounter] = None):
        self.mounter = mounter
        self.attach_calls: List[Tuple[str, str]] = []
        self.detach_calls: List[str] = []
        self.attach_error: Optional[Exception] = None
        self.detach_error: Optional[Exception] = None

    def attach_and_mount_disk(self, pd: "PersistentDisk", global_path: str) -> None:
        self.attach_calls.append((pd.pd_name, global_path))
        if self.attach_error is not None:
            raise self.attach_error
        os.makedirs(global_path, 0o750, exist_ok=True)
        if self.mounter is not None and not self.mounter.is_mount_point(global_path):
            self.mounter.mount(f"/dev/fake/{os.path.basename(global_path)}", global_path, pd.fs_type)

    def detach_disk(self, pd: "PersistentDisk") -> None:
        self.detach_calls.append(pd.pd_name)
        if self.detach_error is not None:
            raise self.detach_error
        global_path = pd.global_path
        if self.mounter is not None and os.path.isdir(global_path) and self.mounter.is_mount_point(global_path):
            self.mounter.unmount(global_path)
        if os.path.isdir(global_path):
            os.rmdir(global_path)
