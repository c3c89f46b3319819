"""
Mount table accessors for PD agent.
This module provides:
- LinuxMounter: mount(8)/umount(8) backed implementation
- SafeFormatAndMount: formats blank devices before their first mount
- FakeMounter: in-memory mount table used by tests
"""

from .base import Mounter, MountFlags, MountPoint, UnmountFlags
from .fake import FakeAction, FakeMounter
from .linux import LinuxMounter
from .safe_format import SafeFormatAndMount

__all__ = [
    "Mounter",
    "MountFlags",
    "MountPoint",
    "UnmountFlags",
    "LinuxMounter",
    "SafeFormatAndMount",
    "FakeAction",
    "FakeMounter",
]
