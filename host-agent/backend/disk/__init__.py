"""
Disk managers for PD agent.
A disk manager attaches a persistent disk to this machine through the remote
volume API and mounts it at its global path, or reverses both steps.
"""

from .base import DiskManager, VolumeProvider
from .fake import FakeDiskManager
from .provider import HttpVolumeProvider
from .remote import RemoteDiskManager

__all__ = [
    "DiskManager",
    "VolumeProvider",
    "HttpVolumeProvider",
    "RemoteDiskManager",
    "FakeDiskManager",
]
