from __future__ import annotations

import enum
import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional

logger = logging.getLogger("pd-agent")


class MountFlags(enum.IntFlag):
    """Flags accepted by Mounter.mount()."""

    BIND = 1
    READ_ONLY = 2


class UnmountFlags(enum.IntFlag):
    """Flags accepted by Mounter.unmount()."""

    FORCE = 1
    LAZY = 2


@dataclass
class MountPoint:
    """One entry of the OS mount table."""

    device: str
    path: str
    fstype: str = ""
    opts: List[str] = field(default_factory=list)


class Mounter(ABC):
    """Common interface for mount table accessors.
    Semantics:
      - is_mount_point(): raise FileNotFoundError when the path is missing, MountQueryError on other I/O errors.
      - mount(): BIND mounts an already mounted tree at a second path; READ_ONLY restricts writes.
      - unmount(): removes one mount table entry; the caller checks the path is mounted first.
      - list(): snapshot of the mount table.
    """

    @abstractmethod
    def mount(
        self,
        source: str,
        target: str,
        fstype: str = "",
        flags: MountFlags = MountFlags(0),
        options: Optional[List[str]] = None,
    ) -> None:
        raise NotImplementedError

    @abstractmethod
    def unmount(self, target: str, flags: UnmountFlags = UnmountFlags(0)) -> None:
        raise NotImplementedError

    @abstractmethod
    def list(self) -> List[MountPoint]:
        raise NotImplementedError

    @abstractmethod
    def is_mount_point(self, path: str) -> bool:
        raise NotImplementedError

    def get_mount_refs(self, path: str) -> List[str]:
        """Return the other mount points that share the device mounted at `path`.

        `path` itself is not part of the result, so a bind mount whose global
        mount is the only other user yields a single reference.
        """
        mount_path = os.path.normpath(path)
        mounts = self.list()
        device = ""
        for mp in mounts:
            if os.path.normpath(mp.path) == mount_path:
                device = mp.device
                break
        if not device:
            logger.warning("Could not determine device for path: %s", mount_path)
            return []
        return [mp.path for mp in mounts if mp.device == device and os.path.normpath(mp.path) != mount_path]
