"""
Format-on-first-use mounting for freshly attached disks.
"""

import logging
import subprocess
from typing import List, Optional

from errors import MountError, MountQueryError

from .base import Mounter, MountFlags, MountPoint, UnmountFlags
from .linux import run_mount_command

logger = logging.getLogger("pd-agent")

DEFAULT_FSTYPE = "ext4"

# mkfs tools and their "overwrite without asking" flag
MKFS_COMMANDS = {
    "ext4": ["mkfs.ext4", "-F"],
    "ext3": ["mkfs.ext3", "-F"],
    "ext2": ["mkfs.ext2", "-F"],
    "xfs": ["mkfs.xfs", "-f"],
    "btrfs": ["mkfs.btrfs", "-f"],
}


def probe_fstype(device: str) -> str:
    """Return the filesystem (or partition table) type found on `device`, "" if blank."""
    try:
        result = subprocess.run(
            ["blkid", "-p", "-s", "TYPE", "-s", "PTTYPE", "-o", "value", device],
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError as e:
        raise MountQueryError(f"Failed to probe {device}: {e}") from e
    # blkid exits 2 when nothing was found
    if result.returncode == 2:
        return ""
    if result.returncode != 0:
        raise MountQueryError(f"blkid failed on {device}: {result.stderr.strip()}")
    return result.stdout.strip().splitlines()[0] if result.stdout.strip() else ""


def mkfs_device(device: str, fstype: str) -> None:
    """Create a filesystem on a blank device."""
    if fstype not in MKFS_COMMANDS:
        raise MountError(f"Unsupported filesystem type: {fstype}")
    logger.info("Creating %s filesystem on %s", fstype, device)
    run_mount_command(MKFS_COMMANDS[fstype] + [device], MountError)


class SafeFormatAndMount(Mounter):
    """Mounter that formats a blank device before mounting it.
    A device that already carries a filesystem is never formatted, and
    read-only mounts never format.
    """

    def __init__(self, mounter: Mounter):
        self.mounter = mounter

    def mount(
        self,
        source: str,
        target: str,
        fstype: str = "",
        flags: MountFlags = MountFlags(0),
        options: Optional[List[str]] = None,
    ) -> None:
        if flags & MountFlags.READ_ONLY or (options and "ro" in options):
            self.mounter.mount(source, target, fstype, flags, options)
            return
        try:
            self.mounter.mount(source, target, fstype, flags, options)
            return
        except MountError as e:
            existing = probe_fstype(source)
            if existing:
                logger.warning("Mount of %s failed and it already holds %s; not formatting", source, existing)
                raise
            logger.info("Mount of %s failed on a blank device (%s), formatting", source, e)
        mkfs_device(source, fstype or DEFAULT_FSTYPE)
        self.mounter.mount(source, target, fstype or DEFAULT_FSTYPE, flags, options)

    def unmount(self, target: str, flags: UnmountFlags = UnmountFlags(0)) -> None:
        self.mounter.unmount(target, flags)

    def list(self) -> List[MountPoint]:
        return self.mounter.list()

    def is_mount_point(self, path: str) -> bool:
        return self.mounter.is_mount_point(path)
