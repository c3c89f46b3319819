import logging
import os
import subprocess
from typing import List, Optional, Type

import psutil

from errors import MountError, MountQueryError, UnmountError, VolumeError

from .base import Mounter, MountFlags, MountPoint, UnmountFlags

logger = logging.getLogger("pd-agent")


def run_mount_command(cmd: List[str], error_cls: Type[VolumeError]) -> None:
    """Run a mount utility, mapping any failure to `error_cls`."""
    logger.debug("Running: %s", " ".join(cmd))
    try:
        subprocess.run(cmd, check=True, capture_output=True, text=True)
    except subprocess.CalledProcessError as e:
        detail = (e.stderr or "").strip() or f"exit status {e.returncode}"
        raise error_cls(f"'{' '.join(cmd)}' failed: {detail}") from e
    except OSError as e:
        raise error_cls(f"'{' '.join(cmd)}' could not be executed: {e}") from e


class LinuxMounter(Mounter):
    """Mounter backed by mount(8), umount(8) and /proc/self/mounts."""

    def mount(
        self,
        source: str,
        target: str,
        fstype: str = "",
        flags: MountFlags = MountFlags(0),
        options: Optional[List[str]] = None,
    ) -> None:
        bind = bool(flags & MountFlags.BIND)
        read_only = bool(flags & MountFlags.READ_ONLY)
        opts = list(options or [])
        cmd = ["mount"]
        if bind:
            cmd.append("--bind")
        elif read_only and "ro" not in opts:
            opts.append("ro")
        if fstype:
            cmd.extend(["-t", fstype])
        if opts:
            cmd.extend(["-o", ",".join(opts)])
        cmd.extend([source, target])
        logger.info("Mounting %s on %s (fstype=%s, flags=%s)", source, target, fstype or "auto", flags)
        run_mount_command(cmd, MountError)
        if bind and read_only:
            # the kernel ignores "ro" on the initial bind; it takes a remount
            try:
                run_mount_command(["mount", "-o", "remount,bind,ro", target], MountError)
            except MountError:
                try:
                    self.unmount(target)
                except UnmountError as e:
                    logger.warning("Failed to undo bind mount on %s: %s", target, e)
                raise

    def unmount(self, target: str, flags: UnmountFlags = UnmountFlags(0)) -> None:
        cmd = ["umount"]
        if flags & UnmountFlags.FORCE:
            cmd.append("-f")
        if flags & UnmountFlags.LAZY:
            cmd.append("-l")
        cmd.append(target)
        logger.info("Unmounting %s", target)
        run_mount_command(cmd, UnmountError)

    def list(self) -> List[MountPoint]:
        try:
            partitions = psutil.disk_partitions(all=True)
        except OSError as e:
            raise MountQueryError(f"Failed to read the mount table: {e}") from e
        return [
            MountPoint(
                device=part.device,
                path=part.mountpoint,
                fstype=part.fstype,
                opts=[o for o in (part.opts or "").split(",") if o],
            )
            for part in partitions
        ]

    def is_mount_point(self, path: str) -> bool:
        abs_path = os.path.abspath(path)
        try:
            st = os.stat(abs_path)
            parent = os.stat(os.path.dirname(abs_path))
        except FileNotFoundError:
            raise
        except OSError as e:
            raise MountQueryError(f"Failed to stat {abs_path}: {e}") from e
        if st.st_dev != parent.st_dev:
            return True
        # a bind mount from the same filesystem keeps st_dev
        real = os.path.realpath(abs_path)
        return any(os.path.normpath(mp.path) == real for mp in self.list())
