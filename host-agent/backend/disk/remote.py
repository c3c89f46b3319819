from __future__ import annotations

import logging
import os
import time
from typing import TYPE_CHECKING

from backend.mount import Mounter
from errors import RemoteAttachError, RemoteDetachError
from utils.filesystem import make_dirs, remove_dir

from .base import VolumeProvider

if TYPE_CHECKING:
    from orchestration.persistent_disk import PersistentDisk

logger = logging.getLogger("pd-agent")


class RemoteDiskManager:
    """DiskManager that attaches through the remote volume API and mounts the device globally."""

    def __init__(
        self,
        provider: VolumeProvider,
        mounter: Mounter,
        disk_mounter: Mounter,
        device_wait_attempts: int = 10,
        poll_interval: float = 1.0,
    ):
        self.provider = provider
        self.mounter = mounter
        self.disk_mounter = disk_mounter
        self.device_wait_attempts = max(1, int(device_wait_attempts))
        self.poll_interval = poll_interval

    def attach_and_mount_disk(self, pd: "PersistentDisk", global_path: str) -> None:
        if not pd.pd_name:
            raise RemoteAttachError("Cannot attach a disk without a disk identifier")
        # A global mount means another pod already attached the disk here.
        try:
            mountpoint = self.mounter.is_mount_point(global_path)
        except FileNotFoundError:
            mountpoint = False
        if mountpoint:
            logger.info("Disk %s already attached and mounted at %s", pd.pd_name, global_path)
            return

        device_path = self.provider.attach_disk(pd.pd_name, pd.read_only)
        if pd.partition:
            device_path = device_path + pd.partition
        self._wait_for_device(device_path)

        make_dirs(global_path)
        options = ["ro"] if pd.read_only else []
        try:
            self.disk_mounter.mount(device_path, global_path, pd.fs_type, options=options)
        except Exception:
            try:
                os.rmdir(global_path)
            except OSError as e:
                logger.warning("Failed to remove %s after mount failure: %s", global_path, e)
            raise
        logger.info("Mounted disk %s (%s) at %s", pd.pd_name, device_path, global_path)

    def detach_disk(self, pd: "PersistentDisk") -> None:
        if not pd.pd_name:
            raise RemoteDetachError("Cannot detach a disk without a disk identifier")
        global_path = pd.global_path
        # The global mount should be the only one left.
        self.mounter.unmount(global_path)
        remove_dir(global_path)
        self.provider.detach_disk(pd.pd_name)
        logger.info("Detached disk %s", pd.pd_name)

    def _wait_for_device(self, device_path: str) -> None:
        for attempt in range(1, self.device_wait_attempts + 1):
            try:
                os.stat(device_path)
                return
            except FileNotFoundError:
                pass
            except OSError as e:
                raise RemoteAttachError(f"Failed to stat {device_path}: {e}") from e
            if attempt < self.device_wait_attempts:
                time.sleep(self.poll_interval)
        raise RemoteAttachError(
            f"Could not attach disk: device {device_path} did not appear after {self.device_wait_attempts} checks"
        )
