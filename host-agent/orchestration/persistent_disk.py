#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Persistent disk volume module for PD Agent.
This module attaches a persistent disk, mounts it at its global path and
bind-mounts it into a pod volume directory, and reverses those steps once
the last pod using the disk lets go of it.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from backend.mount import Mounter, MountFlags
from errors import InvalidMountPathError, UnexpectedMountStateError
from utils.filesystem import make_dirs, make_global_pd_path, pd_name_from_global_path, remove_dir

if TYPE_CHECKING:
    from backend.disk import DiskManager
    from .plugin import VolumeHost

logger = logging.getLogger("pd-agent")


class PersistentDisk:
    """One persistent disk volume as used by one pod.

    Builders carry the disk identifier; cleaners are created with pd_name=None and
    learn it from the mount table during tear down.
    """

    def __init__(
        self,
        *,
        host: "VolumeHost",
        plugin_name: str,
        pod_uid: str,
        volume_name: str,
        manager: "DiskManager",
        mounter: Mounter,
        pd_name: Optional[str] = None,
        fs_type: str = "",
        partition: str = "",
        read_only: bool = False,
    ):
        self.host = host
        self.plugin_name = plugin_name
        self.pod_uid = pod_uid
        self.volume_name = volume_name
        # Unique name of the disk, used to find the disk resource in the provider.
        self.pd_name = pd_name
        # Filesystem type, optional.
        self.fs_type = fs_type
        # Partition to mount, "" for the whole device.
        self.partition = partition
        self.read_only = read_only
        # Attaches/detaches through the provider and owns the global mount.
        self.manager = manager
        # Mount table accessor used for the per-pod bind mount.
        self.mounter = mounter

    def __repr__(self) -> str:
        return f"PersistentDisk(pd_name={self.pd_name!r}, pod_uid={self.pod_uid!r}, volume={self.volume_name!r})"

    @property
    def plugin_dir(self) -> str:
        return self.host.get_plugin_dir(self.plugin_name)

    @property
    def global_path(self) -> str:
        if not self.pd_name:
            raise ValueError(f"Disk identifier of volume {self.volume_name} is not known")
        return make_global_pd_path(self.plugin_dir, self.pd_name)

    def get_path(self) -> str:
        return self.host.get_pod_volume_dir(self.pod_uid, self.plugin_name, self.volume_name)

    def set_up(self) -> None:
        """Attach the disk and bind mount it to the pod volume path."""
        self.set_up_at(self.get_path())

    def set_up_at(self, target: str) -> None:
        """Attach the disk and bind mount it to `target`."""
        try:
            mountpoint = self.mounter.is_mount_point(target)
        except FileNotFoundError:
            mountpoint = False
        logger.debug("PersistentDisk set up: %s mountpoint=%s", target, mountpoint)
        if mountpoint:
            return

        global_path = self.global_path
        self.manager.attach_and_mount_disk(self, global_path)

        flags = MountFlags.BIND
        if self.read_only:
            flags |= MountFlags.READ_ONLY

        try:
            make_dirs(target)
        except Exception:
            self._detach_disk_log_error()
            raise

        # Bind mount the global path so several pods can share the same disk.
        try:
            self.mounter.mount(global_path, target, "", flags)
        except Exception as err:
            self._rollback_bind_mount(target, err)
            raise
        logger.info("Volume %s of pod %s set up at %s", self.volume_name, self.pod_uid, target)

    def _rollback_bind_mount(self, target: str, err: Exception) -> None:
        """Undo a failed bind mount. Returning lets the caller raise `err`."""
        try:
            mountpoint = self.mounter.is_mount_point(target)
        except Exception as e:
            logger.error("Mount point check failed: %s", e)
            return
        if mountpoint:
            try:
                self.mounter.unmount(target)
            except Exception as e:
                logger.error("Failed to unmount %s: %s", target, e)
                return
            try:
                mountpoint = self.mounter.is_mount_point(target)
            except Exception as e:
                logger.error("Mount point check failed: %s", e)
                return
            if mountpoint:
                # Left for the next sync loop.
                state_err = UnexpectedMountStateError(f"{target} is still mounted, despite call to unmount()")
                logger.error("%s. Will try again next sync loop.", state_err)
                raise err from state_err
        try:
            remove_dir(target)
        except Exception as e:
            logger.warning("Failed to remove %s after failed bind mount: %s", target, e)
        self._detach_disk_log_error()

    def _detach_disk_log_error(self) -> None:
        try:
            self.manager.detach_disk(self)
        except Exception as e:
            logger.warning("Failed to detach disk: %r (%s)", self, e)

    def tear_down(self) -> None:
        """Unmount the bind mount, and detach the disk if this was its last user."""
        self.tear_down_at(self.get_path())

    def tear_down_at(self, target: str) -> None:
        """Unmount the bind mount at `target`, and detach the disk if this was its last user."""
        try:
            mountpoint = self.mounter.is_mount_point(target)
        except FileNotFoundError:
            logger.debug("%s does not exist, nothing to tear down", target)
            return
        if not mountpoint:
            logger.info("%s is not a mount point, deleting", target)
            remove_dir(target)
            return

        # Gather refs before unmounting, which drops target from the table.
        refs = self.mounter.get_mount_refs(target)
        self.mounter.unmount(target)
        logger.info("Unmounted %s (remaining refs: %s)", target, refs)

        # A single ref is the global mount itself: no other pod uses the disk.
        if len(refs) == 1:
            pd_name = pd_name_from_global_path(self.plugin_dir, refs[0])
            if self.pd_name is None:
                self.pd_name = pd_name
            elif self.pd_name != pd_name:
                raise InvalidMountPathError(
                    f"{target} is backed by {refs[0]}, which does not belong to disk {self.pd_name}"
                )
            self.manager.detach_disk(self)

        if not self.mounter.is_mount_point(target):
            remove_dir(target)
        else:
            logger.warning("%s is still mounted after unmount; leaving it for the next pass", target)
