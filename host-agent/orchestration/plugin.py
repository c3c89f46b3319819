#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Volume plugin module for PD Agent.
This module turns workload volume specs into PersistentDisk builders and cleaners.
"""
from __future__ import annotations

import logging
from typing import List, Optional, Protocol, runtime_checkable

from backend.disk import DiskManager
from backend.mount import Mounter
from models import VolumeSpec
from utils.validation import validate_name

from .persistent_disk import PersistentDisk

logger = logging.getLogger("pd-agent")

PLUGIN_NAME = "storage.io/aws-pd"


@runtime_checkable
class VolumeHost(Protocol):
    """Directories the host hands out to volume plugins."""

    def get_plugin_dir(self, plugin_name: str) -> str:
        ...

    def get_pod_volume_dir(self, pod_uid: str, plugin_name: str, volume_name: str) -> str:
        ...


class PersistentDiskPlugin:
    """Volume plugin for persistent disks.
    The disk manager and mounter are injected so every volume the plugin
    creates talks to the same provider and mount table.
    """

    def __init__(self, manager: DiskManager, mounter: Mounter, host: Optional[VolumeHost] = None):
        self.manager = manager
        self.mounter = mounter
        self.host = host

    def init(self, host: VolumeHost) -> None:
        self.host = host

    def name(self) -> str:
        return PLUGIN_NAME

    def can_support(self, spec: VolumeSpec) -> bool:
        return spec.persistentDisk is not None

    def get_access_modes(self) -> List[str]:
        return ["ReadWriteOnce"]

    def new_builder(self, spec: VolumeSpec, pod_uid: str) -> PersistentDisk:
        """Return a volume able to set up `spec` for the pod."""
        if not self.can_support(spec):
            raise ValueError(f"Volume {spec.name} is not a persistent disk volume")
        validate_name("pod UID", pod_uid)
        validate_name("volume", spec.name)
        source = spec.persistentDisk
        partition = str(source.partition) if source.partition else ""
        return PersistentDisk(
            host=self._require_host(),
            plugin_name=PLUGIN_NAME,
            pod_uid=pod_uid,
            volume_name=spec.name,
            manager=self.manager,
            mounter=self.mounter,
            pd_name=source.pdName,
            fs_type=source.fsType,
            partition=partition,
            read_only=source.readOnly,
        )

    def new_cleaner(self, volume_name: str, pod_uid: str) -> PersistentDisk:
        """Return a volume able to tear down a pod volume; its disk is found from the mount table."""
        validate_name("pod UID", pod_uid)
        validate_name("volume", volume_name)
        return PersistentDisk(
            host=self._require_host(),
            plugin_name=PLUGIN_NAME,
            pod_uid=pod_uid,
            volume_name=volume_name,
            manager=self.manager,
            mounter=self.mounter,
        )

    def _require_host(self) -> VolumeHost:
        if self.host is None:
            raise RuntimeError("Volume plugin used before init()")
        return self.host
