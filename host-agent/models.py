#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Data models for PD Agent.
This module contains the data classes used throughout the application.
"""
import dataclasses
from typing import Any, Dict, Optional

from pydantic import BaseModel


@dataclasses.dataclass
class PersistentDiskSource:
    """Persistent disk reference taken from a workload volume."""

    pdName: str
    fsType: str = ""
    # 0 means the whole device
    partition: int = 0
    readOnly: bool = False


@dataclasses.dataclass
class VolumeSpec:
    """A named workload volume, optionally backed by a persistent disk."""

    name: str
    persistentDisk: Optional[PersistentDiskSource] = None

    @classmethod
    def from_dict(cls, obj: Dict[str, Any]) -> "VolumeSpec":
        """Build a VolumeSpec from its JSON form. Raise ValueError on error."""
        if not isinstance(obj, dict):
            raise ValueError("volume must be a JSON object")
        name = obj.get("name")
        if not isinstance(name, str) or not name.strip():
            raise ValueError("volume.name is required")
        source = obj.get("persistentDisk")
        if source is None:
            return cls(name=name)
        if not isinstance(source, dict):
            raise ValueError("volume.persistentDisk must be a JSON object")
        pd_name = source.get("pdName")
        if not isinstance(pd_name, str) or not pd_name.strip():
            raise ValueError("volume.persistentDisk.pdName is required")
        if ".." in pd_name.replace("://", "/").split("/"):
            raise ValueError(f"Invalid pdName '{pd_name}': '..' segments are not allowed")
        try:
            partition = int(source.get("partition") or 0)
        except (TypeError, ValueError):
            raise ValueError(f"Invalid partition '{source.get('partition')}'")
        if partition < 0:
            raise ValueError(f"Invalid partition '{partition}'")
        return cls(
            name=name,
            persistentDisk=PersistentDiskSource(
                pdName=pd_name.strip(),
                fsType=source.get("fsType") or "",
                partition=partition,
                readOnly=bool(source.get("readOnly", False)),
            ),
        )


class SetUpRequest(BaseModel):
    """FastAPI model for attaching a volume to a pod."""

    pod_uid: str
    volume: Dict[str, Any]


class TearDownRequest(BaseModel):
    """FastAPI model for releasing a pod volume."""

    pod_uid: str
    volume_name: str
