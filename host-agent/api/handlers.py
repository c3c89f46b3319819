#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
API handlers module for PD Agent.
This module contains the API endpoint handlers for volume operations.
"""
import logging
import threading
from typing import Any, Dict, List

from fastapi import HTTPException

from errors import InvalidMountPathError, VolumeError
from models import SetUpRequest, TearDownRequest, VolumeSpec
from orchestration import PersistentDiskPlugin
from utils.filesystem import make_global_pd_path

logger = logging.getLogger("pd-agent")

VERSION = "1.0.0"


class APIHandlers:

    def __init__(self, plugin: PersistentDiskPlugin):
        self.plugin = plugin
        # Serializes set up and tear down; a cleaner only learns its disk from the mount table.
        self._volume_lock = threading.Lock()

    def healthz(self) -> Dict[str, Any]:
        return {"status": "ok"}

    def v1_version(self) -> Dict[str, Any]:
        return {"status": "success", "version": VERSION, "plugin": self.plugin.name()}

    def v1_set_up(self, req: SetUpRequest) -> Dict[str, Any]:
        """Attach the disk and bind mount it into the pod volume directory."""
        try:
            spec = VolumeSpec.from_dict(req.volume)
            pd = self.plugin.new_builder(spec, req.pod_uid)
            with self._volume_lock:
                pd.set_up()
            return {
                "status": "success",
                "message": f"Volume {spec.name} set up for pod {req.pod_uid}",
                "path": pd.get_path(),
                "global_path": pd.global_path,
            }
        except Exception as e:
            raise self._http_error("Volume set up failed", e)

    def v1_tear_down(self, req: TearDownRequest) -> Dict[str, Any]:
        """Release a pod volume, detaching the disk when no other pod uses it."""
        try:
            pd = self.plugin.new_cleaner(req.volume_name, req.pod_uid)
            with self._volume_lock:
                pd.tear_down()
            response = {
                "status": "success",
                "message": f"Volume {req.volume_name} torn down for pod {req.pod_uid}",
            }
            if pd.pd_name:
                response["pd_name"] = pd.pd_name
            return response
        except Exception as e:
            raise self._http_error("Volume tear down failed", e)

    def v1_global_path(self, pd_name: str) -> Dict[str, Any]:
        if not pd_name:
            raise HTTPException(status_code=400, detail="pd_name is required")
        plugin_dir = self.plugin.host.get_plugin_dir(self.plugin.name())
        try:
            global_path = make_global_pd_path(plugin_dir, pd_name)
        except InvalidMountPathError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return {"status": "success", "pd_name": pd_name, "global_path": global_path}

    def v1_access_modes(self) -> Dict[str, List[str]]:
        return {"access_modes": self.plugin.get_access_modes()}

    @staticmethod
    def _http_error(prefix: str, e: Exception) -> HTTPException:
        logger.exception("%s: %s", prefix, e)
        if isinstance(e, (ValueError, InvalidMountPathError)):
            return HTTPException(status_code=400, detail=str(e))
        if isinstance(e, VolumeError):
            return HTTPException(status_code=500, detail=f"{prefix}: {e}")
        return HTTPException(status_code=500, detail=f"{prefix}: unexpected error: {e}")
