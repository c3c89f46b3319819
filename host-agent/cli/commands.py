#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
CLI commands module for PD Agent.
This module contains the command-line interface commands for volume operations.
Every command prints one JSON object and exits 0 on success, 1 on failure.
"""
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from backend.mount import LinuxMounter, Mounter
from config import ConfigManager
from models import VolumeSpec
from orchestration import PLUGIN_NAME, PersistentDiskPlugin
from utils.filesystem import make_global_pd_path
from utils.validation import fail, read_json, succeed

logger = logging.getLogger("pd-agent")


class CLICommands:
    """CLI commands handler."""

    def __init__(self, agent_defaults: Dict[str, Any], plugin: Optional[PersistentDiskPlugin] = None):
        defaults = agent_defaults or {}
        if not defaults:
            config = ConfigManager({}).load_agent_config()
            defaults = config.get("defaults", {})
        self.agent_defaults = defaults
        self.config_manager = ConfigManager(self.agent_defaults)
        self._plugin = plugin

    @property
    def plugin(self) -> PersistentDiskPlugin:
        if self._plugin is None:
            self._plugin = self.config_manager.build_plugin()
        return self._plugin

    @property
    def mounter(self) -> Mounter:
        if self._plugin is not None:
            return self._plugin.mounter
        return LinuxMounter()

    def set_up(self, spec_file: Path):
        """Attach a disk and bind mount it into a pod volume directory.
        spec_file: {"pod_uid": "...", "volume": {"name": "...", "persistentDisk": {...}}}
        """
        try:
            obj = read_json(spec_file)
            spec = VolumeSpec.from_dict(obj.get("volume"))
            pd = self.plugin.new_builder(spec, obj.get("pod_uid", ""))
            pd.set_up()
            result = {"status": "success", "path": pd.get_path(), "global_path": pd.global_path}
        except Exception as e:
            logger.error("Volume set up failed: %s", e)
            fail(f"Volume set up failed: {e}")
        succeed(result)

    def tear_down(self, spec_file: Path):
        """Release a pod volume.
        spec_file: {"pod_uid": "...", "volume_name": "..."}
        """
        try:
            obj = read_json(spec_file)
            pd = self.plugin.new_cleaner(obj.get("volume_name", ""), obj.get("pod_uid", ""))
            pd.tear_down()
            result = {"status": "success", "path": pd.get_path(), "detached": pd.pd_name}
        except Exception as e:
            logger.error("Volume tear down failed: %s", e)
            fail(f"Volume tear down failed: {e}")
        succeed(result)

    def global_path(self, pd_name: str):
        """Print the global mount path of a disk."""
        plugin_dir = self.config_manager.host_paths().get_plugin_dir(PLUGIN_NAME)
        try:
            global_path = make_global_pd_path(plugin_dir, pd_name)
        except Exception as e:
            fail(f"Global path lookup failed: {e}")
        succeed({"pd_name": pd_name, "global_path": global_path})

    def mount_refs(self, path: str):
        """Print the other mount points sharing the device mounted at path."""
        try:
            refs = self.mounter.get_mount_refs(path)
        except Exception as e:
            fail(f"Mount refs lookup failed: {e}")
        succeed({"path": path, "refs": refs})
