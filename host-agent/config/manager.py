#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Configuration management module for PD Agent.
This module handles agent configuration loading and builds the volume
plugin (disk manager, mounter, host paths) from the loaded defaults.
"""
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from backend import make_disk_manager
from backend.disk import DiskManager
from backend.mount import LinuxMounter, Mounter
from orchestration import PersistentDiskPlugin
from utils.filesystem import HostPaths
from utils.validation import deep_update

logger = logging.getLogger("pd-agent")

DEFAULT_CONFIG_PATH = "/etc/pd-agent/agent.json"
DEFAULT_ROOT_DIR = "/var/lib/kubelet"


class ConfigManager:
    """Manager for configuration operations."""

    def __init__(self, agent_defaults: Dict[str, Any]):
        self.agent_defaults = agent_defaults

    def load_agent_config(self) -> Dict[str, Any]:
        """Load agent config.
        Precedence: env > JSON file (PD_AGENT_CONFIG) > built-in defaults for bind host/port.
        - defaults.host.root_dir (default /var/lib/kubelet)
        - defaults.provider.url / instance_id (build_plugin() raises ValueError at startup when missing)
        - defaults.attach.device_wait_attempts / poll_interval
        On any parse/syntax error the agent will NOT start.
        """
        cfg: Dict[str, Any] = {
            "bind_host": "0.0.0.0",
            "bind_port": 8090,
            "defaults": {
                "host": {"root_dir": DEFAULT_ROOT_DIR},
                "provider": {},
                "attach": {"device_wait_attempts": 10, "poll_interval": 1.0},
            },
            "logging": {"level": "INFO"},
        }
        cfg_path = os.environ.get("PD_AGENT_CONFIG", DEFAULT_CONFIG_PATH)
        p = Path(cfg_path)
        if p.exists():
            with p.open("r", encoding="utf-8") as f:
                try:
                    file_cfg = json.load(f)
                except json.JSONDecodeError as e:
                    # Fail fast: do not start with an invalid config
                    raise RuntimeError(f"Invalid JSON in PD_AGENT_CONFIG='{cfg_path}': {e}") from e
            if not isinstance(file_cfg, dict):
                raise RuntimeError(f"PD_AGENT_CONFIG='{cfg_path}' must contain a JSON object")
            deep_update(cfg, file_cfg)
        else:
            logger.info("Config file %s not found, using defaults", cfg_path)
        if os.environ.get("PD_AGENT_BIND_HOST"):
            cfg["bind_host"] = os.environ["PD_AGENT_BIND_HOST"]
        if os.environ.get("PD_AGENT_BIND_PORT"):
            cfg["bind_port"] = os.environ["PD_AGENT_BIND_PORT"]
        try:
            cfg["bind_port"] = int(cfg["bind_port"])
        except (TypeError, ValueError) as e:
            raise RuntimeError(f"Invalid bind_port '{cfg['bind_port']}'") from e
        # Ensure sub-sections exist
        if not isinstance(cfg.get("defaults"), dict):
            cfg["defaults"] = {}
        for key in ["host", "provider", "attach"]:
            if not isinstance(cfg["defaults"].get(key), dict):
                cfg["defaults"][key] = {}
        if not cfg["defaults"]["host"].get("root_dir"):
            cfg["defaults"]["host"]["root_dir"] = DEFAULT_ROOT_DIR
        return cfg

    def host_paths(self) -> HostPaths:
        """Directory layout rooted at defaults.host.root_dir."""
        root_dir = self.agent_defaults.get("host", {}).get("root_dir") or DEFAULT_ROOT_DIR
        return HostPaths(root_dir)

    def build_plugin(
        self,
        manager: Optional[DiskManager] = None,
        mounter: Optional[Mounter] = None,
    ) -> PersistentDiskPlugin:
        """Wire the persistent disk plugin from the agent defaults.
        `manager` and `mounter` override the real implementations (tests, dry runs).
        """
        mounter = mounter or LinuxMounter()
        if manager is None:
            manager = make_disk_manager(self.agent_defaults, mounter)
        plugin = PersistentDiskPlugin(manager, mounter)
        plugin.init(self.host_paths())
        logger.info("Persistent disk plugin %s ready (root_dir=%s)", plugin.name(), self.host_paths().root_dir)
        return plugin
