# Orchestration module for persistent disk volumes
from .persistent_disk import PersistentDisk
from .plugin import PLUGIN_NAME, PersistentDiskPlugin, VolumeHost

__all__ = ["PersistentDisk", "PersistentDiskPlugin", "VolumeHost", "PLUGIN_NAME"]
