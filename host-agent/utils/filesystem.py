#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Filesystem utilities module for PD Agent.
This module contains the on-disk layout of the agent (plugin and pod volume
directories), the mapping between disk identifiers and their global mount
paths, and directory helpers that report failures as FilesystemError.
"""
import logging
import os
from pathlib import Path

from errors import FilesystemError, InvalidMountPathError

logger = logging.getLogger("pd-agent")

MOUNT_DIR_MODE = 0o750


def escape_qualified_name_for_disk(name: str) -> str:
    """Make a qualified plugin name ("vendor.io/name") usable as one path segment."""
    return name.replace("/", "~")


class HostPaths:
    """Directory layout of the agent under its root directory:
    <root>/plugins/<escaped plugin name>/... and
    <root>/pods/<pod uid>/volumes/<escaped plugin name>/<volume name>.
    """

    def __init__(self, root_dir: str):
        if not root_dir:
            raise ValueError("root_dir is required")
        self.root_dir = Path(root_dir)

    def get_plugin_dir(self, plugin_name: str) -> str:
        return str(self.root_dir / "plugins" / escape_qualified_name_for_disk(plugin_name))

    def get_pod_volume_dir(self, pod_uid: str, plugin_name: str, volume_name: str) -> str:
        return str(
            self.root_dir / "pods" / pod_uid / "volumes" / escape_qualified_name_for_disk(plugin_name) / volume_name
        )


def make_global_pd_path(plugin_dir: str, pd_name: str) -> str:
    """Return the single global mount path of a disk.
    Raise InvalidMountPathError if the name would leave <plugin_dir>/mounts.
    """
    # Clean up the URI to be more fs-friendly
    name = pd_name.replace("://", "/")
    segments = [s for s in name.split("/") if s not in ("", ".")]
    if not segments or ".." in segments:
        raise InvalidMountPathError(f"Invalid disk identifier: {pd_name!r}")
    return os.path.normpath(os.path.join(plugin_dir, "mounts", name.lstrip("/")))


def pd_name_from_global_path(plugin_dir: str, global_path: str) -> str:
    """Recover the disk identifier from a global mount path.
    Raise InvalidMountPathError if the path is not strictly below <plugin_dir>/mounts.
    """
    base_path = os.path.join(plugin_dir, "mounts")
    if os.path.isabs(base_path) != os.path.isabs(global_path) or ".." in global_path.split(os.sep):
        raise InvalidMountPathError(f"Unexpected mount path: {global_path}")
    try:
        rel = os.path.relpath(global_path, base_path)
    except ValueError as e:
        raise InvalidMountPathError(f"Unexpected mount path: {global_path}: {e}") from e
    if rel == "." or ".." in rel.split(os.sep):
        raise InvalidMountPathError(f"Unexpected mount path: {global_path}")
    # Reverse the :// replacement done in make_global_pd_path
    name = rel
    if name.startswith("aws/"):
        name = name.replace("aws/", "aws://", 1)
    return name


def make_dirs(path: str, mode: int = MOUNT_DIR_MODE) -> None:
    """Create a directory and its parents if absent."""
    try:
        os.makedirs(path, mode, exist_ok=True)
    except OSError as e:
        raise FilesystemError(f"Failed to create directory {path}: {e}") from e


def remove_dir(path: str) -> None:
    """Remove an empty directory."""
    try:
        os.rmdir(path)
    except OSError as e:
        raise FilesystemError(f"Failed to remove directory {path}: {e}") from e
    logger.debug("Removed directory %s", path)
