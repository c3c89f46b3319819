#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Error types for the PD agent.
Every failure raised by the disk manager, the mounter or the persistent disk
volume derives from VolumeError so callers can catch the whole family.
"""


class VolumeError(Exception):
    """Generic persistent disk volume error."""

    pass


class RemoteAttachError(VolumeError):
    """The remote volume API refused or failed to attach the disk."""


class RemoteDetachError(VolumeError):
    """The remote volume API refused or failed to detach the disk."""


class MountError(VolumeError):
    """A mount(8) call failed."""


class UnmountError(VolumeError):
    """An umount(8) call failed."""


class MountQueryError(VolumeError):
    """The mount table or a mount point could not be inspected.

    A missing path is not reported with this error; it raises FileNotFoundError.
    """


class FilesystemError(VolumeError):
    """Creating or removing a mount directory failed."""


class InvalidMountPathError(VolumeError):
    """A global mount path does not map back to a disk identifier."""


class UnexpectedMountStateError(VolumeError):
    """A path is still mounted after a successful unmount."""
