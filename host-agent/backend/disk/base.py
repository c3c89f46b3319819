from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from orchestration.persistent_disk import PersistentDisk


@runtime_checkable
class DiskManager(Protocol):
    """Minimal contract for disk managers.
    Semantics:
      - attach_and_mount_disk(): attach the disk to this machine and mount it at global_path.
        Must succeed when the disk is already attached and mounted there.
      - detach_disk(): unmount the global path and detach the disk. Only called once no
        local consumer is left; pd.pd_name is always set by then.
    Notes:
      - Failures are raised as-is (RemoteAttachError, RemoteDetachError, MountError, ...).
      - No retries happen here; the caller owns retry policy.
    """

    def attach_and_mount_disk(self, pd: "PersistentDisk", global_path: str) -> None:
        ...

    def detach_disk(self, pd: "PersistentDisk") -> None:
        ...


@runtime_checkable
class VolumeProvider(Protocol):
    """Remote volume API, as seen from this machine."""

    def attach_disk(self, pd_name: str, read_only: bool) -> str:
        """Attach the disk to this instance and return its local device path."""
        ...

    def detach_disk(self, pd_name: str) -> None:
        ...
