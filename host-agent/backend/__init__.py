from typing import Any, Dict, Optional, Union

from .disk import HttpVolumeProvider, RemoteDiskManager
from .mount import LinuxMounter, Mounter, SafeFormatAndMount


def _fail(message: str) -> None:
    """Helper function to raise ValueError with message."""
    raise ValueError(message)


def _verify_option(provider_cfg: Dict[str, Any]) -> Union[bool, str]:
    """TLS verification setting for requests: a CA bundle path, or a bool."""
    ca_file = provider_cfg.get("ca_file")
    if isinstance(ca_file, str) and ca_file.strip():
        return ca_file.strip()
    return bool(provider_cfg.get("verify", True))


def make_volume_provider(defaults: Dict[str, Any]) -> HttpVolumeProvider:
    """
    Factory function to create the remote volume API client.
    Args:
        defaults: agent defaults containing a "provider" section
    Returns:
        HttpVolumeProvider configured from defaults.provider
    Raises:
        ValueError: If required configuration is missing
    """
    provider_cfg = defaults.get("provider") or {}
    url = provider_cfg.get("url") or _fail("provider.url required")
    instance_id = provider_cfg.get("instance_id") or _fail("provider.instance_id required")
    return HttpVolumeProvider(
        url,
        instance_id,
        token=provider_cfg.get("token") or None,
        timeout=int(provider_cfg.get("timeout", 30)),
        verify=_verify_option(provider_cfg),
    )


def make_disk_manager(defaults: Dict[str, Any], mounter: Optional[Mounter] = None) -> RemoteDiskManager:
    """
    Factory function to create the disk manager used by the volume plugin.
    Args:
        defaults: agent defaults ("provider" and optional "attach" sections)
        mounter: mount table accessor; a LinuxMounter when omitted
    Returns:
        RemoteDiskManager formatting blank disks on first mount
    """
    mounter = mounter or LinuxMounter()
    attach_cfg = defaults.get("attach") or {}
    return RemoteDiskManager(
        make_volume_provider(defaults),
        mounter,
        SafeFormatAndMount(mounter),
        device_wait_attempts=int(attach_cfg.get("device_wait_attempts", 10)),
        poll_interval=float(attach_cfg.get("poll_interval", 1.0)),
    )


__all__ = ["make_volume_provider", "make_disk_manager"]
