"""
HTTP client for the remote volume API.
The API attaches block volumes to compute instances:

    POST   {url}/v1/instances/{instance_id}/volumes               {"volume_id", "read_only"}
    DELETE {url}/v1/instances/{instance_id}/volumes/{volume_id}

A successful attach answers with {"device": "/dev/..."}.
"""

import logging
from typing import Any, Dict, Optional, Type, Union
from urllib.parse import quote

import requests

from errors import RemoteAttachError, RemoteDetachError, VolumeError

logger = logging.getLogger("pd-agent")


class HttpVolumeProvider:
    """VolumeProvider speaking JSON over HTTP(S)."""

    def __init__(
        self,
        base_url: str,
        instance_id: str,
        token: Optional[str] = None,
        timeout: int = 30,
        verify: Union[bool, str] = True,
    ) -> None:
        if not base_url:
            raise ValueError("Volume API url is required")
        if not instance_id:
            raise ValueError("Instance id is required")
        if "://" not in base_url:
            base_url = f"http://{base_url}"
        self.base_url = base_url.rstrip("/")
        self.instance_id = instance_id
        self.token = token
        self.timeout = int(timeout or 30)
        self.verify = verify

    def attach_disk(self, pd_name: str, read_only: bool) -> str:
        logger.info("Attaching disk %s to instance %s (read_only=%s)", pd_name, self.instance_id, read_only)
        data = self._call(
            "POST",
            self._volumes_url(),
            RemoteAttachError,
            json_body={"volume_id": pd_name, "read_only": bool(read_only)},
        )
        device = data.get("device")
        if not isinstance(device, str) or not device.strip():
            raise RemoteAttachError(f"Volume API returned no device for {pd_name}")
        return device.strip()

    def detach_disk(self, pd_name: str) -> None:
        logger.info("Detaching disk %s from instance %s", pd_name, self.instance_id)
        self._call("DELETE", f"{self._volumes_url()}/{quote(pd_name, safe='')}", RemoteDetachError)

    def _volumes_url(self) -> str:
        return f"{self.base_url}/v1/instances/{quote(self.instance_id, safe='')}/volumes"

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _call(
        self,
        method: str,
        url: str,
        error_cls: Type[VolumeError],
        json_body: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Perform a request and return its JSON body, raising error_cls on any failure."""
        try:
            resp = requests.request(
                method,
                url,
                json=json_body,
                headers=self._headers(),
                timeout=self.timeout,
                verify=self.verify,
            )
        except requests.exceptions.RequestException as e:
            raise error_cls(f"HTTP error contacting volume API: {e}") from e
        try:
            data = resp.json()
        except ValueError:
            data = {"raw": resp.text[:500]}
        if resp.status_code >= 400:
            msg = data.get("error") or data.get("raw") if isinstance(data, dict) else str(data)
            raise error_cls(f"Volume API error ({resp.status_code}): {msg}")
        return data if isinstance(data, dict) else {}
