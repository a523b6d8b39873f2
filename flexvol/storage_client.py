"""
Control-Plane Storage Client

The controller talks to the remote storage control plane through the
StorageClient interface. RemoteStorageClient is the HTTP implementation
used in production; tests inject substitutes.

REST surface (relative to the storage API URL):
- POST /activate: Activate the configured backends
- POST /volumes: Create a volume {"name", "backend", "opts"}
- GET  /volumes: List volumes {"volumes": [...]}
- GET  /volumes/<name>: Get one volume {"volume": {...}}
- PUT  /volumes/<name>/attach: Link the volume on this host {"mountpoint": ...}
- PUT  /volumes/<name>/detach: Unlink the volume on this host

Errors are reported as {"err": "..."} with a non-2xx status.
"""

import abc
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests
from pydantic import ValidationError

from flexvol.errors import (
    FilesetNotLinkedError,
    StorageClientError,
    StorageTransportError,
    VolumeAlreadyExistsError,
    VolumeNotFoundError,
)
from flexvol.models import VolumeMetadata

logger = logging.getLogger(__name__)


class StorageClient(abc.ABC):
    """Operations the controller needs from the control plane"""

    @abc.abstractmethod
    def activate(self) -> None:
        ...

    @abc.abstractmethod
    def create_volume(self, name: str, opts: Dict[str, Any]) -> None:
        ...

    @abc.abstractmethod
    def get_volume(self, name: str) -> VolumeMetadata:
        ...

    @abc.abstractmethod
    def list_volumes(self) -> List[VolumeMetadata]:
        ...

    @abc.abstractmethod
    def attach(self, name: str) -> str:
        """Link the volume on this host and return its source path"""

    @abc.abstractmethod
    def detach(self, name: str) -> None:
        ...


def classify_error(status_code: int, message: str) -> StorageClientError:
    """
    Convert a control-plane error response into a typed error.

    Status codes are preferred; the message checks cover control planes
    that report every failure with the same status.
    """
    text = (message or "").strip()
    lowered = text.lower()

    if status_code == 404 or lowered == "volume not found":
        return VolumeNotFoundError(text or "Volume not found")
    if status_code == 409 or "already exists" in lowered:
        return VolumeAlreadyExistsError(text or "Volume already exists")
    if "fileset not linked" in lowered:
        return FilesetNotLinkedError(text)
    return StorageClientError(text or f"Control plane returned HTTP {status_code}")


class RemoteStorageClient(StorageClient):
    """
    HTTP client for the storage control plane.

    Usage:
        client = RemoteStorageClient(
            storage_api_url="http://10.0.1.1:9999/ubiquity_storage",
            backend="spectrum-scale"
        )
        client.activate()
        source_path = client.attach("vol1")
    """

    def __init__(
        self,
        storage_api_url: str,
        backend: Optional[str] = None,
        timeout: int = 30
    ):
        """
        Args:
            storage_api_url: Control plane base URL
            backend: Backend name sent with create requests (None lets the control plane pick)
            timeout: Per-request timeout in seconds
        """
        self.storage_api_url = storage_api_url.rstrip("/")
        self.backend = backend
        self.timeout = timeout
        logger.info(f"Storage client initialized → {self.storage_api_url}")

    def _url(self, *parts: str) -> str:
        return "/".join([self.storage_api_url] + [quote(part, safe="") for part in parts])

    def _call(self, method: str, url: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Issue one request; return the decoded body or raise a StorageClientError"""
        logger.debug(f"{method} {url}")
        try:
            response = requests.request(method, url, json=payload, timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            logger.error(f"Control plane timeout {url}")
            raise StorageTransportError(f"Timeout calling {url}: {e}") from e
        except requests.exceptions.RequestException as e:
            logger.error(f"Cannot reach control plane {url}: {e}")
            raise StorageTransportError(f"Cannot reach control plane at {url}: {e}") from e

        try:
            body = response.json() if response.content else {}
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        if response.status_code >= 300 or body.get("err"):
            message = body.get("err") or response.text
            logger.debug(f"Control plane error: {response.status_code} {message}")
            raise classify_error(response.status_code, message)

        return body

    def activate(self) -> None:
        self._call("POST", self._url("activate"))

    def create_volume(self, name: str, opts: Dict[str, Any]) -> None:
        payload = {"name": name, "opts": opts}
        if self.backend:
            payload["backend"] = self.backend
        self._call("POST", self._url("volumes"), payload)

    def get_volume(self, name: str) -> VolumeMetadata:
        body = self._call("GET", self._url("volumes", name))
        volume = body.get("volume") or body.get("Volume")
        if not volume:
            raise VolumeNotFoundError("Volume not found")
        return self._volume(volume)

    def list_volumes(self) -> List[VolumeMetadata]:
        body = self._call("GET", self._url("volumes"))
        volumes = body.get("volumes") or body.get("Volumes") or []
        return [self._volume(volume) for volume in volumes]

    @staticmethod
    def _volume(data: Any) -> VolumeMetadata:
        try:
            return VolumeMetadata.model_validate(data)
        except ValidationError as e:
            raise StorageClientError(f"Malformed volume in control plane response: {e}") from e

    def attach(self, name: str) -> str:
        body = self._call("PUT", self._url("volumes", name, "attach"))
        mountpoint = body.get("mountpoint") or body.get("Mountpoint")
        if not mountpoint:
            raise StorageClientError(f"Control plane returned no mountpoint for {name}")
        return mountpoint

    def detach(self, name: str) -> None:
        self._call("PUT", self._url("volumes", name, "detach"))
