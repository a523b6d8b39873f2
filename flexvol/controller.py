"""
FlexVol Controller

Implements the volume lifecycle operations requested by the node agent.
Each operation calls the control plane through an injected StorageClient,
reconciles the host filesystem where needed, and always returns a
FlexVolumeResponse; no error escapes to the caller.

Operations:
- initialize: Activate the control plane backends
- attach: Ensure the volume exists (create on first use)
- get_volume_name: Echo the cluster-unique volume name
- wait_for_attach / is_attached: Report the volume as attached
- detach: No-op; unlinking happens on unmount
- mount: Attach on this host and link into the pod mount path
- unmount: Find the volume by mount path and detach it
"""

import logging
from typing import Any, Mapping, Optional, Union

from pydantic import ValidationError

from flexvol.errors import (
    FilesetNotLinkedError,
    StorageClientError,
    VolumeAlreadyExistsError,
    VolumeNotFoundError,
)
from flexvol.models import (
    AttachRequest,
    DetachRequest,
    FlexVolumeResponse,
    GetVolumeNameRequest,
    MountRequest,
    UnmountRequest,
)
from flexvol.reconciler import FilesystemReconciler
from flexvol.resolver import get_volume_for_mountpoint
from flexvol.storage_client import StorageClient

logger = logging.getLogger(__name__)

OptionsRequest = Union[Mapping[str, Any], AttachRequest]


class Controller:
    """
    Volume lifecycle orchestration.

    Usage:
        controller = Controller(RemoteStorageClient(storage_api_url))
        response = controller.attach({"volumeName": "vol1", "size": "1"})
        print(response.to_json())
    """

    def __init__(self, client: StorageClient, reconciler: Optional[FilesystemReconciler] = None):
        """
        Args:
            client: Control plane client
            reconciler: Host filesystem reconciler used by mount
        """
        self.client = client
        self.reconciler = reconciler or FilesystemReconciler()

    def initialize(self) -> FlexVolumeResponse:
        logger.debug("controller-activate-start")
        try:
            self.client.activate()
        except StorageClientError as e:
            logger.error(f"Plugin init failed: {e}")
            return FlexVolumeResponse.failure(f"Plugin init failed: {e}")

        logger.info("Plugin initialized")
        return FlexVolumeResponse.success("Plugin init successfully")

    def attach(self, request: OptionsRequest) -> FlexVolumeResponse:
        """
        Ensure the requested volume exists on the control plane.

        An existing volume is never re-created. A creation race lost to a
        concurrent creator counts as success.
        """
        logger.debug("controller-attach-start")
        logger.info(f"attach-details {dict(request) if isinstance(request, Mapping) else request}")

        try:
            attach_request = request if isinstance(request, AttachRequest) else AttachRequest.model_validate(request)
        except ValidationError:
            logger.error(f"Failed to attach volume, volumeName not found in {request}")
            return FlexVolumeResponse.failure(f"Failed to attach volume: volumeName not found in request {request}")

        volume_name = attach_request.volume_name
        opts = attach_request.options()
        logger.debug(f"Found opts for attach request: {opts}")

        try:
            self.client.get_volume(volume_name)
            logger.info(f"Volume {volume_name} already exists")
            return FlexVolumeResponse.success("Volume already attached", device=volume_name)
        except VolumeNotFoundError:
            logger.info(f"Volume {volume_name} not found, creating it")
        except StorageClientError as e:
            logger.error(f"Failed checking volume {volume_name}: {e}")
            return FlexVolumeResponse.failure("Failed checking volume", device=volume_name)

        try:
            self.client.create_volume(volume_name, opts)
        except VolumeAlreadyExistsError:
            logger.info(f"Volume {volume_name} was created concurrently")
            return FlexVolumeResponse.success("Volume already attached", device=volume_name)
        except StorageClientError as e:
            logger.error(f"Failed to attach volume {volume_name}: {e}")
            return FlexVolumeResponse.failure(f"Failed to attach volume: {e}", device=volume_name)

        logger.info(f"Volume {volume_name} created")
        return FlexVolumeResponse.success("Volume attached successfully", device=volume_name)

    def get_volume_name(self, request: Mapping[str, Any]) -> FlexVolumeResponse:
        logger.debug("controller-getvolumename-start")
        try:
            name_request = GetVolumeNameRequest.model_validate(request)
        except ValidationError:
            return FlexVolumeResponse.failure("Failed getting volumeName")

        return FlexVolumeResponse.success("Volume Name retrieved", volume_name=name_request.volume_name)

    def wait_for_attach(self, request: Optional[Mapping[str, Any]] = None) -> FlexVolumeResponse:
        """The control plane attaches synchronously, so there is nothing to wait for"""
        logger.debug("controller-waitforattach-start")
        return FlexVolumeResponse.success("Volume attached", attached=True)

    def is_attached(self, request: Optional[Mapping[str, Any]] = None) -> FlexVolumeResponse:
        logger.debug("controller-isattached-start")
        return FlexVolumeResponse.success("Volume attached", attached=True)

    def detach(self, request: DetachRequest) -> FlexVolumeResponse:
        logger.debug("controller-detach-start")
        logger.info(f"detach-details {request}")
        # Real unlinking is done by unmount.
        return FlexVolumeResponse.success("Volume detached successfully", device=request.name)

    def mount(self, request: MountRequest) -> FlexVolumeResponse:
        logger.debug("controller-mount-start")
        logger.info(f"mount-details {request}")

        try:
            source_path = self.client.attach(request.mount_device)
        except StorageClientError as e:
            logger.error(f"Failed to mount volume {request.mount_device}: {e}")
            return FlexVolumeResponse.failure(f"Failed to mount volume: {e}")

        logger.info(f"Volume {request.mount_device} attached at {source_path}")

        ok, message = self.reconciler.reconcile(source_path, request.mount_device, request.mount_path)
        if not ok:
            return FlexVolumeResponse.failure(message)
        return FlexVolumeResponse.success(message)

    def unmount(self, request: UnmountRequest) -> FlexVolumeResponse:
        logger.debug("controller-unmount-start")
        logger.info(f"unmount-details {request}")

        try:
            volumes = self.client.list_volumes()
        except StorageClientError as e:
            logger.error(f"Failed listing volumes: {e}")
            return FlexVolumeResponse.failure(f"Error finding the volume: {e}")

        volume = get_volume_for_mountpoint(request.mount_path, volumes)
        if volume is None:
            logger.error(f"No volume mounted at {request.mount_path}")
            return FlexVolumeResponse.failure(f"Error finding the volume: no volume mounted at {request.mount_path}")

        try:
            self.client.detach(volume.name)
        except FilesetNotLinkedError:
            logger.info(f"Volume {volume.name} already unlinked")
        except StorageClientError as e:
            logger.error(f"Failed to unmount volume {volume.name}: {e}")
            return FlexVolumeResponse.failure(f"Failed to unmount volume: {e}")

        logger.info(f"Volume {volume.name} unmounted from {request.mount_path}")
        return FlexVolumeResponse.success("Volume unmounted successfully")
