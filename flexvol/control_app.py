"""
FlexVol Control API

FastAPI control plane exposing the lifecycle operations over loopback HTTP.
Every endpoint answers 200 with a FlexVolumeResponse; status and message
carry the outcome, exactly as the driver prints them.

Endpoints:
- POST /flex/init: Activate the control plane backends
- POST /flex/attach: Ensure a volume exists (body: attach options)
- POST /flex/getvolumename: Echo volumeName (body: options)
- POST /flex/waitforattach: Report attached (body: options)
- POST /flex/isattached: Report attached (body: options)
- POST /flex/detach: Detach a volume (body: {"name"})
- POST /flex/mount: Link a volume into a mount path
- POST /flex/unmount: Detach the volume mounted at a path
- GET /flex/health: Liveness check
"""

from fastapi import APIRouter, Depends, HTTPException
from typing import Any, Dict, Optional
from datetime import datetime
import logging

from flexvol.controller import Controller
from flexvol.models import DetachRequest, FlexVolumeResponse, MountRequest, UnmountRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/flex", tags=["flex"])


# Will be injected by service.py
_controller: Optional[Controller] = None

def set_controller(controller: Optional[Controller]):
    """Set the lifecycle controller (called by service.py)"""
    global _controller
    _controller = controller


def get_controller() -> Controller:
    """Dependency for the lifecycle controller"""
    if _controller is None:
        raise HTTPException(status_code=500, detail="Controller not initialized")
    return _controller


@router.get("/health")
def health(controller: Controller = Depends(get_controller)):
    return {
        "status": "healthy",
        "component": "flexvol",
        "timestamp": datetime.utcnow().isoformat()
    }


def _respond(operation: str, call, *args) -> FlexVolumeResponse:
    """Run a controller operation; unexpected errors become a Failure envelope"""
    try:
        return call(*args)
    except Exception as e:
        logger.error(f"{operation} failed: {e}", exc_info=True)
        return FlexVolumeResponse.failure(f"{operation} failed: {e}")


@router.post("/init", response_model=FlexVolumeResponse)
def init(controller: Controller = Depends(get_controller)):
    return _respond("init", controller.initialize)


@router.post("/attach", response_model=FlexVolumeResponse)
def attach(options: Dict[str, Any], controller: Controller = Depends(get_controller)):
    return _respond("attach", controller.attach, options)


@router.post("/getvolumename", response_model=FlexVolumeResponse)
def get_volume_name(options: Dict[str, Any], controller: Controller = Depends(get_controller)):
    return _respond("getvolumename", controller.get_volume_name, options)


@router.post("/waitforattach", response_model=FlexVolumeResponse)
def wait_for_attach(options: Dict[str, Any], controller: Controller = Depends(get_controller)):
    return _respond("waitforattach", controller.wait_for_attach, options)


@router.post("/isattached", response_model=FlexVolumeResponse)
def is_attached(options: Dict[str, Any], controller: Controller = Depends(get_controller)):
    return _respond("isattached", controller.is_attached, options)


@router.post("/detach", response_model=FlexVolumeResponse)
def detach(request: DetachRequest, controller: Controller = Depends(get_controller)):
    return _respond("detach", controller.detach, request)


@router.post("/mount", response_model=FlexVolumeResponse)
def mount(request: MountRequest, controller: Controller = Depends(get_controller)):
    return _respond("mount", controller.mount, request)


@router.post("/unmount", response_model=FlexVolumeResponse)
def unmount(request: UnmountRequest, controller: Controller = Depends(get_controller)):
    return _respond("unmount", controller.unmount, request)
