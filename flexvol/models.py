"""
FlexVol Wire Models

Request and response shapes exchanged with the orchestrator's node agent,
plus the volume snapshot returned by the control plane.

Models:
- FlexVolumeResponse: the single result envelope for every operation
- VolumeMetadata: control-plane view of a volume and its local mountpoint
- AttachRequest / GetVolumeNameRequest: string-keyed option requests
- DetachRequest / MountRequest / UnmountRequest: typed requests
"""

import enum
from typing import Any, Dict, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator


class ResponseStatus(str, enum.Enum):
    SUCCESS = "Success"
    FAILURE = "Failure"
    NOT_SUPPORTED = "Not supported"


class FlexVolumeResponse(BaseModel):
    """Uniform result envelope returned by every lifecycle operation"""
    model_config = ConfigDict(populate_by_name=True)

    status: ResponseStatus
    message: str = ""
    device: str = ""
    attached: bool = False
    volume_name: str = Field(default="", alias="volumeName")

    @model_validator(mode="after")
    def _failure_has_message(self):
        if self.status == ResponseStatus.FAILURE and not self.message.strip():
            raise ValueError("Failure responses require a diagnostic message")
        return self

    @classmethod
    def success(cls, message: str = "", **fields) -> "FlexVolumeResponse":
        return cls(status=ResponseStatus.SUCCESS, message=message, **fields)

    @classmethod
    def failure(cls, message: str, **fields) -> "FlexVolumeResponse":
        return cls(status=ResponseStatus.FAILURE, message=message, **fields)

    @classmethod
    def not_supported(cls, message: str = "") -> "FlexVolumeResponse":
        return cls(status=ResponseStatus.NOT_SUPPORTED, message=message)

    @property
    def ok(self) -> bool:
        return self.status != ResponseStatus.FAILURE

    def to_json(self) -> str:
        """Serialize with the camelCase keys the node agent parses"""
        return self.model_dump_json(by_alias=True)


class VolumeMetadata(BaseModel):
    """Snapshot of the control plane's knowledge of a volume"""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str = Field(validation_alias=AliasChoices("name", "Name"))
    mountpoint: str = Field(default="", validation_alias=AliasChoices("mountpoint", "Mountpoint"))


class AttachRequest(BaseModel):
    """
    Attach options from the node agent.

    Only volumeName is interpreted; every key, including volumeName, is
    kept and forwarded verbatim to volume creation.
    """
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    volume_name: str = Field(alias="volumeName", min_length=1)

    def options(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class GetVolumeNameRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    volume_name: str = Field(alias="volumeName", min_length=1)


class DetachRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = ""


class MountRequest(BaseModel):
    """Link the volume identified by mount_device into mount_path"""
    model_config = ConfigDict(populate_by_name=True)

    mount_path: str = Field(alias="mountPath", min_length=1)
    mount_device: str = Field(alias="mountDevice", min_length=1)
    opts: Optional[Dict[str, Any]] = None


class UnmountRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    mount_path: str = Field(alias="mountPath", min_length=1)
