"""
Mountpoint to volume lookup used by unmount.
"""

from typing import Iterable, Optional

from flexvol.models import VolumeMetadata


def get_volume_for_mountpoint(
    mountpoint: str,
    volumes: Iterable[VolumeMetadata]
) -> Optional[VolumeMetadata]:
    """
    Return the first volume whose recorded mountpoint equals `mountpoint`.

    Comparison is exact string equality; paths are not normalized.
    Returns None when no volume matches.
    """
    for volume in volumes:
        if volume.mountpoint == mountpoint:
            return volume
    return None
