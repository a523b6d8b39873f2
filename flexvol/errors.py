"""
Control-plane error kinds.

Every StorageClient implementation raises only these exceptions, so the
controller can classify outcomes by type instead of by message text.
"""


class StorageClientError(Exception):
    """Opaque control-plane failure"""


class VolumeNotFoundError(StorageClientError):
    """The control plane has no volume with the requested name"""


class VolumeAlreadyExistsError(StorageClientError):
    """A volume with the requested name was created concurrently"""


class FilesetNotLinkedError(StorageClientError):
    """Detach requested for a volume that is not linked on this host"""


class StorageTransportError(StorageClientError):
    """The control plane could not be reached or did not answer in time"""
