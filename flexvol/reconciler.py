"""
Filesystem Reconciler

Makes a pod mount path resolve to the host path the control plane
attached a volume at:

1. Check whether <mount_path>/<device> already exists, or mount_path
   already links to the source (already mounted)
2. Create the parent directories of mount_path
3. Symlink mount_path to the control-plane source path

Steps run against a HostFilesystem so tests can substitute the host.
No locking is added; concurrent callers rely on the atomicity of the
host's mkdir and symlink primitives.
"""

import logging
import os
from typing import Optional, Tuple

logger = logging.getLogger(__name__)


class HostFilesystem:
    """Thin wrapper over the host directory and symlink primitives"""

    def stat(self, path: str) -> os.stat_result:
        return os.stat(path)

    def make_dirs(self, path: str, mode: int = 0o777) -> None:
        os.makedirs(path, mode=mode, exist_ok=True)

    def symlink(self, source_path: str, link_path: str) -> str:
        """
        Create link_path pointing at source_path, with `ln -s` placement:
        if link_path is an existing directory the link goes inside it,
        named after the source. Returns the path of the created link.
        """
        if os.path.isdir(link_path) and not os.path.islink(link_path):
            link_path = os.path.join(link_path, os.path.basename(source_path.rstrip("/")))
        os.symlink(source_path, link_path)
        return link_path

    def links_to(self, link_path: str, source_path: str) -> bool:
        """True when link_path is a symlink whose target is source_path"""
        if not os.path.islink(link_path):
            return False
        return os.readlink(link_path).rstrip("/") == source_path.rstrip("/")


class FilesystemReconciler:
    def __init__(self, filesystem: Optional[HostFilesystem] = None):
        self.filesystem = filesystem or HostFilesystem()

    def reconcile(self, source_path: str, device: str, mount_path: str) -> Tuple[bool, str]:
        """
        Ensure mount_path is linked to source_path.

        Args:
            source_path: Host path returned by the control-plane attach
            device: Volume identifier the node agent mounts
            mount_path: Pod mount directory requested by the node agent

        Returns:
            (success: bool, message: str)
        """
        mounted_message = f"Volume mounted successfully to {source_path}"
        probe_path = os.path.join(mount_path, device)

        try:
            self.filesystem.stat(probe_path)
            logger.info(f"Volume {device} already mounted at {mount_path}")
            return True, mounted_message
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.error(f"Failed checking mount path {probe_path}: {e}")
            return False, f"Failed checking mount path {probe_path}: {e}"

        # The probe follows a link made by an earlier mount into the source.
        try:
            if self.filesystem.links_to(mount_path, source_path):
                logger.info(f"{mount_path} already linked to {source_path}")
                return True, mounted_message
        except OSError as e:
            logger.error(f"Failed checking mount path {mount_path}: {e}")
            return False, f"Failed checking mount path {mount_path}: {e}"

        parent_dir = os.path.dirname(mount_path)
        if parent_dir:
            logger.info(f"Creating volume directory {parent_dir}")
            try:
                self.filesystem.make_dirs(parent_dir)
            except OSError as e:
                logger.error(f"Failed creating volume directory {parent_dir}: {e}")
                return False, f"Failed creating volume directory {parent_dir}: {e}"

        try:
            link_path = self.filesystem.symlink(source_path, mount_path)
        except OSError as e:
            logger.error(f"Failed linking {mount_path} to {source_path}: {e}")
            return False, f"Failed linking {mount_path} to {source_path}: {e}"

        logger.info(f"Linked {link_path} -> {source_path}")
        return True, mounted_message
