"""
Shared test fixtures for the FlexVol plugin.

Unit tests never reach a real control plane: the StorageClient is a
Mock constrained to the client interface, and filesystem tests run
under pytest's tmp_path.
"""

import logging
from unittest.mock import Mock

import pytest

from flexvol.controller import Controller
from flexvol.models import VolumeMetadata
from flexvol.reconciler import HostFilesystem
from flexvol.storage_client import StorageClient

logging.basicConfig(level=logging.INFO)


@pytest.fixture
def mock_client():
    """StorageClient substitute; every call succeeds unless a test says otherwise"""
    client = Mock(spec=StorageClient)
    client.list_volumes.return_value = []
    return client


@pytest.fixture
def mock_filesystem():
    filesystem = Mock(spec=HostFilesystem)
    filesystem.links_to.return_value = False
    return filesystem


@pytest.fixture
def controller(mock_client):
    return Controller(mock_client)


@pytest.fixture
def volumes():
    return [
        VolumeMetadata(name="a", mountpoint="/m/a"),
        VolumeMetadata(name="b", mountpoint="/m/b"),
    ]
