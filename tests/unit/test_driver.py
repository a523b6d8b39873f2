"""
Unit tests for the driver command line.
"""

import io
import json
from unittest.mock import Mock, patch

import pytest

from flexvol.controller import Controller
from flexvol.driver import build_controller, dispatch, run
from flexvol.config import PluginConfig
from flexvol.errors import VolumeNotFoundError
from flexvol.models import ResponseStatus
from flexvol.storage_client import RemoteStorageClient


def invoke(argv, controller):
    out = io.StringIO()
    exit_code = run(argv, controller=controller, out=out)
    return exit_code, json.loads(out.getvalue())


class TestRun:
    """Test end-to-end driver invocations against a mocked control plane."""

    def test_init(self, controller, mock_client):
        exit_code, body = invoke(["init"], controller)

        assert exit_code == 0
        assert body["status"] == "Success"
        mock_client.activate.assert_called_once_with()

    def test_attach_creates_volume(self, controller, mock_client):
        mock_client.get_volume.side_effect = VolumeNotFoundError("Volume not found")

        exit_code, body = invoke(["attach", '{"volumeName": "v1"}', "node1"], controller)

        assert exit_code == 0
        assert body == {
            "status": "Success",
            "message": "Volume attached successfully",
            "device": "v1",
            "attached": False,
            "volumeName": "",
        }

    def test_attach_missing_name_fails(self, controller, mock_client):
        exit_code, body = invoke(["attach", '{"size": "1"}'], controller)

        assert exit_code == 1
        assert body["status"] == "Failure"
        assert body["message"]
        mock_client.get_volume.assert_not_called()

    def test_invalid_json(self, controller, mock_client):
        exit_code, body = invoke(["attach", "{not json"], controller)

        assert exit_code == 1
        assert body["status"] == "Failure"
        assert "Invalid JSON" in body["message"]

    def test_getvolumename(self, controller):
        exit_code, body = invoke(["getvolumename", '{"volumeName": "v1"}'], controller)

        assert exit_code == 0
        assert body["volumeName"] == "v1"

    def test_waitforattach_and_isattached(self, controller):
        _, waited = invoke(["waitforattach", "v1", '{"volumeName": "v1"}'], controller)
        _, attached = invoke(["isattached", '{"volumeName": "v1"}', "node1"], controller)

        assert waited["attached"] is True
        assert attached["attached"] is True

    def test_detach(self, controller, mock_client):
        exit_code, body = invoke(["detach", "v1", "node1"], controller)

        assert exit_code == 0
        assert body["device"] == "v1"
        mock_client.detach.assert_not_called()

    def test_mount_with_device_argument(self, controller, mock_client, tmp_path):
        source = tmp_path / "ubiquity" / "v1"
        source.mkdir(parents=True)
        mount_path = tmp_path / "pods" / "p1"
        mock_client.attach.return_value = str(source)

        exit_code, body = invoke(["mount", str(mount_path), "v1", "{}"], controller)

        assert exit_code == 0
        assert body["status"] == "Success"
        mock_client.attach.assert_called_once_with("v1")
        assert mount_path.is_symlink()

    def test_mount_device_from_options(self):
        mock_controller = Mock(spec=Controller)
        dispatch(mock_controller, "mount", ["/pods/p1", '{"volumeName": "v1"}'])

        request = mock_controller.mount.call_args.args[0]
        assert request.mount_path == "/pods/p1"
        assert request.mount_device == "v1"
        assert request.opts == {"volumeName": "v1"}

    def test_mount_without_device(self, controller, mock_client):
        exit_code, body = invoke(["mount", "/pods/p1", "{}"], controller)

        assert exit_code == 1
        assert "invalid request" in body["message"]
        mock_client.attach.assert_not_called()

    def test_unmount(self, controller, mock_client, volumes):
        mock_client.list_volumes.return_value = volumes

        exit_code, body = invoke(["unmount", "/m/a"], controller)

        assert exit_code == 0
        mock_client.detach.assert_called_once_with("a")

    def test_missing_arguments(self, controller):
        exit_code, body = invoke(["unmount"], controller)

        assert exit_code == 1
        assert "requires 1 argument" in body["message"]

    @pytest.mark.parametrize("command", ["mountdevice", "unmountdevice", "expandvolume"])
    def test_unsupported_command(self, controller, command):
        exit_code, body = invoke([command, "/x"], controller)

        assert exit_code == 0
        assert body["status"] == "Not supported"

    @pytest.mark.parametrize("argv", [[], ["--timeout", "abc", "init"]])
    def test_unparseable_arguments_still_answer(self, controller, mock_client, argv):
        exit_code, body = invoke(argv, controller)

        assert exit_code == 1
        assert body["status"] == "Failure"
        assert "Invalid driver arguments" in body["message"]
        assert mock_client.mock_calls == []

    def test_help_exits_cleanly(self, controller):
        with pytest.raises(SystemExit) as exc_info:
            run(["--help"], controller=controller, out=io.StringIO())
        assert exc_info.value.code == 0

    def test_unexpected_exception_is_reported(self):
        mock_controller = Mock(spec=Controller)
        mock_controller.initialize.side_effect = RuntimeError("boom")

        exit_code, body = invoke(["init"], mock_controller)

        assert exit_code == 1
        assert body["status"] == ResponseStatus.FAILURE.value
        assert "boom" in body["message"]


class TestBuildController:

    def test_builds_remote_client(self):
        controller = build_controller(PluginConfig(
            storage_api_url="http://storage.local:9999/ubiquity_storage",
            backend="",
            request_timeout=7,
        ))

        assert isinstance(controller.client, RemoteStorageClient)
        assert controller.client.backend is None
        assert controller.client.timeout == 7

    def test_invalid_url_rejected(self):
        with pytest.raises(ValueError):
            build_controller(PluginConfig(storage_api_url="storage.local"))

    def test_invalid_configuration_reported_as_failure(self):
        out = io.StringIO()
        with patch("flexvol.driver.setup_logging"):
            exit_code = run(["--storage-api-url", "not-a-url", "init"], out=out)

        assert exit_code == 1
        assert json.loads(out.getvalue())["status"] == "Failure"
