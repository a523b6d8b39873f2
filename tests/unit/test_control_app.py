"""
Unit tests for the lifecycle control API.
"""

import pytest
from fastapi.testclient import TestClient

from flexvol import control_app
from flexvol.errors import FilesetNotLinkedError, VolumeNotFoundError
from flexvol.service import FlexService, create_app


@pytest.fixture
def api(controller):
    client = TestClient(create_app(controller))
    yield client
    control_app.set_controller(None)


class TestControlAPI:

    def test_root(self, api):
        response = api.get("/")
        assert response.status_code == 200
        assert response.json()["service"] == "flexvol_control"

    def test_health(self, api):
        response = api.get("/flex/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_init(self, api, mock_client):
        response = api.post("/flex/init")

        assert response.status_code == 200
        assert response.json()["status"] == "Success"
        mock_client.activate.assert_called_once_with()

    def test_attach(self, api, mock_client):
        mock_client.get_volume.side_effect = VolumeNotFoundError("Volume not found")

        response = api.post("/flex/attach", json={"volumeName": "v1", "size": "1"})

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "Success"
        assert body["device"] == "v1"
        mock_client.create_volume.assert_called_once_with("v1", {"volumeName": "v1", "size": "1"})

    def test_attach_failure_is_envelope(self, api, mock_client):
        response = api.post("/flex/attach", json={})

        assert response.status_code == 200
        assert response.json()["status"] == "Failure"
        mock_client.get_volume.assert_not_called()

    def test_getvolumename_uses_camel_case(self, api):
        response = api.post("/flex/getvolumename", json={"volumeName": "v1"})
        assert response.json()["volumeName"] == "v1"

    def test_isattached(self, api):
        response = api.post("/flex/isattached", json={})
        assert response.json()["attached"] is True

    def test_detach(self, api):
        response = api.post("/flex/detach", json={"name": "v1"})
        assert response.json()["device"] == "v1"

    def test_mount(self, api, mock_client, tmp_path):
        source = tmp_path / "ubiquity" / "v1"
        source.mkdir(parents=True)
        mock_client.attach.return_value = str(source)
        mount_path = tmp_path / "pods" / "p1"

        response = api.post("/flex/mount", json={"mountPath": str(mount_path), "mountDevice": "v1"})

        assert response.json()["status"] == "Success"
        assert mount_path.is_symlink()

    def test_mount_rejects_incomplete_body(self, api, mock_client):
        response = api.post("/flex/mount", json={"mountPath": "/pods/p1"})

        assert response.status_code == 422
        mock_client.attach.assert_not_called()

    def test_unmount_not_linked(self, api, mock_client, volumes):
        mock_client.list_volumes.return_value = volumes
        mock_client.detach.side_effect = FilesetNotLinkedError("fileset not linked")

        response = api.post("/flex/unmount", json={"mountPath": "/m/a"})

        assert response.json()["status"] == "Success"

    def test_unexpected_client_error_is_failure_envelope(self, api, mock_client):
        mock_client.get_volume.side_effect = RuntimeError("boom")

        response = api.post("/flex/attach", json={"volumeName": "v1"})

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "Failure"
        assert "boom" in body["message"]

    def test_unexpected_mount_error_is_failure_envelope(self, api, mock_client):
        mock_client.attach.side_effect = RuntimeError("socket closed")

        response = api.post("/flex/mount", json={"mountPath": "/pods/p1", "mountDevice": "v1"})

        assert response.status_code == 200
        assert response.json()["status"] == "Failure"
        assert "socket closed" in response.json()["message"]

    def test_missing_controller(self, api):
        control_app.set_controller(None)

        response = api.post("/flex/init")

        assert response.status_code == 500


class TestFlexService:

    def test_stop_without_start_is_noop(self, controller):
        service = FlexService(controller, port=18010)
        service.stop()
        assert service.running is False
        control_app.set_controller(None)
