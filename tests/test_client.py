"""Tests for the Fabric HTTP client."""

from unittest.mock import MagicMock

import pytest
import requests

from fabric_sync.core.client import MAX_RETRY_AFTER, FabricClient
from fabric_sync.core.errors import NotConfiguredError, RemoteError


def _response(status_code: int = 200, json_data: object = None, headers: dict | None = None) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.headers = headers or {}
    response.content = b"{}" if json_data is not None else b""
    response.json.return_value = json_data
    response.text = str(json_data or "")
    return response


def _client(*responses: MagicMock) -> tuple[FabricClient, MagicMock]:
    session = MagicMock()
    session.request.side_effect = list(responses)
    client = FabricClient(
        fabric_base_url="https://fabric.test/v1",
        powerbi_base_url="https://pbi.test/v1.0/myorg/",
        session=session,
    )
    return client, session


class TestFabricClient:
    """Tests for FabricClient requests."""

    def test_bearer_header(self) -> None:
        client, session = _client(_response(json_data={"value": []}))

        client.list_workspaces("secret-token")

        kwargs = session.request.call_args.kwargs
        assert kwargs["headers"]["Authorization"] == "Bearer secret-token"
        assert kwargs["url"] == "https://pbi.test/v1.0/myorg/groups"
        assert kwargs["method"] == "GET"

    def test_list_workspaces(self) -> None:
        client, _ = _client(_response(json_data={"value": [{"id": "W1", "name": "Sales"}]}))

        workspaces = client.list_workspaces("t")

        assert workspaces[0].id == "W1"
        assert workspaces[0].name == "Sales"

    def test_list_items_follows_continuation(self) -> None:
        client, session = _client(
            _response(json_data={
                "value": [{"id": "a", "displayName": "NB1", "type": "Notebook"}],
                "continuationToken": "page2",
            }),
            _response(json_data={
                "value": [{"id": "b", "displayName": "R1", "type": "Report", "folderId": "f1"}],
            }),
        )

        items = client.list_items("t", "W1")

        assert [i.id for i in items] == ["a", "b"]
        assert items[1].folder_id == "f1"
        assert session.request.call_args_list[1].kwargs["params"] == {"continuationToken": "page2"}

    def test_list_items_type_filter(self) -> None:
        client, session = _client(_response(json_data={"value": []}))

        client.list_items("t", "W1", item_type="Notebook")

        assert session.request.call_args.kwargs["params"] == {"type": "Notebook"}

    def test_list_folders(self) -> None:
        client, session = _client(_response(json_data={"value": [
            {"id": "f1", "displayName": "Sales"},
            {"id": "f2", "displayName": "Reports", "parentFolderId": "f1"},
        ]}))

        folders = client.list_folders("t", "W1")

        assert folders[1].parent_folder_id == "f1"
        assert session.request.call_args.kwargs["url"] == "https://fabric.test/v1/workspaces/W1/folders"

    def test_git_status_404_is_not_configured(self) -> None:
        client, _ = _client(_response(status_code=404, json_data={"errorCode": "WorkspaceNotConnectedToGit"}))

        with pytest.raises(NotConfiguredError) as exc_info:
            client.get_git_status("t", "W1")

        assert exc_info.value.status_code == 404

    def test_git_status_500_is_remote_error(self) -> None:
        client, _ = _client(_response(status_code=500, json_data={"error": "boom"}))

        with pytest.raises(RemoteError) as exc_info:
            client.get_git_status("t", "W1")

        assert not isinstance(exc_info.value, NotConfiguredError)
        assert exc_info.value.status_code == 500

    def test_transport_error_wrapped(self) -> None:
        session = MagicMock()
        session.request.side_effect = requests.ConnectionError("offline")
        client = FabricClient(fabric_base_url="https://fabric.test/v1", session=session)

        with pytest.raises(RemoteError, match="Request failed") as exc_info:
            client.list_items("t", "W1")

        assert exc_info.value.status_code is None

    def test_request_definition_immediate(self) -> None:
        body = {"definition": {"parts": []}}
        client, session = _client(_response(status_code=200, json_data=body))

        response = client.request_definition("t", "W1", "a")

        assert response.status_code == 200
        assert response.body == body
        assert session.request.call_args.kwargs["method"] == "POST"
        assert session.request.call_args.kwargs["url"] == (
            "https://fabric.test/v1/workspaces/W1/items/a/getDefinition"
        )

    def test_request_definition_accepted(self) -> None:
        client, _ = _client(_response(
            status_code=202,
            headers={"Location": "https://fabric.test/v1/operations/op1", "Retry-After": "20"},
        ))

        response = client.request_definition("t", "W1", "a")

        assert response.status_code == 202
        assert response.location == "https://fabric.test/v1/operations/op1"
        assert response.retry_after == 20
        assert response.body == {}

    def test_retry_after_not_finite_ignored(self) -> None:
        client, _ = _client(_response(
            status_code=202,
            headers={"Location": "https://fabric.test/v1/operations/op1", "Retry-After": "inf"},
        ))

        assert client.request_definition("t", "W1", "a").retry_after is None

    def test_retry_after_clamped(self) -> None:
        client, _ = _client(_response(
            status_code=202,
            headers={"Location": "https://fabric.test/v1/operations/op1", "Retry-After": "86400"},
        ))

        assert client.request_definition("t", "W1", "a").retry_after == MAX_RETRY_AFTER

    def test_operation_result_url(self) -> None:
        client, session = _client(_response(json_data={"definition": {"parts": []}}))

        client.get_operation_result("t", "https://fabric.test/v1/operations/op1")

        assert session.request.call_args.kwargs["url"] == "https://fabric.test/v1/operations/op1/result"

    def test_operation_result_requires_200(self) -> None:
        client, _ = _client(_response(status_code=204))

        with pytest.raises(RemoteError, match="204"):
            client.get_operation_result("t", "https://fabric.test/v1/operations/op1")

    def test_base_url_trailing_slash_removed(self) -> None:
        client = FabricClient(fabric_base_url="https://fabric.test/v1/", session=MagicMock())
        assert client.fabric_base_url == "https://fabric.test/v1"
