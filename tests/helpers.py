"""Shared fakes for sync tests."""

import base64
from typing import Any

from fabric_sync.core.client import ExportResponse
from fabric_sync.core.errors import NotConfiguredError, RemoteError
from fabric_sync.models.workspace import Folder, Item, Workspace


def b64(text: str) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def definition(*parts: tuple[str, str | None]) -> dict[str, Any]:
    """Build a getDefinition body from (path, text) pairs."""
    return {
        "definition": {
            "parts": [
                {
                    "path": path,
                    "payload": b64(text) if text is not None else None,
                    "payloadType": "InlineBase64",
                }
                for path, text in parts
            ]
        }
    }


class FakeClient:
    """In-memory stand-in for FabricClient that records every call."""

    MONITOR = "https://api.fabric.microsoft.com/v1/operations/op-1"

    def __init__(
        self,
        items: list[Item] | None = None,
        folders: list[Folder] | None = None,
        git_status: dict[str, Any] | None = None,
        git_configured: bool = True,
    ) -> None:
        self.items = items or []
        self.folders = folders or []
        self.git_status = git_status if git_status is not None else {"changes": []}
        self.git_configured = git_configured
        # item_id -> ExportResponse for the submit call
        self.submit_responses: dict[str, ExportResponse] = {}
        # item_id -> list of monitor statuses returned in order
        self.poll_statuses: dict[str, list[str]] = {}
        # item_id -> result body
        self.results: dict[str, dict[str, Any]] = {}
        self.calls: list[tuple[str, ...]] = []

    # -- helpers to script exports ---------------------------------------------

    def immediate(self, item_id: str, body: dict[str, Any]) -> None:
        self.submit_responses[item_id] = ExportResponse(status_code=200, body=body)

    def long_running(self, item_id: str, statuses: list[str], body: dict[str, Any] | None = None) -> None:
        location = f"{self.MONITOR}-{item_id}"
        self.submit_responses[item_id] = ExportResponse(status_code=202, body={}, location=location)
        self.poll_statuses[item_id] = list(statuses)
        if body is not None:
            self.results[item_id] = body

    def count(self, name: str) -> int:
        return sum(1 for call in self.calls if call[0] == name)

    # -- FabricClient surface ---------------------------------------------------

    def list_workspaces(self, token: str) -> list[Workspace]:
        self.calls.append(("list_workspaces",))
        return [Workspace(id="W1", name="Workspace One")]

    def list_items(self, token: str, workspace_id: str, item_type: str | None = None) -> list[Item]:
        self.calls.append(("list_items", workspace_id))
        return list(self.items)

    def list_folders(self, token: str, workspace_id: str) -> list[Folder]:
        self.calls.append(("list_folders", workspace_id))
        return list(self.folders)

    def get_git_status(self, token: str, workspace_id: str) -> dict[str, Any]:
        self.calls.append(("get_git_status", workspace_id))
        if not self.git_configured:
            raise NotConfiguredError(f"Git is not configured for workspace {workspace_id}", 404)
        return self.git_status

    def request_definition(self, token: str, workspace_id: str, item_id: str) -> ExportResponse:
        self.calls.append(("request_definition", item_id))
        if item_id not in self.submit_responses:
            raise RemoteError(f"API error 404: item {item_id}", 404)
        return self.submit_responses[item_id]

    def _item_for(self, location: str) -> str:
        return location.rsplit("-", 1)[-1]

    def get_operation_state(self, token: str, location: str) -> dict[str, Any]:
        item_id = self._item_for(location)
        self.calls.append(("get_operation_state", item_id))
        statuses = self.poll_statuses[item_id]
        status = statuses.pop(0) if len(statuses) > 1 else statuses[0]
        state: dict[str, Any] = {"status": status}
        if status == "Failed":
            state["error"] = {"errorCode": "ExportFailed", "message": "Definition export failed"}
        return state

    def get_operation_result(self, token: str, location: str) -> dict[str, Any]:
        item_id = self._item_for(location)
        self.calls.append(("get_operation_result", item_id))
        return self.results[item_id]
