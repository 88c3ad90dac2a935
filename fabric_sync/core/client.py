"""HTTP client wrapper for the Fabric and Power BI REST APIs."""

import logging
import math
import os
from dataclasses import dataclass
from typing import Any

import requests
from dotenv import load_dotenv

from ..models.workspace import Folder, Item, Workspace
from .errors import NotConfiguredError, RemoteError

logger = logging.getLogger(__name__)

DEFAULT_FABRIC_BASE_URL = "https://api.fabric.microsoft.com/v1"
DEFAULT_POWERBI_BASE_URL = "https://api.powerbi.com/v1.0/myorg"

# Upper bound on a server-requested poll delay, in seconds
MAX_RETRY_AFTER = 300.0


@dataclass
class ExportResponse:
    """Raw response to a getDefinition request."""

    status_code: int
    body: dict[str, Any]
    location: str | None = None
    retry_after: float | None = None


class FabricClient:
    """Stateless HTTP accessor for workspace, item, folder, git and export calls.

    Every method takes the bearer token explicitly. No retries happen here.
    """

    def __init__(
        self,
        fabric_base_url: str | None = None,
        powerbi_base_url: str | None = None,
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ) -> None:
        """Initialize client.

        Args:
            fabric_base_url: Fabric API root (or FABRIC_API_BASE_URL env)
            powerbi_base_url: Power BI API root (or POWERBI_API_BASE_URL env)
            timeout: Per-request timeout in seconds
            session: Optional requests.Session to reuse
        """
        load_dotenv()
        self.fabric_base_url = (
            fabric_base_url or os.getenv("FABRIC_API_BASE_URL", DEFAULT_FABRIC_BASE_URL)
        ).rstrip("/")
        self.powerbi_base_url = (
            powerbi_base_url or os.getenv("POWERBI_API_BASE_URL", DEFAULT_POWERBI_BASE_URL)
        ).rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _send(
        self,
        method: str,
        url: str,
        token: str,
        query_params: dict[str, str] | None = None,
        json_data: dict[str, Any] | None = None,
    ) -> requests.Response:
        """Make an authenticated request.

        Returns:
            The response, for any status below 400

        Raises:
            RemoteError: On 4xx/5xx responses or transport failures
        """
        headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
        }
        logger.debug("%s %s", method, url)

        try:
            response = self.session.request(
                method=method,
                url=url,
                headers=headers,
                params=query_params,
                json=json_data if method in ("POST", "PUT", "PATCH") else None,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise RemoteError(f"Request failed: {e}") from e

        if response.status_code >= 400:
            body = response.text[:500]
            raise RemoteError(
                f"API error {response.status_code}: {body}",
                response.status_code,
                body,
            )

        return response

    @staticmethod
    def _json(response: requests.Response) -> dict[str, Any]:
        # Handle empty responses
        if not response.content:
            return {}
        try:
            return response.json()  # type: ignore[no-any-return]
        except ValueError as e:
            raise RemoteError(
                f"Invalid JSON in response: {e}", response.status_code, response.text[:500]
            ) from e

    def get(
        self,
        url: str,
        token: str,
        query_params: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """Make a GET request and parse the JSON body."""
        return self._json(self._send("GET", url, token, query_params))

    def _get_paged(self, url: str, token: str, query_params: dict[str, str] | None = None) -> list[dict[str, Any]]:
        """Collect ``value`` across ``continuationToken`` pages."""
        records: list[dict[str, Any]] = []
        params = dict(query_params or {})

        while True:
            page = self.get(url, token, dict(params) or None)
            records.extend(page.get("value", []))

            continuation = page.get("continuationToken")
            if not continuation:
                return records
            params["continuationToken"] = continuation

    # -------------------------------------------------------------------------
    # Workspace Operations
    # -------------------------------------------------------------------------

    def list_workspaces(self, token: str) -> list[Workspace]:
        """List workspaces (Power BI groups) visible to the token."""
        response = self.get(f"{self.powerbi_base_url}/groups", token)
        return [Workspace.from_dict(ws) for ws in response.get("value", [])]

    def list_items(self, token: str, workspace_id: str, item_type: str | None = None) -> list[Item]:
        """List items in a workspace.

        Args:
            token: Bearer token
            workspace_id: Workspace ID
            item_type: Optional filter (e.g., "Notebook")
        """
        query_params = {"type": item_type} if item_type else None
        url = f"{self.fabric_base_url}/workspaces/{workspace_id}/items"
        return [Item.from_dict(item) for item in self._get_paged(url, token, query_params)]

    def list_folders(self, token: str, workspace_id: str) -> list[Folder]:
        """List every folder in a workspace (flat, with parent ids)."""
        url = f"{self.fabric_base_url}/workspaces/{workspace_id}/folders"
        return [Folder.from_dict(folder) for folder in self._get_paged(url, token)]

    def get_git_status(self, token: str, workspace_id: str) -> dict[str, Any]:
        """Get the workspace's divergence from its connected git branch.

        Raises:
            NotConfiguredError: The workspace has no git connection (404)
            RemoteError: Any other API failure
        """
        url = f"{self.fabric_base_url}/workspaces/{workspace_id}/git/status"
        try:
            return self.get(url, token)
        except RemoteError as e:
            if e.status_code == 404:
                raise NotConfiguredError(
                    f"Git is not configured for workspace {workspace_id}", 404, e.body
                ) from e
            raise

    # -------------------------------------------------------------------------
    # Item Definition Export
    # -------------------------------------------------------------------------

    def request_definition(self, token: str, workspace_id: str, item_id: str) -> ExportResponse:
        """Submit a getDefinition request.

        Returns the raw status so the caller can tell a synchronous 200 from an
        accepted 202 long-running operation.
        """
        url = f"{self.fabric_base_url}/workspaces/{workspace_id}/items/{item_id}/getDefinition"
        response = self._send("POST", url, token)

        return ExportResponse(
            status_code=response.status_code,
            body=self._json(response) if response.status_code == 200 else {},
            location=response.headers.get("Location"),
            retry_after=_parse_retry_after(response.headers.get("Retry-After")),
        )

    def get_operation_state(self, token: str, location: str) -> dict[str, Any]:
        """Poll a long-running operation monitor."""
        return self.get(location, token)

    def get_operation_result(self, token: str, location: str) -> dict[str, Any]:
        """Fetch the result of a succeeded long-running operation.

        Raises:
            RemoteError: Unless the service answers 200
        """
        response = self._send("GET", f"{location.rstrip('/')}/result", token)
        if response.status_code != 200:
            raise RemoteError(
                f"Unexpected status {response.status_code} fetching operation result",
                response.status_code,
                response.text[:500],
            )
        return self._json(response)

    # -------------------------------------------------------------------------
    # Health Check
    # -------------------------------------------------------------------------

    def verify_connection(self, token: str) -> bool:
        """Verify API connectivity and authentication.

        Raises:
            RemoteError: On connection or auth failure
        """
        response = self.get(f"{self.powerbi_base_url}/groups", token, {"$top": "1"})
        return "value" in response


def _parse_retry_after(header: str | None) -> float | None:
    """Seconds from a Retry-After header, clamped to MAX_RETRY_AFTER."""
    if not header:
        return None
    try:
        seconds = float(header)
    except ValueError:
        logger.debug("Ignoring non-numeric Retry-After header %r", header)
        return None
    if not math.isfinite(seconds) or seconds < 0:
        logger.debug("Ignoring out-of-range Retry-After header %r", header)
        return None
    return min(seconds, MAX_RETRY_AFTER)
