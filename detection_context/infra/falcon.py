"""
Falcon API client

Thin async wrapper over the CrowdStrike Falcon endpoints the widget needs:
alerts, message-center case activities, custom storage collections and
workflow executions.
"""

import time
from typing import Any, Optional

import httpx

from detection_context.core.config import settings
from detection_context.core.errors import HostApiError
from detection_context.core.logging import get_logger
from detection_context.schemas.detection import Comment, Detection

logger = get_logger(__name__)

# Refresh the token this many seconds before it expires
TOKEN_EXPIRY_MARGIN = 60


class FalconClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.client_id = client_id if client_id is not None else settings.falcon_client_id
        self.client_secret = client_secret if client_secret is not None else settings.falcon_client_secret
        self._http = httpx.AsyncClient(
            base_url=base_url or settings.falcon_base_url,
            timeout=timeout or settings.falcon_timeout,
            transport=transport,
        )
        self._token: Optional[str] = None
        self._token_expires_at = 0.0

    async def close(self) -> None:
        await self._http.aclose()

    async def _get_token(self) -> str:
        if self._token and time.monotonic() < self._token_expires_at:
            return self._token

        if not self.client_id or not self.client_secret:
            raise HostApiError("Falcon API credentials not provided")

        try:
            response = await self._http.post(
                "/oauth2/token",
                data={"client_id": self.client_id, "client_secret": self.client_secret},
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Falcon token request failed: {e}")
            raise HostApiError(f"Falcon authentication failed: {e}") from e

        body = response.json()
        self._token = body["access_token"]
        self._token_expires_at = time.monotonic() + int(body.get("expires_in", 1799)) - TOKEN_EXPIRY_MARGIN
        return self._token

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict] = None,
        json: Any = None,
        allow_error_body: bool = False,
    ) -> dict:
        """
        Perform an authenticated request and return the decoded JSON body.

        With allow_error_body, a non-2xx response whose body carries an
        `errors` list is returned as-is so the caller can report the
        Falcon error entries.
        """
        token = await self._get_token()
        try:
            response = await self._http.request(
                method,
                path,
                params=params,
                json=json,
                headers={"Authorization": f"Bearer {token}"},
            )
        except httpx.HTTPError as e:
            logger.error(f"Falcon {method} {path} failed: {e}")
            raise HostApiError(f"Falcon request failed: {e}") from e

        if response.status_code == 401:
            self._token = None

        if response.is_success:
            return response.json() if response.content else {}

        body = _json_or_none(response)
        if allow_error_body and isinstance(body, dict) and body.get("errors"):
            return body

        message = _first_error_message(body) or response.reason_phrase
        logger.error(f"Falcon {method} {path} returned {response.status_code}: {message}")
        raise HostApiError(
            f"Falcon request failed: {response.status_code} {message}",
            details={"status": response.status_code, "path": path},
        )

    # -- Alerts ------------------------------------------------------------

    async def get_detection_by_id(self, detection_id: str) -> Detection:
        body = await self.request(
            "POST",
            "/alerts/entities/alerts/v2",
            json={"composite_ids": [detection_id]},
        )
        resources = body.get("resources") or [{}]
        return Detection.model_validate(resources[0])

    # -- Message center ----------------------------------------------------

    async def get_detection_comments(self, detection_id: str) -> list[Comment]:
        cases = await self.request(
            "GET",
            "/message-center/queries/cases/v1",
            params={"filter": f"case.detections.id:'{detection_id}'"},
        )

        activity_ids: list[str] = []
        for case_id in cases.get("resources") or []:
            activities = await self.request(
                "GET",
                "/message-center/queries/case-activities/v1",
                params={"case_id": case_id},
            )
            activity_ids.extend(
                i for i in activities.get("resources") or [] if isinstance(i, str) and i
            )

        if not activity_ids:
            return []

        body = await self.request(
            "POST",
            "/message-center/entities/case-activities/GET/v1",
            json={"ids": activity_ids},
        )
        return [
            Comment.model_validate(activity)
            for activity in body.get("resources") or []
            if activity.get("type") == "comment"
        ]

    # -- Custom storage ----------------------------------------------------

    def _objects_path(self, collection: str, object_key: str = "") -> str:
        path = f"/customobjects/v1/collections/{collection}/objects"
        return f"{path}/{object_key}" if object_key else path

    async def search_object_keys(self, collection: str, filter: str) -> list[str]:
        body = await self.request("POST", self._objects_path(collection), params={"filter": filter})
        return [
            resource["object_key"]
            for resource in body.get("resources") or []
            if resource.get("object_key")
        ]

    async def read_object(self, collection: str, object_key: str) -> dict:
        return await self.request("GET", self._objects_path(collection, object_key))

    async def write_object(self, collection: str, object_key: str, record: dict) -> dict:
        return await self.request("PUT", self._objects_path(collection, object_key), json=record)

    async def delete_object(self, collection: str, object_key: str) -> dict:
        return await self.request("DELETE", self._objects_path(collection, object_key))

    # -- Workflows ---------------------------------------------------------

    async def execute_workflow(self, name: str, payload: dict) -> dict:
        return await self.request(
            "POST",
            "/workflows/entities/execute/v1",
            params={"name": name, "depth": 0},
            json=payload,
            allow_error_body=True,
        )

    async def get_execution_results(self, ids: Any) -> dict:
        return await self.request(
            "GET",
            "/workflows/entities/execution-results/v1",
            params={"ids": ids},
            allow_error_body=True,
        )


def _json_or_none(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


def _first_error_message(body: Any) -> Optional[str]:
    if isinstance(body, dict):
        errors = body.get("errors") or []
        if errors and isinstance(errors[0], dict):
            return errors[0].get("message")
    return None


class FalconCollection:
    """Custom storage collection scoped to one name"""

    def __init__(self, client: FalconClient, name: Optional[str] = None):
        self.client = client
        self.name = name or settings.collection_name

    async def list_keys(self, composite_id: str) -> list[str]:
        return await self.client.search_object_keys(self.name, f"compositeId:'{composite_id}'")

    async def read(self, object_key: str) -> dict:
        return await self.client.read_object(self.name, object_key)

    async def write(self, object_key: str, record: dict) -> dict:
        return await self.client.write_object(self.name, object_key, record)

    async def delete(self, object_key: str) -> dict:
        return await self.client.delete_object(self.name, object_key)
