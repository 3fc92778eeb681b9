"""Async HubSpot CRM API client.

One instance wraps one bearer token. Every method issues exactly one HTTP
call and returns the decoded JSON body unchanged. Failures are raised as
RemoteAPIError; nothing is retried.
"""

import logging
from typing import Any, Optional, Union

import httpx

from errors import RemoteAPIError
from hubspot.objects import DEFAULT_ASSOCIATION_CATEGORY

logger = logging.getLogger(__name__)

HUBSPOT_API_BASE = "https://api.hubapi.com"

# JSON scalar a CRM property may hold.
PropertyValue = Union[str, int, float, bool, None]
Properties = dict[str, PropertyValue]


class HubSpotClient:
    """Thin async wrapper over the CRM v3 REST endpoints."""

    def __init__(
        self,
        token: str,
        base_url: str = HUBSPOT_API_BASE,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={
                "Authorization": f"Bearer {token}",
                "Content-Type": "application/json",
            },
            transport=transport,
        )

    async def __aenter__(self) -> "HubSpotClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request(
        self,
        method: str,
        path: str,
        body: Any = None,
        params: Optional[dict[str, str]] = None,
    ) -> Any:
        try:
            response = await self._client.request(method, path, json=body, params=params)
        except httpx.HTTPError as e:
            logger.warning(f"[HUBSPOT] {method} {path} failed: {e}")
            raise RemoteAPIError(500, str(e) or e.__class__.__name__) from e

        if response.is_error:
            message = _error_message(response)
            logger.info(f"[HUBSPOT] {method} {path} -> {response.status_code}: {message}")
            raise RemoteAPIError(response.status_code, message)

        logger.debug(f"[HUBSPOT] {method} {path} -> {response.status_code}")
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            logger.warning(f"[HUBSPOT] {method} {path} returned a non-JSON body")
            raise RemoteAPIError(response.status_code, f"Invalid JSON response: {response.text[:200]}")

    async def get_object(
        self,
        object_type: str,
        object_id: str,
        properties: Optional[list[str]] = None,
        id_property: Optional[str] = None,
    ) -> Any:
        params = {}
        if properties:
            params["properties"] = ",".join(properties)
        if id_property:
            params["idProperty"] = id_property
        return await self.request(
            "GET", f"/crm/v3/objects/{object_type}/{object_id}", params=params or None
        )

    async def search_objects(
        self,
        object_type: str,
        filters: list[dict[str, Any]],
        properties: Optional[list[str]] = None,
    ) -> Any:
        """Search with a single filter group, so all filters must match."""
        body: dict[str, Any] = {"filterGroups": [{"filters": filters}]}
        if properties:
            body["properties"] = properties
        return await self.request("POST", f"/crm/v3/objects/{object_type}/search", body)

    async def create_object(self, object_type: str, properties: Properties) -> Any:
        return await self.request("POST", f"/crm/v3/objects/{object_type}", {"properties": properties})

    async def update_object(self, object_type: str, object_id: str, properties: Properties) -> Any:
        return await self.request(
            "PATCH", f"/crm/v3/objects/{object_type}/{object_id}", {"properties": properties}
        )

    async def associate_objects(
        self,
        from_type: str,
        from_id: str,
        to_type: str,
        to_id: str,
        association_type_id: int,
        association_category: str = DEFAULT_ASSOCIATION_CATEGORY,
    ) -> Any:
        body = {
            "inputs": [
                {
                    "from": {"id": from_id},
                    "to": {"id": to_id},
                    "types": [
                        {
                            "associationCategory": association_category,
                            "associationTypeId": association_type_id,
                        }
                    ],
                }
            ]
        }
        return await self.request("POST", f"/crm/v3/associations/{from_type}/{to_type}/batch/create", body)


def _error_message(response: httpx.Response) -> str:
    """Prefer HubSpot's "message" field, fall back to the raw status text."""
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict) and payload.get("message"):
        return str(payload["message"])
    text = response.text.strip()
    if text:
        return text
    return f"HTTP {response.status_code} {response.reason_phrase}".strip()
