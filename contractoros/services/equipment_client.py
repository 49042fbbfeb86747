"""Async HTTP client for the ``/api/equipment`` endpoints."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Optional

import httpx

from contractoros.domain.equipment import EQUIPMENT_STATUSES
from contractoros.schemas.equipment import (
    CheckoutRequest,
    EquipmentCreate,
    EquipmentStats,
    EquipmentUpdate,
    ReturnRequest,
)

logger = logging.getLogger(__name__)

BASE_PATH = "/api/equipment"


class EquipmentClientError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


def _body(model, *, exclude_unset: bool = False) -> dict[str, Any]:
    return model.model_dump(
        mode="json", by_alias=True, exclude_none=True, exclude_unset=exclude_unset
    )


class EquipmentClient:
    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ):
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)
        self._headers = headers

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        failure_message: str,
        *,
        json: Optional[dict[str, Any]] = None,
        params: Optional[dict[str, str]] = None,
    ) -> httpx.Response:
        try:
            response = await self._client.request(
                method, path, json=json, params=params, headers=self._headers
            )
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise EquipmentClientError(failure_message) from exc
        if not response.is_success:
            logger.warning("%s %s returned HTTP %d", method, path, response.status_code)
            raise EquipmentClientError(failure_message, status_code=response.status_code)
        return response

    async def fetch_equipment(
        self, *, project_id: Optional[str] = None, status: Optional[str] = None
    ) -> list[dict[str, Any]]:
        params = {}
        if project_id:
            params["projectId"] = project_id
        if status:
            params["status"] = status
        response = await self._request(
            "GET", BASE_PATH, "Failed to fetch equipment", params=params or None
        )
        return response.json().get("items", [])

    async def create_equipment(self, data: EquipmentCreate) -> dict[str, Any]:
        response = await self._request(
            "POST", BASE_PATH, "Failed to create equipment", json=_body(data, exclude_unset=True)
        )
        return response.json()

    async def update_equipment(self, equipment_id: str, data: EquipmentUpdate) -> dict[str, Any]:
        response = await self._request(
            "PATCH",
            f"{BASE_PATH}/{equipment_id}",
            "Failed to update equipment",
            json=_body(data, exclude_unset=True),
        )
        return response.json()

    async def delete_equipment(self, equipment_id: str) -> None:
        await self._request("DELETE", f"{BASE_PATH}/{equipment_id}", "Failed to delete equipment")

    async def check_out(self, equipment_id: str, data: CheckoutRequest) -> dict[str, Any]:
        response = await self._request(
            "POST",
            f"{BASE_PATH}/{equipment_id}/checkout",
            "Failed to check out equipment",
            json=_body(data),
        )
        return response.json()

    async def return_equipment(self, equipment_id: str, data: ReturnRequest) -> dict[str, Any]:
        response = await self._request(
            "POST",
            f"{BASE_PATH}/{equipment_id}/return",
            "Failed to return equipment",
            json=_body(data),
        )
        return response.json()


def compute_equipment_stats(items: Iterable[Mapping[str, Any]]) -> EquipmentStats:
    counts = {status: 0 for status in EQUIPMENT_STATUSES}
    total = 0
    for item in items:
        total += 1
        status = item.get("status")
        if status in counts:
            counts[status] += 1
    return EquipmentStats(total=total, **counts)
