"""Draft-capable CMS adapter for Sanity, over the Sanity HTTP API.

Sanity keeps a draft as a separate document whose id is the published id with
a "drafts." prefix. Draft writes always address the prefixed id and published
writes always address the bare id, so a draft write can never touch the live
document.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

import httpx

from seofix.services.cms_adapter import CMSAdapter
from seofix.services.errors import CMSRequestError, ConfigurationError, RemoteWriteError
from seofix.services.field_mapping import ArrayAppend, FieldPath

if TYPE_CHECKING:
    from seofix.core.config import Settings

logger = logging.getLogger(__name__)

DRAFT_PREFIX = "drafts."

# System attributes Sanity manages itself; never copied into a new draft.
_SYSTEM_ATTRIBUTES = frozenset({"_rev", "_createdAt", "_updatedAt"})


def draft_id(document_id: str) -> str:
    """Draft identity of a document ('abc' and 'drafts.abc' both give 'drafts.abc')."""
    return document_id if document_id.startswith(DRAFT_PREFIX) else DRAFT_PREFIX + document_id


def published_id(document_id: str) -> str:
    """Published identity of a document; strips the draft prefix if present."""
    return document_id[len(DRAFT_PREFIX):] if document_id.startswith(DRAFT_PREFIX) else document_id


def build_set_operation(fields: Mapping[FieldPath, Any]) -> dict[str, Any]:
    """Sanity 'set' body keyed by dotted path, so sibling fields are left alone."""
    return {
        path.dotted: value
        for path, value in fields.items()
        if not isinstance(value, ArrayAppend)
    }


def build_patches(document_id: str, fields: Mapping[FieldPath, Any]) -> list[dict[str, Any]]:
    """
    Patch mutations for one document: a single 'set' for plain values and one
    'insert' per array append. Appends create the array first when it is missing.
    """
    patches: list[dict[str, Any]] = []
    set_values = build_set_operation(fields)
    if set_values:
        patches.append({"patch": {"id": document_id, "set": set_values}})
    for path, value in fields.items():
        if isinstance(value, ArrayAppend):
            patches.append(
                {
                    "patch": {
                        "id": document_id,
                        "setIfMissing": {path.dotted: []},
                        "insert": {"after": f"{path.dotted}[-1]", "items": list(value.items)},
                    }
                }
            )
    return patches


def _error_detail(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text[:500] if resp.text else "Unknown error"
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        return str(error.get("description") or error.get("type") or error)[:500]
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])[:500]
    return json.dumps(body)[:500]


class SanityAdapter(CMSAdapter):
    platform = "sanity"
    supports_drafts = True
    supports_document_writes = True

    def __init__(
        self,
        project_id: str,
        token: str,
        dataset: str = "production",
        api_version: str = "2024-01-01",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not project_id or not project_id.strip():
            raise ConfigurationError("Sanity project id is required.")
        if not token or not token.strip():
            raise ConfigurationError("Sanity API token is required.")
        self.project_id = project_id.strip()
        self.dataset = dataset
        self.api_version = api_version
        self.timeout = timeout
        self._token = token.strip()
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> SanityAdapter:
        if not settings.SANITY_PROJECT_ID:
            raise ConfigurationError("Sanity is not configured; set SANITY_PROJECT_ID.")
        if settings.SANITY_API_TOKEN is None:
            raise ConfigurationError("Sanity is not configured; set SANITY_API_TOKEN.")
        return cls(
            project_id=settings.SANITY_PROJECT_ID,
            token=settings.SANITY_API_TOKEN.get_secret_value(),
            dataset=settings.SANITY_DATASET,
            api_version=settings.SANITY_API_VERSION,
            timeout=settings.SANITY_REQUEST_TIMEOUT_SEC,
        )

    @property
    def base_url(self) -> str:
        return f"https://{self.project_id}.api.sanity.io/v{self.api_version}"

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Authorization": f"Bearer {self._token}"},
            timeout=httpx.Timeout(self.timeout),
            transport=self._transport,
        )

    async def _request(
        self,
        method: str,
        url: str,
        error_cls: type[CMSRequestError],
        **kwargs: Any,
    ) -> Any:
        try:
            async with self._client() as client:
                resp = await client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            raise error_cls("Sanity request timed out.") from e
        except httpx.HTTPError as e:
            raise error_cls(f"Sanity request failed: {e}") from e
        if resp.status_code in (401, 403):
            raise error_cls(
                "Sanity authentication failed (token missing or lacks write access).",
                resp.status_code,
            )
        if resp.status_code >= 400:
            raise error_cls(
                f"Sanity returned {resp.status_code}: {_error_detail(resp)}",
                resp.status_code,
            )
        try:
            return resp.json()
        except ValueError as e:
            raise error_cls("Sanity response body is not valid JSON.") from e

    async def documents_by_type(self, document_type: str) -> list[dict[str, Any]]:
        params = {
            "query": "*[_type == $type]",
            "$type": json.dumps(document_type),
            "perspective": "published",
        }
        body = await self._request(
            "GET", f"/data/query/{self.dataset}", CMSRequestError, params=params
        )
        result = body.get("result") if isinstance(body, dict) else None
        return [doc for doc in (result or []) if isinstance(doc, dict)]

    async def get_document(self, document_id: str) -> dict[str, Any] | None:
        body = await self._request(
            "GET", f"/data/doc/{self.dataset}/{document_id}", CMSRequestError
        )
        documents = body.get("documents") if isinstance(body, dict) else None
        return documents[0] if documents else None

    async def _mutate(self, mutations: list[dict[str, Any]]) -> dict[str, Any]:
        return await self._request(
            "POST",
            f"/data/mutate/{self.dataset}",
            RemoteWriteError,
            params={"returnIds": "true", "autoGenerateArrayKeys": "true"},
            json={"mutations": mutations},
        )

    async def patch_draft(self, document_id: str, fields: Mapping[FieldPath, Any]) -> dict[str, Any]:
        """Write fields to the draft variant, creating it from the published document if needed."""
        live_id = published_id(document_id)
        target = draft_id(document_id)
        try:
            source = await self.get_document(live_id)
        except CMSRequestError as e:
            raise RemoteWriteError(e.message, e.status_code) from e
        seed = {k: v for k, v in (source or {}).items() if k not in _SYSTEM_ATTRIBUTES}
        seed["_id"] = target
        if "_type" not in seed:
            raise RemoteWriteError(f"Sanity document {live_id} not found.", 404)
        result = await self._mutate(
            [
                {"createIfNotExists": seed},
                *build_patches(target, fields),
            ]
        )
        logger.info(
            "Sanity draft patched",
            extra={"document_id": target, "fields": [p.dotted for p in fields]},
        )
        return result

    async def patch_published(self, document_id: str, fields: Mapping[FieldPath, Any]) -> dict[str, Any]:
        """Write fields straight to the published variant; no draft is created."""
        target = published_id(document_id)
        result = await self._mutate(build_patches(target, fields))
        logger.info(
            "Sanity published document patched",
            extra={"document_id": target, "fields": [p.dotted for p in fields]},
        )
        return result
