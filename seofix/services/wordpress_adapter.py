"""Publish-only CMS adapter for WordPress, over the WordPress REST API.

WordPress has no draft copy of a live post that can be edited independently,
so every write here goes straight to the live content. Content is located by
matching a URL path against page slugs first and post slugs second. SEO title
and meta description live in the active SEO plugin's post meta (Yoast or
RankMath); without one of those plugins the meta description cannot be set.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal
from urllib.parse import urlsplit

import httpx

from seofix.services.cms_adapter import CMSAdapter, EntityRef
from seofix.services.errors import (
    CMSRequestError,
    ConfigurationError,
    RemoteWriteError,
    UnsupportedOperationError,
)

if TYPE_CHECKING:
    from seofix.core.config import Settings

logger = logging.getLogger(__name__)

SeoPlugin = Literal["yoast", "rankmath", "none"]

FIELD_TITLE = "title"
FIELD_META_DESCRIPTION = "meta_description"
SUPPORTED_FIELDS = (FIELD_TITLE, FIELD_META_DESCRIPTION)

# Collections searched for a slug, in order; first match wins.
LOOKUP_COLLECTIONS = (("pages", "page"), ("posts", "post"))

# Post meta keys per SEO plugin.
_TITLE_META_KEYS: dict[str, str] = {
    "yoast": "_yoast_wpseo_title",
    "rankmath": "rank_math_title",
}
_DESCRIPTION_META_KEYS: dict[str, str] = {
    "yoast": "_yoast_wpseo_metadesc",
    "rankmath": "rank_math_description",
}


@dataclass(frozen=True)
class WordPressCredentials:
    """Already-decrypted connection details for one WordPress site."""

    api_url: str
    username: str
    app_password: str
    seo_plugin: Literal["auto", "yoast", "rankmath", "none"] = "auto"


def slug_from_path(url_path: str) -> str:
    """
    Normalize a URL or path to a WordPress slug.

    '/blog/my-post/' -> 'my-post'; 'https://x.com/about?a=1' -> 'about';
    '/' -> '' (the site root has no slug).
    """
    parts = urlsplit(url_path.strip())
    path = parts.path if (parts.scheme or parts.netloc) else url_path.split("?")[0].split("#")[0]
    segments = [s for s in path.strip().split("/") if s]
    return segments[-1].lower() if segments else ""


def plugin_from_slugs(plugin_slugs: list[str]) -> SeoPlugin:
    """Detect the SEO plugin from active plugin identifiers (e.g. 'wordpress-seo/wp-seo')."""
    lowered = [s.lower() for s in plugin_slugs]
    if any("wordpress-seo" in s for s in lowered):
        return "yoast"
    if any("seo-by-rank-math" in s for s in lowered):
        return "rankmath"
    return "none"


def _error_detail(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text[:500] if resp.text else "Unknown error"
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])[:500]
    return str(body)[:500]


class WordPressAdapter(CMSAdapter):
    platform = "wordpress"
    supports_path_lookup = True

    def __init__(
        self,
        credentials: WordPressCredentials,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not credentials.api_url or not credentials.api_url.strip():
            raise ConfigurationError("WordPress API URL is required.")
        if not credentials.username or not credentials.app_password:
            raise ConfigurationError("WordPress username and application password are required.")
        self.api_url = credentials.api_url.strip().rstrip("/")
        self.timeout = timeout
        self._auth = (credentials.username, credentials.app_password)
        self._configured_plugin = credentials.seo_plugin
        self._seo_plugin: SeoPlugin | None = (
            None if credentials.seo_plugin == "auto" else credentials.seo_plugin
        )
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> WordPressAdapter:
        missing = [
            name
            for name, value in (
                ("WORDPRESS_API_URL", settings.WORDPRESS_API_URL),
                ("WORDPRESS_USERNAME", settings.WORDPRESS_USERNAME),
                ("WORDPRESS_APP_PASSWORD", settings.WORDPRESS_APP_PASSWORD),
            )
            if not value
        ]
        if missing:
            raise ConfigurationError(
                f"WordPress is not configured; set {', '.join(missing)}."
            )
        credentials = WordPressCredentials(
            api_url=settings.WORDPRESS_API_URL or "",
            username=settings.WORDPRESS_USERNAME or "",
            app_password=settings.WORDPRESS_APP_PASSWORD.get_secret_value(),
            seo_plugin=settings.WORDPRESS_SEO_PLUGIN,
        )
        return cls(credentials, timeout=settings.WORDPRESS_REQUEST_TIMEOUT_SEC)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=f"{self.api_url}/wp/v2",
            auth=self._auth,
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
            raise error_cls("WordPress request timed out.") from e
        except httpx.HTTPError as e:
            raise error_cls(f"WordPress request failed: {e}") from e
        if resp.status_code == 401:
            raise error_cls(
                "WordPress authentication failed (check username and application password).",
                401,
            )
        if resp.status_code >= 400:
            raise error_cls(
                f"WordPress returned {resp.status_code}: {_error_detail(resp)}",
                resp.status_code,
            )
        try:
            return resp.json()
        except ValueError as e:
            raise error_cls("WordPress response body is not valid JSON.") from e

    async def verify_connection(self) -> dict[str, Any]:
        """Fetch the authenticated user; raises CMSRequestError when credentials are rejected."""
        body = await self._request("GET", "/users/me", CMSRequestError)
        return {"id": body.get("id"), "name": body.get("name")}

    async def seo_plugin(self) -> SeoPlugin:
        """Active SEO plugin, detected once per adapter when configured as 'auto'."""
        if self._seo_plugin is not None:
            return self._seo_plugin
        try:
            plugins = await self._request(
                "GET",
                "/plugins",
                CMSRequestError,
                params={"status": "active", "per_page": 50},
            )
            slugs = [str(p.get("plugin", "")) for p in plugins if isinstance(p, dict)]
            detected = plugin_from_slugs(slugs)
        except CMSRequestError as e:
            # Listing plugins needs manage_options; other users cannot see them.
            logger.warning(
                "WordPress plugin detection failed; assuming no SEO plugin",
                extra={"api_url": self.api_url, "reason": e.message[:200]},
            )
            detected = "none"
        self._seo_plugin = detected
        return detected

    async def locate_by_path(self, url_path: str) -> EntityRef | None:
        slug = slug_from_path(url_path)
        if not slug:
            return None
        for collection, entity_type in LOOKUP_COLLECTIONS:
            try:
                items = await self._request(
                    "GET",
                    f"/{collection}",
                    CMSRequestError,
                    params={"slug": slug, "_fields": "id,slug,title,link", "per_page": 5},
                )
            except CMSRequestError as e:
                logger.warning(
                    "WordPress slug lookup failed",
                    extra={"collection": collection, "slug": slug, "reason": e.message[:200]},
                )
                continue
            item = next(
                (i for i in items or () if isinstance(i, dict) and i.get("id") is not None),
                None,
            )
            if item is not None:
                title = item.get("title") or {}
                return EntityRef(
                    id=item["id"],
                    type=entity_type,
                    title=title.get("rendered", "") if isinstance(title, dict) else str(title),
                )
        return None

    async def apply_field(self, entity: EntityRef, field: str, value: str) -> dict[str, Any]:
        """Write one field directly to the live entity."""
        if field not in SUPPORTED_FIELDS:
            raise UnsupportedOperationError(
                f"Field {field!r} is not supported on WordPress; supported: {', '.join(SUPPORTED_FIELDS)}."
            )
        plugin = await self.seo_plugin()
        payload: dict[str, Any]
        if field == FIELD_TITLE:
            meta_key = _TITLE_META_KEYS.get(plugin)
            # Native title is the H1 in most themes; plugin meta is the <title> override.
            payload = {"title": value, "meta": {meta_key: value} if meta_key else {}}
        else:
            meta_key = _DESCRIPTION_META_KEYS.get(plugin)
            if meta_key is None:
                raise UnsupportedOperationError(
                    "No supported SEO plugin detected. Install Yoast SEO or RankMath to enable meta description editing."
                )
            payload = {"meta": {meta_key: value}}
        body = await self._request(
            "POST", f"/{entity.type}s/{entity.id}", RemoteWriteError, json=payload
        )
        logger.info(
            "WordPress field updated",
            extra={"entity_type": entity.type, "entity_id": entity.id, "field": field},
        )
        return {"id": body.get("id", entity.id)}
