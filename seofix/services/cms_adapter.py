"""CMS adapter interface and the factory that picks a realization from settings."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from seofix.services.errors import ConfigurationError, UnsupportedOperationError
from seofix.services.field_mapping import FieldPath

if TYPE_CHECKING:
    from seofix.core.config import Settings


@dataclass(frozen=True)
class EntityRef:
    """A CMS entity located by URL path (publish-only platforms)."""

    id: int | str
    type: str
    title: str = ""


class CMSAdapter:
    """
    Capability interface the fix engine writes through.

    Subclasses override what their platform supports; everything else raises
    UnsupportedOperationError so a missing capability is never a silent no-op.
    """

    platform = "unknown"
    supports_drafts = False
    supports_path_lookup = False
    supports_document_writes = False

    async def documents_by_type(self, document_type: str) -> list[dict[str, Any]]:
        raise UnsupportedOperationError(
            f"{self.platform} does not support listing documents by type."
        )

    @staticmethod
    def field_value(doc: Mapping[str, Any] | None, field_path: FieldPath) -> Any:
        """Nested lookup; None when the document or any segment is missing."""
        current: Any = doc
        for key in field_path.keys:
            if not isinstance(current, Mapping):
                return None
            current = current.get(key)
            if current is None:
                return None
        return current

    async def patch_draft(self, document_id: str, fields: Mapping[FieldPath, Any]) -> dict[str, Any]:
        raise UnsupportedOperationError(f"{self.platform} has no draft workflow.")

    async def patch_published(self, document_id: str, fields: Mapping[FieldPath, Any]) -> dict[str, Any]:
        raise UnsupportedOperationError(
            f"{self.platform} does not support direct document patches."
        )

    async def locate_by_path(self, url_path: str) -> EntityRef | None:
        raise UnsupportedOperationError(
            f"{self.platform} does not support locating content by URL path."
        )

    async def apply_field(self, entity: EntityRef, field: str, value: str) -> dict[str, Any]:
        raise UnsupportedOperationError(
            f"{self.platform} does not support per-field writes."
        )


def build_cms_adapter(settings: Settings) -> CMSAdapter:
    """Build the adapter for CMS_PLATFORM. Raises ConfigurationError when credentials are missing."""
    # Local imports: both realizations import this module.
    if settings.CMS_PLATFORM == "wordpress":
        from seofix.services.wordpress_adapter import WordPressAdapter

        return WordPressAdapter.from_settings(settings)
    if settings.CMS_PLATFORM == "sanity":
        from seofix.services.sanity_adapter import SanityAdapter

        return SanityAdapter.from_settings(settings)
    raise ConfigurationError(f"Unknown CMS_PLATFORM {settings.CMS_PLATFORM!r}.")
