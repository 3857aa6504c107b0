"""Static mapping from audit issue types to the CMS field each one is fixed in.

The table is intentionally partial: issue types that are not listed are not
auto-fixable and are skipped by the generation pass. Several issue types may
point at the same field (analyzer versions used different names), and one
issue type may fan out to more than one target.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any

from seofix.services.errors import InvalidValueError

MAPPING_VERSION = "2026-02-26"

_KEY_PATTERN = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


@dataclass(frozen=True)
class FieldPath:
    """Ordered, validated keys addressing a nested document field."""

    keys: tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.keys:
            raise ValueError("field path must have at least one key")
        for key in self.keys:
            if not isinstance(key, str) or not _KEY_PATTERN.fullmatch(key):
                raise ValueError(f"invalid field path key: {key!r}")

    @classmethod
    def of(cls, *keys: str) -> FieldPath:
        return cls(tuple(keys))

    @classmethod
    def parse(cls, dotted: str) -> FieldPath:
        """Build from the dotted storage form, e.g. 'heroSection.image.alt'."""
        if not dotted or not dotted.strip():
            raise ValueError("field path must be non-empty")
        return cls(tuple(dotted.strip().split(".")))

    @property
    def dotted(self) -> str:
        return ".".join(self.keys)

    def __str__(self) -> str:
        return self.dotted


class FieldKind(str, Enum):
    """Proposal policy and write coercion for a field."""

    TITLE = "title"
    META_DESCRIPTION = "meta_description"
    OG_TITLE = "og_title"
    OG_DESCRIPTION = "og_description"
    CANONICAL_URL = "canonical_url"
    TWITTER_CARD = "twitter_card"
    ROBOTS_INDEX = "robots_index"
    ORGANIZATION_NAME = "organization_name"
    ANALYTICS_ID = "analytics_id"
    TAG_MANAGER_ID = "tag_manager_id"
    SOCIAL_HANDLE = "social_handle"
    IMAGE_ALT = "image_alt"
    HERO_HEADING = "hero_heading"
    STRUCTURED_DATA = "structured_data"
    MAPS_URL = "maps_url"
    REVIEWS_URL = "reviews_url"
    META_TAGS = "meta_tags"
    GUIDANCE = "guidance"

    def coerce(self, value: str) -> Any:
        """
        Convert a stored proposal (always text) to the type written to the CMS.

        Raises InvalidValueError when the text is not a valid value for the
        kind; an unreadable boolean is never guessed.
        """
        if self is FieldKind.ROBOTS_INDEX:
            normalized = value.strip().lower()
            if normalized not in _BOOLEAN_TEXT:
                raise InvalidValueError(
                    f"Value for a {self.value} field must be 'true' or 'false', got {value!r}."
                )
            return _BOOLEAN_TEXT[normalized]
        if self is FieldKind.META_TAGS:
            return ArrayAppend(_parse_meta_tags(value))
        return value


_BOOLEAN_TEXT = {"true": True, "false": False}


@dataclass(frozen=True)
class ArrayAppend:
    """Items appended to an array field; existing items are kept."""

    items: tuple[dict[str, Any], ...]


def _parse_meta_tags(value: str) -> tuple[dict[str, Any], ...]:
    """JSON list of {name, content} objects, e.g. '[{"name": "viewport", ...}]'."""
    try:
        parsed = json.loads(value)
    except ValueError as e:
        raise InvalidValueError(f"Meta tags must be a JSON list: {e}") from e
    if isinstance(parsed, dict):
        parsed = [parsed]
    if not isinstance(parsed, list) or not parsed:
        raise InvalidValueError("Meta tags must be a non-empty JSON list.")
    for item in parsed:
        if not (
            isinstance(item, dict)
            and isinstance(item.get("name"), str)
            and isinstance(item.get("content"), str)
        ):
            raise InvalidValueError("Each meta tag needs string 'name' and 'content' keys.")
    return tuple(parsed)


@dataclass(frozen=True)
class FieldDescriptor:
    document_type: str
    field_path: FieldPath
    kind: FieldKind


@dataclass(frozen=True)
class FixTarget:
    """A descriptor plus the issue type recorded on the fix (differs from the finding's on fan-out)."""

    issue_type: str
    descriptor: FieldDescriptor


SEO_SETTINGS = "seoSettings"
PAGE_CONTENT = "pageContent"


def _seo(path: str, kind: FieldKind) -> FieldDescriptor:
    return FieldDescriptor(SEO_SETTINGS, FieldPath.parse(path), kind)


def _page(path: str, kind: FieldKind) -> FieldDescriptor:
    return FieldDescriptor(PAGE_CONTENT, FieldPath.parse(path), kind)


META_DESCRIPTION = _seo("metaDescription", FieldKind.META_DESCRIPTION)
META_TITLE = _seo("metaTitle", FieldKind.TITLE)
OG_TITLE = _seo("ogTitle", FieldKind.OG_TITLE)
OG_DESCRIPTION = _seo("ogDescription", FieldKind.OG_DESCRIPTION)
TWITTER_CARD = _seo("twitterCardType", FieldKind.TWITTER_CARD)
CANONICAL_URL = _seo("canonicalUrl", FieldKind.CANONICAL_URL)
ROBOTS_INDEX = _seo("robotsSettings.index", FieldKind.ROBOTS_INDEX)
ORGANIZATION_NAME = _seo("structuredData.organizationName", FieldKind.ORGANIZATION_NAME)
ANALYTICS_ID = _seo("googleAnalyticsId", FieldKind.ANALYTICS_ID)
TAG_MANAGER_ID = _seo("googleTagManagerId", FieldKind.TAG_MANAGER_ID)
TWITTER_HANDLE = _seo("twitterHandle", FieldKind.SOCIAL_HANDLE)
LOCAL_BUSINESS_SCHEMA = _seo("localBusinessSchema", FieldKind.STRUCTURED_DATA)
MAPS_URL = _seo("googleMapsUrl", FieldKind.MAPS_URL)
REVIEWS_URL = _seo("reviewsUrl", FieldKind.REVIEWS_URL)
ADDITIONAL_META_TAGS = _seo("additionalMetaTags", FieldKind.META_TAGS)
HERO_IMAGE_ALT = _page("heroSection.image.alt", FieldKind.IMAGE_ALT)
HERO_TITLE = _page("heroSection.title", FieldKind.HERO_HEADING)

# Issue type -> descriptor. Order inside the dict is irrelevant.
ISSUE_FIELD_MAP: dict[str, FieldDescriptor] = {
    # Meta description
    "missing_meta_description": META_DESCRIPTION,
    "description_too_short": META_DESCRIPTION,
    "description_too_long": META_DESCRIPTION,
    # Page title
    "missing_title": META_TITLE,
    "title_missing": META_TITLE,
    "title_too_short": META_TITLE,
    "title_too_long": META_TITLE,
    "no_location_in_title": META_TITLE,
    # Open Graph
    "missing_og_tags": OG_TITLE,
    "missing_og_title": OG_TITLE,
    "missing_og_description": OG_DESCRIPTION,
    # Twitter
    "missing_twitter_tags": TWITTER_CARD,
    "missing_twitter_card": TWITTER_CARD,
    "missing_twitter_handle": TWITTER_HANDLE,
    # Canonical
    "missing_canonical": CANONICAL_URL,
    "canonical_mismatch": CANONICAL_URL,
    # Robots indexing
    "noindex_set": ROBOTS_INDEX,
    "robots_noindex": ROBOTS_INDEX,
    "robots_blocking": ROBOTS_INDEX,
    "missing_robots": ROBOTS_INDEX,
    # Analytics
    "missing_ga": ANALYTICS_ID,
    "missing_google_analytics": ANALYTICS_ID,
    "missing_gtm": TAG_MANAGER_ID,
    # Organization / local business
    "missing_organization_name": ORGANIZATION_NAME,
    "limited_structured_data": LOCAL_BUSINESS_SCHEMA,
    "missing_local_business_schema": LOCAL_BUSINESS_SCHEMA,
    "incomplete_nap": LOCAL_BUSINESS_SCHEMA,
    "inconsistent_address": LOCAL_BUSINESS_SCHEMA,
    "inconsistent_phone": LOCAL_BUSINESS_SCHEMA,
    "no_reviews_link": REVIEWS_URL,
    "no_google_maps": MAPS_URL,
    # Hero section
    "missing_image_alt": HERO_IMAGE_ALT,
    "images_missing_alt": HERO_IMAGE_ALT,
    "multiple_h1": HERO_TITLE,
    # Mobile: viewport tag appended to the tags the frontend renders
    "mobile_not_optimized": ADDITIONAL_META_TAGS,
    # Developer guidance notes (free text, only filled when empty)
    "robots_blocks_all": _seo("robotsGuidance", FieldKind.GUIDANCE),
    "missing_contact_page": _seo("contactPageGuidance", FieldKind.GUIDANCE),
    "missing_about_page": _seo("aboutPageGuidance", FieldKind.GUIDANCE),
    "no_faq_sections": _seo("faqNotes", FieldKind.GUIDANCE),
    "low_avg_word_count": _seo("contentStrategy", FieldKind.GUIDANCE),
    "missing_location_keywords": _seo("locationKeywords", FieldKind.GUIDANCE),
}

# Extra targets produced alongside the primary one.
FAN_OUT: dict[str, tuple[FixTarget, ...]] = {
    "missing_og_tags": (FixTarget("missing_og_description", OG_DESCRIPTION),),
}


def lookup(issue_type: str) -> FieldDescriptor | None:
    """Primary descriptor for an issue type, or None when it is not auto-fixable."""
    return ISSUE_FIELD_MAP.get(issue_type)


def targets_for(issue_type: str) -> tuple[FixTarget, ...]:
    """Every fix target for an issue type, primary first. Empty when unmapped."""
    descriptor = lookup(issue_type)
    if descriptor is None:
        return ()
    return (FixTarget(issue_type, descriptor),) + FAN_OUT.get(issue_type, ())


def document_types() -> frozenset[str]:
    """All document types referenced anywhere in the table."""
    return frozenset(d.document_type for d in ISSUE_FIELD_MAP.values())
