"""Deterministic value proposals for fixable fields.

propose() is a pure function of its arguments: the same audit evidence and
current CMS value always give the same proposal, which keeps generation
idempotent. It returns None whenever a safe value cannot be built; fields
that look like credentials or account handles are never guessed.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from urllib.parse import quote

from seofix.services.field_mapping import FieldDescriptor, FieldKind

TITLE_MIN_LENGTH = 30
TITLE_MAX_LENGTH = 60
TITLE_TRUNCATE_AT = 57

DESCRIPTION_MIN_LENGTH = 120
DESCRIPTION_MAX_LENGTH = 160
DESCRIPTION_TRIM_AT = 155
DESCRIPTION_MIN_USABLE = 80
OG_DESCRIPTION_MIN_SOURCE = 60

ELLIPSIS = "…"
TWITTER_CARD_TYPE = "summary_large_image"
ROBOTS_INDEX_VALUE = "true"
VIEWPORT_TAG = {"name": "viewport", "content": "width=device-width, initial-scale=1"}

LOCATION_TITLE_SUFFIX = "Online"
LOCATION_TITLE_MAX_BASE = 45
_LOCATION_WORDS = ("online", "virtual")

_REVIEW_SLUG_SUFFIX = re.compile(r"\.(io|com|co)\b.*$")

# NAP (name, address, phone) issues get placeholders for the missing parts.
_NEEDS_PHONE = frozenset({"incomplete_nap", "inconsistent_phone"})
_NEEDS_ADDRESS = frozenset({"incomplete_nap", "inconsistent_address"})

_TRAILING_PARTIAL_WORD = re.compile(r"\s\S*$")

_GUIDANCE_BY_ISSUE: dict[str, str] = {
    "robots_blocks_all": (
        "robots.txt is blocking all search engine crawlers.\n\n"
        "To fix:\n"
        "1. Edit https://{domain}/robots.txt on the web server or hosting panel\n"
        '2. Replace "Disallow: /" with "Disallow:" (empty value allows everything)\n'
        "3. Add a sitemap line: Sitemap: https://{domain}/sitemap.xml\n\n"
        "This is a server configuration change; it cannot be made from the CMS."
    ),
    "missing_contact_page": (
        "Contact page is missing. Create a /contact page with:\n"
        "1. Business email address\n"
        "2. Contact form (name, email, message)\n"
        "3. Expected response time\n"
        "4. Physical address if applicable\n"
        "5. Links to social profiles"
    ),
    "missing_about_page": (
        "About page is missing. Create an /about page with:\n"
        "1. Mission and company story\n"
        "2. Team members with photos and short bios\n"
        "3. Founding year and milestones\n"
        "4. Press mentions, certifications or accreditations"
    ),
    "no_faq_sections": (
        "Add a FAQ section to the homepage and key service pages. Suggested questions:\n\n"
        "Q: What does {brand} do?\n"
        "Q: How does pricing work?\n"
        "Q: How long does setup take?\n"
        "Q: What makes {brand} different?\n"
        "Q: How can I get started?\n\n"
        "Mark up each question and answer with FAQPage JSON-LD."
    ),
    "low_avg_word_count": (
        "Average word count is low. Content plan:\n"
        "1. Homepage: 800 to 1200 words (features, testimonials, clear CTA)\n"
        "2. Service pages: 600 to 1000 words (problem, approach, outcomes)\n"
        "3. Blog: 3 to 5 posts of 500+ words answering customer questions\n"
        "4. Write for readers first; avoid keyword stuffing"
    ),
    "missing_location_keywords": (
        "Service area keywords to add across pages:\n"
        "- Put the primary city or region in page titles and H1s\n"
        "- For online services use \"online\", \"virtual\", \"remote\" or \"nationwide\"\n"
        "- Cover the homepage H1, the About page and the Contact page\n"
        "- Example title: \"{brand} | Online\"\n"
        "- Check Search Console for location-based queries already bringing traffic"
    ),
}


@dataclass(frozen=True)
class AuditContext:
    domain: str


@dataclass(frozen=True)
class SiteEvidence:
    """What the crawler saw on the homepage."""

    title: str | None = None
    meta_description: str | None = None

    @property
    def brand(self) -> str | None:
        """Title up to the first separator, e.g. 'Acme' from 'Acme | Widgets'."""
        if not self.title:
            return None
        head = re.split(r"[-|—]", self.title)[0].strip()
        return head or None


def _is_empty(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, dict)):
        return not value
    return False


def _bare_domain(domain: str) -> str:
    return re.sub(r"^www\.", "", domain.strip(), flags=re.IGNORECASE)


def organization_name_from_domain(domain: str) -> str:
    """Second-to-last dot segment, capitalized: 'www.acme-tools.co' -> 'Acme-tools'."""
    parts = _bare_domain(domain).split(".")
    name = parts[-2] if len(parts) >= 2 else parts[0]
    return name[:1].upper() + name[1:]


def propose_title(audit: AuditContext, evidence: SiteEvidence) -> str:
    title = (evidence.title or "").strip()
    if not title:
        return f"{audit.domain} | Professional Services"
    if TITLE_MIN_LENGTH <= len(title) <= TITLE_MAX_LENGTH:
        return title
    if len(title) > TITLE_MAX_LENGTH:
        return title[:TITLE_TRUNCATE_AT] + ELLIPSIS
    return f"{title} | {audit.domain}"


def propose_meta_description(audit: AuditContext, evidence: SiteEvidence) -> str:
    description = (evidence.meta_description or "").strip()
    if DESCRIPTION_MIN_LENGTH <= len(description) <= DESCRIPTION_MAX_LENGTH:
        return description
    if len(description) > DESCRIPTION_MAX_LENGTH:
        trimmed = _TRAILING_PARTIAL_WORD.sub("", description[:DESCRIPTION_TRIM_AT])
        if len(trimmed) >= DESCRIPTION_MIN_USABLE:
            return trimmed + ELLIPSIS
    site_title = (evidence.title or "").strip() or audit.domain
    return (
        f"{site_title}: learn about our solutions and how we help you achieve "
        "your goals. Explore our services today."
    )


def propose_og_description(audit: AuditContext, evidence: SiteEvidence) -> str:
    source = (evidence.meta_description or "").strip()
    if len(source) >= OG_DESCRIPTION_MIN_SOURCE:
        return propose_meta_description(audit, evidence)
    site_title = (evidence.title or "").strip() or audit.domain
    return f"{site_title}: explore our solutions and discover how we can help you succeed."


def propose_location_title(audit: AuditContext, current_value: object) -> str | None:
    """Add a service-area word to the current title when it has room and lacks one."""
    current = current_value.strip() if isinstance(current_value, str) else ""
    if not current:
        return f"{organization_name_from_domain(audit.domain)} | {LOCATION_TITLE_SUFFIX}"
    lowered = current.lower()
    if len(current) > LOCATION_TITLE_MAX_BASE or any(w in lowered for w in _LOCATION_WORDS):
        return None
    return f"{current} | {LOCATION_TITLE_SUFFIX}"


def reviews_url(domain: str) -> str:
    """'www.acme.com' -> 'https://g.page/acme/review'."""
    slug = _REVIEW_SLUG_SUFFIX.sub("", _bare_domain(domain).lower())
    return f"https://g.page/{slug}/review"


def _has_viewport_tag(current_value: object) -> bool:
    tags = current_value
    if isinstance(current_value, str):
        try:
            tags = json.loads(current_value)
        except ValueError:
            return False
    if not isinstance(tags, list):
        return False
    return any(isinstance(t, dict) and t.get("name") == "viewport" for t in tags)


def _structured_data(issue_type: str, domain: str) -> str:
    payload: dict[str, object] = {
        "@context": "https://schema.org",
        "@type": "Organization",
        "name": organization_name_from_domain(domain),
        "url": f"https://{domain}",
    }
    # Placeholders are for the reviewer to replace before the fix is applied.
    if issue_type in _NEEDS_PHONE:
        payload["telephone"] = "UPDATE: phone number"
    if issue_type in _NEEDS_ADDRESS:
        payload["address"] = {
            "@type": "PostalAddress",
            "streetAddress": "UPDATE: street address",
            "addressLocality": "UPDATE: city",
            "postalCode": "UPDATE: postal code",
        }
    return json.dumps(payload, indent=2, sort_keys=True)


def propose(
    issue_type: str,
    descriptor: FieldDescriptor,
    audit: AuditContext,
    evidence: SiteEvidence,
    current_value: object = None,
) -> str | None:
    """Return the proposed value for descriptor, or None when no safe value exists."""
    kind = descriptor.kind

    if kind is FieldKind.TITLE and issue_type == "no_location_in_title":
        return propose_location_title(audit, current_value)
    if kind is FieldKind.TITLE or kind is FieldKind.OG_TITLE:
        return propose_title(audit, evidence)
    if kind is FieldKind.META_DESCRIPTION:
        return propose_meta_description(audit, evidence)
    if kind is FieldKind.OG_DESCRIPTION:
        return propose_og_description(audit, evidence)
    if kind is FieldKind.CANONICAL_URL:
        return f"https://{audit.domain}/"
    if kind is FieldKind.TWITTER_CARD:
        return TWITTER_CARD_TYPE
    if kind is FieldKind.ROBOTS_INDEX:
        return ROBOTS_INDEX_VALUE
    if kind in (FieldKind.ANALYTICS_ID, FieldKind.TAG_MANAGER_ID, FieldKind.SOCIAL_HANDLE):
        return None
    if kind is FieldKind.IMAGE_ALT:
        if evidence.title:
            return f"{evidence.title.strip()} - hero image"
        return f"{audit.domain} hero image"
    if kind is FieldKind.HERO_HEADING:
        return evidence.title.strip() if evidence.title and evidence.title.strip() else None
    if kind is FieldKind.META_TAGS:
        # Appended, so existing tags stay; only skipped when a viewport tag is already there.
        return None if _has_viewport_tag(current_value) else json.dumps([VIEWPORT_TAG])

    # The remaining kinds never overwrite a value a human already entered.
    if not _is_empty(current_value):
        return None
    if kind is FieldKind.ORGANIZATION_NAME:
        return organization_name_from_domain(audit.domain)
    if kind is FieldKind.STRUCTURED_DATA:
        return _structured_data(issue_type, audit.domain)
    if kind is FieldKind.MAPS_URL:
        return f"https://maps.google.com/maps?q={quote(audit.domain, safe='')}"
    if kind is FieldKind.REVIEWS_URL:
        return reviews_url(audit.domain)
    if kind is FieldKind.GUIDANCE:
        template = _GUIDANCE_BY_ISSUE.get(issue_type)
        if template is None:
            return None
        return template.format(
            domain=audit.domain,
            brand=evidence.brand or audit.domain,
        )
    return None
