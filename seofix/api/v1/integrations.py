"""Publish-only integration endpoints: WordPress status and field fixes by URL."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException

from seofix.api.v1.auth import get_current_user, require_reviewer
from seofix.api.v1.deps import http_error
from seofix.core.config import Settings, get_settings
from seofix.schemas.auth import CurrentUser
from seofix.schemas.integrations import (
    BulkFixItemResult,
    BulkFixRequest,
    BulkFixResponse,
    IntegrationCapabilities,
    IntegrationStatusResponse,
    SingleFixRequest,
    SingleFixResponse,
    WordPressEntityOut,
)
from seofix.services.bulk_apply import bulk_apply
from seofix.services.errors import (
    CMSRequestError,
    FixEngineError,
    NotFoundError,
    RemoteWriteError,
)
from seofix.services.wordpress_adapter import WordPressAdapter, slug_from_path

router = APIRouter()


def _normalize_domain(domain: str) -> str:
    return domain.strip().lower().removeprefix("www.")


def get_wordpress_adapter(
    domain: str,
    settings: Annotated[Settings, Depends(get_settings)],
) -> WordPressAdapter:
    """Dependency: adapter for the configured WordPress site; 404 when domain is not that site."""
    configured = settings.WORDPRESS_DOMAIN
    try:
        if configured is None or _normalize_domain(domain) != configured:
            raise NotFoundError(f"No WordPress integration configured for {domain}.")
        return WordPressAdapter.from_settings(settings)
    except FixEngineError as e:
        raise http_error(e) from e


@router.get("/{domain}/status", response_model=IntegrationStatusResponse)
async def get_integration_status(
    domain: str,
    adapter: Annotated[WordPressAdapter, Depends(get_wordpress_adapter)],
    _user: Annotated[CurrentUser, Depends(get_current_user)],
) -> IntegrationStatusResponse:
    """Check the WordPress credentials and report which fields can be written."""
    try:
        user = await adapter.verify_connection()
    except CMSRequestError as e:
        return IntegrationStatusResponse(
            domain=_normalize_domain(domain),
            connected=False,
            error=e.message,
        )
    plugin = await adapter.seo_plugin()
    return IntegrationStatusResponse(
        domain=_normalize_domain(domain),
        connected=True,
        seo_plugin=plugin,
        user=user,
        capabilities=IntegrationCapabilities(
            update_title=True,
            update_meta_description=plugin != "none",
        ),
    )


@router.post("/{domain}/fix", response_model=SingleFixResponse)
async def post_single_fix(
    domain: str,
    body: SingleFixRequest,
    adapter: Annotated[WordPressAdapter, Depends(get_wordpress_adapter)],
    _user: Annotated[CurrentUser, Depends(require_reviewer)],
) -> SingleFixResponse:
    """
    Write one title or meta description to the live page or post at target_url.

    404 when no page or post has the URL's slug; 422 when the field cannot be
    written or WordPress rejects the update.
    """
    try:
        entity = await adapter.locate_by_path(body.target_url)
        if entity is None:
            raise NotFoundError(
                f"No page or post found with slug {slug_from_path(body.target_url)!r}."
            )
        updated = await adapter.apply_field(entity, body.field, body.new_value)
    except RemoteWriteError as e:
        raise HTTPException(status_code=422, detail=e.message) from e
    except FixEngineError as e:
        raise http_error(e) from e
    return SingleFixResponse(
        success=True,
        target_url=body.target_url,
        field=body.field,
        new_value=body.new_value,
        entity=WordPressEntityOut(id=entity.id, type=entity.type, title=entity.title),
        updated=updated,
    )


@router.post("/{domain}/fix/bulk", response_model=BulkFixResponse)
async def post_bulk_fix(
    domain: str,
    body: BulkFixRequest,
    adapter: Annotated[WordPressAdapter, Depends(get_wordpress_adapter)],
    settings: Annotated[Settings, Depends(get_settings)],
    _user: Annotated[CurrentUser, Depends(require_reviewer)],
) -> BulkFixResponse:
    """
    Apply title / meta description fixes to live WordPress content, one by one.

    Only the first BULK_FIX_MAX_ITEMS instructions are processed; the rest are
    reported in `dropped`. A failing item never stops the others.
    """
    result = await bulk_apply(
        adapter,
        _normalize_domain(domain),
        body.fixes,
        max_items=settings.BULK_FIX_MAX_ITEMS,
        delay_sec=settings.BULK_FIX_DELAY_SEC,
    )
    return BulkFixResponse(
        success=result.success,
        domain=result.domain,
        total=result.total,
        applied=result.applied,
        failed=result.failed,
        dropped=result.dropped,
        results=[
            BulkFixItemResult(
                target_url=r.target_url,
                field=r.field,
                success=r.success,
                error=r.error,
            )
            for r in result.results
        ],
    )
