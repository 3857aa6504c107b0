"""Fix review endpoints: get, approve, reject, apply (draft) and publish (live)."""

from typing import Annotated

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from seofix.api.v1.auth import get_current_user, require_reviewer
from seofix.api.v1.deps import fix_out, get_cms_adapter, http_error
from seofix.core.database import get_db
from seofix.schemas.auth import CurrentUser
from seofix.schemas.fix import ApplyRequest, FixActionResponse, FixRecordOut, PublishRequest
from seofix.services.cms_adapter import CMSAdapter
from seofix.services.errors import FixEngineError
from seofix.services.fix_ledger import approve, get_fix, reject
from seofix.services.fix_writer import apply_fix, publish_fix

router = APIRouter()


@router.get("/{fix_id}", response_model=FixRecordOut)
def get_fix_record(
    fix_id: str,
    db: Annotated[Session, Depends(get_db)],
    _user: Annotated[CurrentUser, Depends(get_current_user)],
) -> FixRecordOut:
    try:
        return fix_out(get_fix(db, fix_id))
    except FixEngineError as e:
        raise http_error(e) from e


@router.post("/{fix_id}/approve", response_model=FixActionResponse)
def post_approve(
    fix_id: str,
    db: Annotated[Session, Depends(get_db)],
    _user: Annotated[CurrentUser, Depends(require_reviewer)],
) -> FixActionResponse:
    try:
        fix = approve(db, fix_id)
    except FixEngineError as e:
        raise http_error(e) from e
    return FixActionResponse(fix=fix_out(fix), message="Fix approved.")


@router.post("/{fix_id}/reject", response_model=FixActionResponse)
def post_reject(
    fix_id: str,
    db: Annotated[Session, Depends(get_db)],
    _user: Annotated[CurrentUser, Depends(require_reviewer)],
) -> FixActionResponse:
    try:
        fix = reject(db, fix_id)
    except FixEngineError as e:
        raise http_error(e) from e
    return FixActionResponse(fix=fix_out(fix), message="Fix rejected.")


@router.post("/{fix_id}/apply", response_model=FixActionResponse)
async def post_apply(
    fix_id: str,
    db: Annotated[Session, Depends(get_db)],
    adapter: Annotated[CMSAdapter, Depends(get_cms_adapter)],
    _user: Annotated[CurrentUser, Depends(require_reviewer)],
    body: Annotated[ApplyRequest | None, Body()] = None,
) -> FixActionResponse:
    """
    Write the fix to the draft copy of its CMS document.

    PENDING and FAILED fixes are approved first unless auto_approve is false.
    A failed CMS write returns 502 and leaves the fix FAILED with the reason.
    """
    body = body or ApplyRequest()
    try:
        outcome = await apply_fix(
            db,
            adapter,
            fix_id,
            override=body.proposed_value,
            auto_approve=body.auto_approve,
        )
    except FixEngineError as e:
        raise http_error(e) from e
    message = "Fix applied to draft." if outcome.remote_write else "Fix was already applied."
    return FixActionResponse(
        fix=fix_out(outcome.fix), message=message, remote_write=outcome.remote_write
    )


@router.post("/{fix_id}/publish", response_model=FixActionResponse)
async def post_publish(
    fix_id: str,
    db: Annotated[Session, Depends(get_db)],
    adapter: Annotated[CMSAdapter, Depends(get_cms_adapter)],
    _user: Annotated[CurrentUser, Depends(require_reviewer)],
    body: Annotated[PublishRequest | None, Body()] = None,
) -> FixActionResponse:
    """Write the fix to the live CMS document. Publishing an already published fix writes nothing."""
    body = body or PublishRequest()
    try:
        outcome = await publish_fix(db, adapter, fix_id, override=body.proposed_value)
    except FixEngineError as e:
        raise http_error(e) from e
    message = "Fix published." if outcome.remote_write else "Fix was already published."
    return FixActionResponse(
        fix=fix_out(outcome.fix), message=message, remote_write=outcome.remote_write
    )
