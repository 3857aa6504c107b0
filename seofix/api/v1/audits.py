"""Audit endpoints: ingest an audit, generate its fixes and list them."""

import json
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Request, UploadFile
from pydantic import ValidationError
from sqlalchemy.orm import Session

from seofix.api.v1.auth import get_current_user, require_reviewer
from seofix.api.v1.deps import fix_out, get_cms_adapter, http_error
from seofix.core.database import get_db
from seofix.schemas.audit import AuditCreateRequest, AuditCreateResponse
from seofix.schemas.auth import CurrentUser
from seofix.schemas.fix import FixListResponse, FixStatus, GenerateResponse
from seofix.services.audit_ingest import ingest_audit
from seofix.services.cms_adapter import CMSAdapter
from seofix.services.errors import FixEngineError
from seofix.services.fix_generation import generate_fixes
from seofix.services.fix_ledger import list_fixes

router = APIRouter()

MAX_UPLOAD_FILE_BYTES = 50 * 1024 * 1024  # 50 MB


def _is_upload_file(obj: object) -> bool:
    if isinstance(obj, UploadFile):
        return True
    return (
        hasattr(obj, "read")
        and callable(getattr(obj, "read", None))
        and hasattr(obj, "filename")
    )


def _parse_audit(data: object) -> AuditCreateRequest:
    if not isinstance(data, dict):
        raise HTTPException(status_code=422, detail="Audit payload must be a JSON object.")
    try:
        return AuditCreateRequest.model_validate(data)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors()) from e


async def _get_audit_from_request(request: Request) -> AuditCreateRequest:
    """Read the audit from a JSON body or from a .json file in a multipart form."""
    content_type = request.headers.get("content-type", "").split(";")[0].strip().lower()
    if content_type == "application/json":
        try:
            body = await request.json()
        except json.JSONDecodeError as e:
            raise HTTPException(status_code=422, detail=f"Invalid JSON: {e!s}") from e
        return _parse_audit(body)
    if content_type == "multipart/form-data":
        form = await request.form()
        file = form.get("file")
        if file is None or not _is_upload_file(file):
            file = next((v for v in form.values() if _is_upload_file(v)), None)
        if file is None:
            raise HTTPException(
                status_code=422,
                detail="Multipart request must include a 'file' field with a JSON file.",
            )
        filename = getattr(file, "filename", None) or ""
        if not filename.lower().endswith(".json"):
            raise HTTPException(status_code=422, detail="Uploaded file must have a .json extension.")
        content = await file.read()
        if len(content) > MAX_UPLOAD_FILE_BYTES:
            raise HTTPException(
                status_code=422,
                detail=f"File size must not exceed {MAX_UPLOAD_FILE_BYTES // (1024*1024)} MB.",
            )
        try:
            data = json.loads(content.decode("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise HTTPException(status_code=422, detail=f"Invalid JSON in file: {e!s}") from e
        return _parse_audit(data)
    raise HTTPException(
        status_code=415,
        detail="Content-Type must be application/json or multipart/form-data.",
    )


@router.post("", response_model=AuditCreateResponse, status_code=201)
async def create_audit(
    request: Request,
    db: Annotated[Session, Depends(get_db)],
    _user: Annotated[CurrentUser, Depends(require_reviewer)],
) -> AuditCreateResponse:
    """
    Store an audit handed over by the crawl/audit pipeline.

    - **JSON body**: `Content-Type: application/json` with `domain`, `findings`
      and `pages`.
    - **File upload**: `multipart/form-data` with a `.json` file in `file`.
    """
    payload = await _get_audit_from_request(request)
    try:
        audit = ingest_audit(db, payload)
    except FixEngineError as e:
        raise http_error(e) from e
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    return AuditCreateResponse(
        audit_id=audit.id,
        findings=len(payload.findings),
        pages=len(payload.pages),
    )


@router.post("/{audit_id}/fixes/generate", response_model=GenerateResponse)
async def post_generate_fixes(
    audit_id: str,
    db: Annotated[Session, Depends(get_db)],
    adapter: Annotated[CMSAdapter, Depends(get_cms_adapter)],
    _user: Annotated[CurrentUser, Depends(require_reviewer)],
) -> GenerateResponse:
    """Create PENDING fixes for the audit's auto-fixable findings. Safe to call repeatedly."""
    try:
        generated = await generate_fixes(db, adapter, audit_id)
    except FixEngineError as e:
        raise http_error(e) from e
    return GenerateResponse(audit_id=audit_id, generated=generated)


@router.get("/{audit_id}/fixes", response_model=FixListResponse)
def get_audit_fixes(
    audit_id: str,
    db: Annotated[Session, Depends(get_db)],
    _user: Annotated[CurrentUser, Depends(get_current_user)],
    status: Annotated[FixStatus | None, Query(description="Only fixes in this status")] = None,
) -> FixListResponse:
    """Fixes for an audit, most severe first."""
    try:
        fixes = list_fixes(db, audit_id, status.value if status else None)
    except FixEngineError as e:
        raise http_error(e) from e
    return FixListResponse(fixes=[fix_out(f) for f in fixes], count=len(fixes))
