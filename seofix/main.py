"""FastAPI application for the fix ledger. Routers live in seofix.api.v1; this module only wires them."""

import logging

from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from seofix.api.v1 import router as v1_router
from seofix.api.v1.deps import http_error
from seofix.core.config import settings
from seofix.services.errors import FixEngineError

logger = logging.getLogger(__name__)

app = FastAPI(
    title="SEO Fix API",
    version="0.1.0",
    description="Review, apply and publish CMS field fixes generated from SEO audits.",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.APP_ENV == "dev" else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(v1_router, prefix=settings.API_V1_PREFIX)


@app.exception_handler(FixEngineError)
async def fix_engine_error_handler(request: Request, exc: FixEngineError) -> JSONResponse:
    """Engine errors a router did not translate get the same status mapping as those it did."""
    http_exc = http_error(exc)
    logger.warning(
        "Unhandled fix engine error",
        extra={"path": request.url.path, "error_type": type(exc).__name__, "status_code": http_exc.status_code},
    )
    return JSONResponse(status_code=http_exc.status_code, content={"detail": http_exc.detail})


@app.get("/")
def root() -> dict[str, str]:
    return {
        "message": "SEO Fix API",
        "cms_platform": settings.CMS_PLATFORM,
        "docs": "/docs",
    }
