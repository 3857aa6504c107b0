"""API v1 routes."""

from fastapi import APIRouter

from seofix.api.v1 import audits, auth, fixes, health, integrations

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(audits.router, prefix="/audits", tags=["audits"])
router.include_router(fixes.router, prefix="/fixes", tags=["fixes"])
router.include_router(integrations.router, prefix="/integrations", tags=["integrations"])
