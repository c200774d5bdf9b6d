"""
HTTP routes for the JA Makers API.
"""

from fastapi import APIRouter

from jamakers.auth import router as auth_router
from jamakers.routes import (
    assistant,
    finance,
    learning,
    messaging,
    objects,
    profiles,
    projects,
    rfqs,
    verification,
)

router = APIRouter()
router.include_router(auth_router)
router.include_router(profiles.router)
router.include_router(rfqs.router)
router.include_router(projects.router)
router.include_router(messaging.router)
router.include_router(verification.router)
router.include_router(finance.router)
router.include_router(learning.router)
router.include_router(objects.router)
router.include_router(assistant.router)

# Served without the API prefix.
download_router = objects.download_router
