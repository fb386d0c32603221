# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API v1 routes package.

Modules:
    views: Assembled read views (dashboard, reports, gradebook, ...).
    writes: Validated write passthroughs to the owning services.
"""

from fastapi import APIRouter

from coursehub.api.v1 import views, writes

# Create the main v1 router
router = APIRouter(prefix="/api/v1")

router.include_router(views.router, prefix="/views", tags=["Views"])
router.include_router(writes.router, prefix="/writes", tags=["Writes"])

__all__ = ["router"]
