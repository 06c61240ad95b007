from __future__ import annotations

from fastapi import APIRouter

from seedgen.api.routes.admin import router as admin_router
from seedgen.api.routes.health import router as health_router
from seedgen.api.routes.oracle import router as oracle_router
from seedgen.api.routes.seeds import router as seeds_router

# Top-level API router
router = APIRouter()

router.include_router(health_router)
router.include_router(seeds_router)
router.include_router(oracle_router)
router.include_router(admin_router)
