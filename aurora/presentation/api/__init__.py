from fastapi import APIRouter

from aurora.presentation.api import admin, auth, generation, results, system

api_router = APIRouter(prefix="/api")
api_router.include_router(system.router, tags=["system"])
api_router.include_router(admin.router, prefix="/admin")
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(results.router, prefix="/results", tags=["results"])
api_router.include_router(generation.router, tags=["generation"])
