"""
Main API router that includes all route modules.
"""
from fastapi import APIRouter
from splitsettle.api.routes import currencies, settlements

api_router = APIRouter()

# Include all route modules
api_router.include_router(currencies.router)
api_router.include_router(settlements.router)
