from fastapi import APIRouter
from sqlbridge.api.endpoints import resources, tools

api_router = APIRouter()

# Combine all sub-routers into one
api_router.include_router(tools.router)
api_router.include_router(resources.router)
