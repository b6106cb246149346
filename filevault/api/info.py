from fastapi import APIRouter, Depends

from filevault.api.auth import get_services
from filevault.services import Services

app_info = APIRouter(tags=["info"])


@app_info.get("/status")
async def get_status(services: Services = Depends(get_services)) -> dict[str, bool]:
    """Are the cache and the document store reachable?"""
    return await services.status()


@app_info.get("/stats")
async def get_stats(services: Services = Depends(get_services)) -> dict[str, int]:
    """Number of registered users and stored files."""
    return await services.stats()
