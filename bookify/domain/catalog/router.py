"""Catalog router - static reference data"""

from fastapi import APIRouter

from .categories import SERVICE_CATEGORIES

router = APIRouter(prefix="/categories", tags=["Catalog"])


@router.get("")
async def list_categories():
    """List the service categories providers can register under"""
    return {"categories": SERVICE_CATEGORIES}
