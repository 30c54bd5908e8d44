from fastapi import APIRouter, HTTPException, Query

from fixer.core.constants import CUSTOM_CATEGORY
from fixer.services.catalog import service_catalog
from fixer.services.matcher import service_matcher

router = APIRouter(prefix="/services", tags=["services"])


@router.get("/search")
async def search_services(q: str = Query(default="", description="Free-text service query")):
    return {"results": [r.model_dump(mode="json") for r in service_matcher.search(q)]}


@router.get("/normalize")
async def normalize_service(q: str = Query(default="")):
    category = service_matcher.category_for(q)
    return {"name": service_matcher.normalize(q), "category": category, "custom": category == CUSTOM_CATEGORY}


@router.get("/categories")
async def list_categories() -> dict[str, list[str]]:
    return {category: service_catalog.names_in(category) for category in service_catalog.all_categories()}


@router.get("/{name}/related")
async def related_services(name: str):
    canonical = service_matcher.normalize(name)
    if service_catalog.lookup(canonical) is None:
        raise HTTPException(status_code=404, detail=f"Unknown service '{name}'")
    return {"name": canonical, "related": service_catalog.related(canonical)}
