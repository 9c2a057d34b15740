"""Company directory endpoints."""

from fastapi import APIRouter, Depends

from canteen_registry.api.deps import get_company_directory
from canteen_registry.schemas.company import CompanySearchHit
from canteen_registry.services.company_directory import CompanyDirectory

router = APIRouter(prefix="/companies", tags=["companies"])

MIN_QUERY_LENGTH = 2


@router.get("", response_model=list[CompanySearchHit])
async def search_companies(
    query: str = "",
    directory: CompanyDirectory = Depends(get_company_directory),
) -> list[CompanySearchHit]:
    """Search the business register by company name."""
    query = query.strip()
    if len(query) < MIN_QUERY_LENGTH:
        return []
    return await directory.search_by_name(query)
