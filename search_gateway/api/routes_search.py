from typing import Optional

from fastapi import APIRouter, Query, Request

from search_gateway.models.schemas import SearchQuery, SearchResponse
from search_gateway.services.search import DEFAULT_SKIP, DEFAULT_TAKE, parse_page_param

router = APIRouter(prefix="/search", tags=["search"])


# skip/take are read as raw strings so malformed values fall back to defaults
# instead of failing validation.
@router.get("", response_model=SearchResponse)
def search_documents(
    request: Request,
    query: Optional[str] = Query(None),
    skip: Optional[str] = Query(None),
    take: Optional[str] = Query(None),
) -> SearchResponse:
    search_query = SearchQuery(
        text=query or "",
        skip=parse_page_param(skip, DEFAULT_SKIP),
        take=parse_page_param(take, DEFAULT_TAKE),
    )
    result = request.app.state.search.search(search_query)
    return SearchResponse(
        time=result.elapsed_millis,
        hit=result.total_hits,
        documents=result.documents,
    )
