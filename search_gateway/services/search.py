import logging
from typing import Any, List, Optional, Tuple

from elastic_transport import TransportError
from elasticsearch import ApiError

from search_gateway.core.errors import BackendUnavailableError, InvalidQueryError
from search_gateway.db.elastic import ConnectionManager
from search_gateway.models.schemas import DocumentResponse, SearchQuery, SearchResult

logger = logging.getLogger(__name__)

SEARCH_FIELDS = ["title", "content"]
FUZZINESS = "2"
MINIMUM_SHOULD_MATCH = "2"
DEFAULT_SKIP = 0
DEFAULT_TAKE = 10
MAX_RESULT_WINDOW = 10000


def parse_page_param(raw: Optional[str], default: int) -> int:
    """Parse skip/take; anything that is not a non-negative integer means default."""
    if raw is None:
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        return default
    return value if value >= 0 else default


def build_query(text: str) -> dict:
    return {
        "multi_match": {
            "query": text,
            "fields": list(SEARCH_FIELDS),
            "fuzziness": FUZZINESS,
            "minimum_should_match": MINIMUM_SHOULD_MATCH,
        }
    }


def _total_hits(hits: dict) -> int:
    total = hits.get("total", 0)
    # Older clusters report a bare integer.
    if isinstance(total, dict):
        return int(total.get("value", 0))
    return int(total)


def _to_document(hit: dict) -> DocumentResponse:
    source = hit.get("_source", {})
    return DocumentResponse(
        id=source.get("id") or hit.get("_id", ""),
        title=source.get("title", ""),
        content=source.get("content", ""),
        createdAt=source.get("created_at", ""),
    )


class SearchService:
    def __init__(
        self,
        connection: ConnectionManager,
        index: str,
        max_result_window: int = MAX_RESULT_WINDOW,
    ) -> None:
        self._connection = connection
        self._index = index
        self._max_result_window = max_result_window

    def _page(self, skip: int, take: int) -> Tuple[int, int]:
        # from + size must stay inside the index result window.
        if skip >= self._max_result_window:
            return 0, 0
        return skip, min(take, self._max_result_window - skip)

    def search(self, query: SearchQuery) -> SearchResult:
        if not query.text or not query.text.strip():
            raise InvalidQueryError()

        try:
            handle = self._connection.get_handle()
        except BackendUnavailableError as exc:
            logger.error("search rejected: elasticsearch is not connected")
            raise BackendUnavailableError() from exc

        from_, size = self._page(query.skip, query.take)
        try:
            response: Any = handle.search(
                index=self._index,
                query=build_query(query.text),
                from_=from_,
                size=size,
            )
        except (ApiError, TransportError) as exc:
            logger.error("search for %r failed: %s", query.text, exc)
            raise BackendUnavailableError() from exc

        hits = response["hits"]
        documents: List[DocumentResponse] = []
        if size:
            documents = [_to_document(hit) for hit in hits.get("hits", [])]
        return SearchResult(
            elapsed_millis=int(response["took"]),
            total_hits=_total_hits(hits),
            documents=documents,
        )
