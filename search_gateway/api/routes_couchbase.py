import logging
from typing import Optional

from couchbase.collection import Collection
from couchbase.exceptions import CouchbaseException
from fastapi import APIRouter, Query, Request, Response

from search_gateway.core.errors import BackendUnavailableError, InvalidQueryError
from search_gateway.models.schemas import CouchbaseInsert

logger = logging.getLogger(__name__)

router = APIRouter(tags=["couchbase"])


def _collection(request: Request) -> Collection:
    try:
        return request.app.state.docstore.collection()
    except CouchbaseException as exc:
        logger.error("couchbase bucket unavailable: %s", exc)
        raise BackendUnavailableError("cannot get bucket") from exc


@router.get("/couchbase")
def couchbase_get(request: Request, query: Optional[str] = Query(None)):
    if not query:
        raise InvalidQueryError()
    collection = _collection(request)
    try:
        return collection.get(query).value
    except CouchbaseException as exc:
        logger.error("couchbase get %r failed: %s", query, exc)
        raise BackendUnavailableError("cannot insert into couchbase") from exc


@router.post("/couchbaseInsert", status_code=200, response_class=Response)
def couchbase_insert(payload: CouchbaseInsert, request: Request) -> Response:
    collection = _collection(request)
    try:
        collection.upsert(payload.Key, payload.Values)
    except CouchbaseException as exc:
        logger.error("couchbase upsert %r failed: %s", payload.Key, exc)
        raise BackendUnavailableError("cannot insert into couchbase") from exc
    return Response(status_code=200)
