import logging
import secrets
from datetime import datetime, timezone
from typing import Iterable, List

from elastic_transport import TransportError
from elasticsearch import ApiError

from search_gateway.core.errors import IngestionFailedError, NotConnectedError
from search_gateway.db.elastic import ConnectionManager
from search_gateway.models.schemas import Document, DocumentRequest

logger = logging.getLogger(__name__)


def _now_iso() -> str:
    return (
        datetime.now(timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )


def new_document_id() -> str:
    return secrets.token_urlsafe(16)


def _item_errors(response) -> List[dict]:
    failed = []
    for item in response["items"]:
        result = item.get("index", {})
        if "error" in result:
            failed.append(result)
    return failed


class IngestionService:
    """Turns a batch of document requests into a single bulk write.

    With ``strict`` unset a bulk response is judged only by whether the
    request itself succeeded; items the cluster rejected are logged and the
    batch is still reported as created. With ``strict`` set any rejected
    item fails the whole call.
    """

    def __init__(
        self,
        connection: ConnectionManager,
        index: str,
        refresh: str = "false",
        strict: bool = False,
    ) -> None:
        self._connection = connection
        self._index = index
        self._refresh = refresh
        self._strict = strict

    def ingest(self, batch: Iterable[DocumentRequest]) -> List[Document]:
        documents = [
            Document(
                id=new_document_id(),
                title=request.title,
                content=request.content,
                created_at=_now_iso(),
            )
            for request in batch
        ]
        if not documents:
            return documents

        operations: List[dict] = []
        for doc in documents:
            operations.append({"index": {"_index": self._index, "_id": doc.id}})
            operations.append(doc.to_source())

        try:
            handle = self._connection.get_handle()
        except NotConnectedError:
            logger.error(
                "bulk index of %d documents rejected: elasticsearch is not connected",
                len(documents),
            )
            raise

        try:
            response = handle.bulk(
                operations=operations, index=self._index, refresh=self._refresh
            )
        except (ApiError, TransportError) as exc:
            logger.error("bulk index of %d documents failed: %s", len(documents), exc)
            raise IngestionFailedError() from exc

        if response["errors"]:
            failed = _item_errors(response)
            logger.warning(
                "bulk index rejected %d of %d documents: %s",
                len(failed),
                len(documents),
                [item.get("error") for item in failed],
            )
            if self._strict:
                raise IngestionFailedError()
        return documents
