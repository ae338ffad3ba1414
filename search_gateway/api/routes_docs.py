from typing import List

from fastapi import APIRouter, Request, Response

from search_gateway.models.schemas import DocumentRequest

router = APIRouter(prefix="/documents", tags=["documents"])


@router.post("", status_code=200, response_class=Response)
def create_documents(payload: List[DocumentRequest], request: Request) -> Response:
    documents = request.app.state.ingestion.ingest(payload)
    request.app.state.metrics.record_indexed(len(documents))
    return Response(status_code=200)
