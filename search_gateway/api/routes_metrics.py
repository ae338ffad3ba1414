from fastapi import APIRouter, Request

from search_gateway.models.schemas import MetricsResponse

router = APIRouter(prefix="/metrics", tags=["metrics"])


@router.get("", response_model=MetricsResponse)
def metrics(request: Request) -> MetricsResponse:
    snapshot = request.app.state.metrics.snapshot()
    snapshot["backend"] = {"state": request.app.state.connection.state.value}
    return MetricsResponse(**snapshot)
