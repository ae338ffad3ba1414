import logging
from typing import Any

REQUEST_LOGGER = "search_gateway.request"

# The elasticsearch transport logs every HTTP call at INFO.
_NOISY_LOGGERS = ("elastic_transport.transport", "elastic_transport.node_pool")


def setup_logging(log_level: str) -> None:
    level = getattr(logging, log_level.upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(message)s")
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def log_request(
    request_id: str,
    endpoint: str,
    path: str,
    status: int,
    latency_ms: float,
    backend: str,
) -> None:
    data: dict[str, Any] = {
        "request_id": request_id,
        "endpoint": endpoint,
        "path": path,
        "status": status,
        "latency_ms": round(latency_ms, 3),
        "backend": backend,
    }
    logging.getLogger(REQUEST_LOGGER).info(data)
