import logging

from elasticsearch import Elasticsearch

logger = logging.getLogger(__name__)

INDEX_MAPPINGS = {
    "properties": {
        "id": {"type": "keyword"},
        "title": {"type": "text"},
        "content": {"type": "text"},
        "created_at": {"type": "date"},
    }
}


def apply_mapping(client: Elasticsearch, index: str) -> None:
    if client.indices.exists(index=index):
        return
    client.indices.create(index=index, mappings=INDEX_MAPPINGS)
    logger.info("created index %s", index)
