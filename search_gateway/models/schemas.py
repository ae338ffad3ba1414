from dataclasses import dataclass, field
from typing import List

from pydantic import BaseModel, Field


class DocumentRequest(BaseModel):
    title: str
    content: str


class DocumentResponse(BaseModel):
    id: str
    title: str
    content: str
    createdAt: str


@dataclass(frozen=True)
class Document:
    id: str
    title: str
    content: str
    created_at: str

    def to_source(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "created_at": self.created_at,
        }


@dataclass(frozen=True)
class SearchQuery:
    text: str
    skip: int = 0
    take: int = 10


@dataclass
class SearchResult:
    elapsed_millis: int
    total_hits: int
    documents: List[DocumentResponse] = field(default_factory=list)


class SearchResponse(BaseModel):
    time: int
    hit: int
    documents: List[DocumentResponse]


class HealthResponse(BaseModel):
    status: str


class CacheResponse(BaseModel):
    key: str


# Field names follow the JSON keys clients already send.
class CouchbaseInsert(BaseModel):
    Key: str
    Values: List[str] = Field(default_factory=list)


class MetricsResponse(BaseModel):
    uptimeSeconds: int
    requests: dict
    latencyMs: dict
    errors: dict
    documents: dict
    backend: dict
