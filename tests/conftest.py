import importlib
import re
import threading
from types import SimpleNamespace

import pytest
from couchbase.exceptions import CouchbaseException, DocumentNotFoundException
from elasticsearch import BadRequestError
from fastapi.testclient import TestClient

from search_gateway.core import config

_TOKEN = re.compile(r"\w+")
RESULT_WINDOW = 10000


def _tokens(text):
    return [token.lower() for token in _TOKEN.findall(text or "")]


def _edit_distance(a, b):
    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            current.append(
                min(
                    previous[j] + 1,
                    current[j - 1] + 1,
                    previous[j - 1] + (char_a != char_b),
                )
            )
        previous = current
    return previous[-1]


class FakeElasticsearch:
    """In-memory stand-in for the handful of client calls the gateway makes.

    ``search`` understands the multi_match shape built by the search service:
    a field matches when enough query terms are within the fuzziness edit
    distance of one of its tokens.
    """

    def __init__(self):
        self.docs = {}
        self.bulk_calls = []
        self.search_calls = []
        self.reject_titles = set()
        self.error = None
        self.took = 3
        self.closed = False
        self._lock = threading.Lock()

    def bulk(self, operations, index, refresh=None):
        if self.error is not None:
            raise self.error
        with self._lock:
            return self._bulk(operations, index, refresh)

    def _bulk(self, operations, index, refresh):
        self.bulk_calls.append({"operations": operations, "index": index, "refresh": refresh})
        items = []
        errors = False
        for action, source in zip(operations[::2], operations[1::2]):
            doc_id = action["index"]["_id"]
            if source["title"] in self.reject_titles:
                errors = True
                items.append(
                    {
                        "index": {
                            "_id": doc_id,
                            "status": 400,
                            "error": {"type": "document_parsing_exception", "reason": "rejected"},
                        }
                    }
                )
                continue
            self.docs[doc_id] = dict(source)
            items.append({"index": {"_id": doc_id, "status": 201, "result": "created"}})
        return {"took": 1, "errors": errors, "items": items}

    def search(self, index, query, from_=0, size=10):
        if self.error is not None:
            raise self.error
        with self._lock:
            return self._search(index, query, from_, size)

    def _search(self, index, query, from_, size):
        if from_ + size > RESULT_WINDOW:
            raise BadRequestError(
                message="illegal_argument_exception: Result window is too large",
                meta=SimpleNamespace(status=400),
                body={"error": {"type": "illegal_argument_exception"}},
            )
        self.search_calls.append({"index": index, "query": query, "from_": from_, "size": size})
        clause = query["multi_match"]
        terms = _tokens(clause["query"])
        fuzziness = int(clause["fuzziness"])
        required = min(int(clause["minimum_should_match"]), len(terms))
        scored = []
        for doc_id, source in self.docs.items():
            best = 0
            for field in clause["fields"]:
                field_tokens = _tokens(source.get(field))
                matched = sum(
                    1
                    for term in terms
                    if any(_edit_distance(term, token) <= fuzziness for token in field_tokens)
                )
                best = max(best, matched)
            if terms and best >= required:
                scored.append((best, doc_id, source))
        scored.sort(key=lambda item: item[0], reverse=True)
        page = scored[from_ : from_ + size]
        return {
            "took": self.took,
            "timed_out": False,
            "hits": {
                "total": {"value": len(scored), "relation": "eq"},
                "hits": [
                    {"_index": index, "_id": doc_id, "_score": float(score), "_source": source}
                    for score, doc_id, source in page
                ],
            },
        }

    def close(self):
        self.closed = True


class FakeRedis:
    def __init__(self):
        self.values = {}
        self.closed = False

    def set(self, key, value):
        self.values[key] = value
        return True

    def get(self, key):
        return self.values.get(key)

    def close(self):
        self.closed = True


class FakeCollection:
    def __init__(self):
        self.values = {}

    def get(self, key):
        if key not in self.values:
            raise DocumentNotFoundException(message=f"document {key} not found")
        return SimpleNamespace(value=self.values[key])

    def upsert(self, key, value):
        self.values[key] = value


class FakeDocumentStore:
    def __init__(self):
        self.bucket = FakeCollection()
        self.unavailable = False
        self.closed = False

    def collection(self):
        if self.unavailable:
            raise CouchbaseException(message="bucket default unavailable")
        return self.bucket

    def close(self):
        self.closed = True


@pytest.fixture()
def settings_env(monkeypatch):
    monkeypatch.setenv("ELASTIC_INDEX", "documents")
    monkeypatch.setenv("RECONNECT_DELAY_SECONDS", "0.01")
    monkeypatch.setenv("LOG_LEVEL", "CRITICAL")
    monkeypatch.setenv("APP_DISABLE_AUTOCREATE", "1")
    monkeypatch.delenv("ELASTIC_STRICT_BULK", raising=False)
    config.get_settings.cache_clear()
    yield monkeypatch
    config.get_settings.cache_clear()


@pytest.fixture()
def fake_es():
    return FakeElasticsearch()


@pytest.fixture()
def fake_redis():
    return FakeRedis()


@pytest.fixture()
def fake_docstore():
    return FakeDocumentStore()


@pytest.fixture()
def make_client(settings_env, fake_redis, fake_docstore):
    def _make(factory):
        from search_gateway import main as main_module

        importlib.reload(main_module)
        app = main_module.create_app(handle_factory=factory)
        app.state.redis = fake_redis
        app.state.docstore = fake_docstore
        return TestClient(app)

    return _make


@pytest.fixture()
def client(make_client, fake_es) -> TestClient:
    with make_client(lambda: fake_es) as client:
        yield client
