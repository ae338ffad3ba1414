from search_gateway.db import docstore
from search_gateway.db.docstore import DocumentStore


def test_get_without_query_returns_400(client):
    response = client.get("/couchbase")
    assert response.status_code == 400
    assert response.json() == {"error": "Query not specified"}


def test_insert_then_get(client, fake_docstore):
    response = client.post("/couchbaseInsert", json={"Key": "k1", "Values": ["a", "b"]})
    assert response.status_code == 200
    assert response.content == b""
    assert fake_docstore.bucket.values == {"k1": ["a", "b"]}

    response = client.get("/couchbase", params={"query": "k1"})
    assert response.status_code == 200
    assert response.json() == ["a", "b"]


def test_insert_malformed_body_returns_400(client):
    response = client.post("/couchbaseInsert", json={"Values": "not-a-list"})
    assert response.status_code == 400
    assert response.json() == {"error": "Malformed request body"}


def test_get_missing_key_returns_500(client):
    response = client.get("/couchbase", params={"query": "absent"})
    assert response.status_code == 500
    assert response.json() == {"error": "cannot insert into couchbase"}


def test_unavailable_bucket_returns_500(client, fake_docstore):
    fake_docstore.unavailable = True
    response = client.get("/couchbase", params={"query": "k1"})
    assert response.status_code == 500
    assert response.json() == {"error": "cannot get bucket"}
    response = client.post("/couchbaseInsert", json={"Key": "k1", "Values": []})
    assert response.status_code == 500
    assert response.json() == {"error": "cannot get bucket"}


class RecordingCluster:
    opened = []

    def __init__(self, url, options):
        self.url = url
        self.closed = False
        RecordingCluster.opened.append(self)

    def bucket(self, name):
        self.bucket_name = name
        return self

    def default_collection(self):
        return "collection"

    def close(self):
        self.closed = True


def test_store_opens_cluster_once_and_closes(monkeypatch):
    RecordingCluster.opened = []
    monkeypatch.setattr(docstore, "Cluster", RecordingCluster)
    store = DocumentStore("couchbase://db", "default", "user", "secret")
    assert store.collection() == "collection"
    assert store.collection() == "collection"
    assert len(RecordingCluster.opened) == 1
    cluster = RecordingCluster.opened[0]
    assert cluster.url == "couchbase://db"
    assert cluster.bucket_name == "default"

    store.close()
    assert cluster.closed
