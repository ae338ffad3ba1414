"""Shared couchbase connection for the key/value demo endpoints.

The cluster is opened on first use and reused by every request until the
app shuts down.
"""

import logging
import threading
from typing import Optional

from couchbase.auth import PasswordAuthenticator
from couchbase.cluster import Cluster
from couchbase.collection import Collection
from couchbase.options import ClusterOptions

from search_gateway.core.config import Settings

logger = logging.getLogger(__name__)


class DocumentStore:
    def __init__(self, url: str, bucket: str, username: str, password: str) -> None:
        self._url = url
        self._bucket = bucket
        self._username = username
        self._password = password
        self._lock = threading.Lock()
        self._cluster: Optional[Cluster] = None
        self._collection: Optional[Collection] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "DocumentStore":
        return cls(
            settings.couchbase_url,
            settings.couchbase_bucket,
            settings.couchbase_username,
            settings.couchbase_password,
        )

    def collection(self) -> Collection:
        collection = self._collection
        if collection is not None:
            return collection
        with self._lock:
            if self._collection is None:
                cluster = Cluster(
                    self._url,
                    ClusterOptions(PasswordAuthenticator(self._username, self._password)),
                )
                self._collection = cluster.bucket(self._bucket).default_collection()
                self._cluster = cluster
                logger.info("couchbase bucket %s opened", self._bucket)
            return self._collection

    def close(self) -> None:
        with self._lock:
            cluster = self._cluster
            self._cluster = None
            self._collection = None
        if cluster is not None:
            cluster.close()
