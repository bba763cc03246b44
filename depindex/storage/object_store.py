"""Object-store backend speaking the S3-compatible REST protocol over httpx."""

import logging
import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from typing import List, Optional

import httpx

from ..errors import StorageError
from ..indexer.models import DependencyIndex
from .adapter import StorageAdapter, deserialize_index, serialize_index

logger = logging.getLogger(__name__)


class ObjectStoreStorage(StorageAdapter):
    """Indexes stored as ``<prefix><key>/latest.json`` objects in a bucket.

    The bucket is addressed path-style through ``base_url`` (for example
    ``https://storage.example.com/dependency-indices``). Every save also
    writes a dated copy under ``<prefix><key>/history/`` unless disabled.
    """

    def __init__(
        self,
        base_url: str,
        prefix: str = "indexes/",
        token: Optional[str] = None,
        keep_history: bool = True,
        client: Optional[httpx.Client] = None,
        timeout: float = 30.0,
    ):
        """Initialize object-store backend.

        Args:
            base_url: Bucket URL
            prefix: Key prefix inside the bucket
            token: Optional bearer token
            keep_history: Whether to write dated history copies
            client: httpx client to use (created on demand if None)
            timeout: Request timeout in seconds for the default client
        """
        self.base_url = base_url.rstrip("/")
        self.prefix = prefix
        self.keep_history = keep_history
        self._headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._client = client or httpx.Client(timeout=timeout)

    def _object_url(self, object_key: str) -> str:
        return f"{self.base_url}/{object_key}"

    def _latest_key(self, key: str) -> str:
        return f"{self.prefix}{key}/latest.json"

    def _request(self, method: str, object_key: str, **kwargs) -> httpx.Response:
        headers = {**self._headers, **kwargs.pop("headers", {})}
        try:
            return self._client.request(
                method, self._object_url(object_key), headers=headers, **kwargs
            )
        except httpx.HTTPError as e:
            logger.error(f"Object store {method} {object_key} failed: {e}")
            raise StorageError(f"{method} {object_key} failed: {e}") from e

    def _put(self, object_key: str, body: str) -> None:
        response = self._request(
            "PUT",
            object_key,
            content=body.encode("utf-8"),
            headers={"Content-Type": "application/json"},
        )
        if response.status_code >= 300:
            raise StorageError(f"PUT {object_key} returned HTTP {response.status_code}")

    def save(self, key: str, index: DependencyIndex) -> None:
        body = serialize_index(index)
        latest = self._latest_key(key)
        self._put(latest, body)

        if self.keep_history:
            day = datetime.now(timezone.utc).strftime("%Y-%m-%d")
            self._put(f"{self.prefix}{key}/history/{day}.json", body)

        logger.info(f"Index saved to object store: {latest}")

    def load(self, key: str) -> Optional[DependencyIndex]:
        latest = self._latest_key(key)
        response = self._request("GET", latest)

        if response.status_code == 404:
            logger.warning(f"Index not found in object store: {latest}")
            return None
        if response.status_code >= 300:
            raise StorageError(f"GET {latest} returned HTTP {response.status_code}")

        try:
            index = deserialize_index(response.text)
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise StorageError(f"Corrupt index {key}: {e}") from e

        logger.info(
            f"Index loaded from object store: {latest} "
            f"({len(index.classes)} classes, {len(index.files)} files)"
        )
        return index

    def exists(self, key: str) -> bool:
        latest = self._latest_key(key)
        response = self._request("HEAD", latest)
        if response.status_code == 404:
            return False
        if response.status_code >= 300:
            raise StorageError(f"HEAD {latest} returned HTTP {response.status_code}")
        return True

    def list_keys(self) -> List[str]:
        keys = []
        continuation_token = None

        while True:
            params = {"list-type": "2", "prefix": self.prefix, "delimiter": "/"}
            if continuation_token:
                params["continuation-token"] = continuation_token

            response = self._request("GET", "", params=params)
            if response.status_code >= 300:
                raise StorageError(f"Listing {self.prefix} returned HTTP {response.status_code}")

            try:
                root = ET.fromstring(response.content)
            except ET.ParseError as e:
                raise StorageError(f"Malformed bucket listing: {e}") from e

            truncated = False
            continuation_token = None
            for element in root.iter():
                # Namespaced and plain ListBucketResult documents both occur
                tag = element.tag.rsplit("}", 1)[-1]
                text = element.text or ""
                if tag == "IsTruncated":
                    truncated = text.strip().lower() == "true"
                elif tag == "NextContinuationToken":
                    continuation_token = text.strip() or None
                elif tag == "Prefix" and text.startswith(self.prefix) and text != self.prefix:
                    keys.append(text[len(self.prefix):].rstrip("/"))

            if not truncated or not continuation_token:
                break
            logger.debug(f"Bucket listing truncated at {len(keys)} keys, fetching next page")

        return sorted(keys)

    def close(self) -> None:
        self._client.close()
