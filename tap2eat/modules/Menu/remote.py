"""Menu lookup against a REST document store."""

from __future__ import annotations

from typing import Optional

import aiohttp

from tap2eat.core.logging_utils import get_module_logger

from .models import MenuItem, MenuItemNotFound, MenuLookupError

logger = get_module_logger("RemoteMenuLookup")

DEFAULT_REQUEST_TIMEOUT = 10.0


class RemoteMenuLookup:
    """Resolve menu items from a document collection over HTTP.

    Documents are fetched from
    ``{endpoint}/databases/{database_id}/collections/{collection_id}/documents/{id}``
    with the project id sent in the ``X-Appwrite-Project`` header.
    """

    def __init__(
        self,
        endpoint: str,
        project_id: str,
        database_id: str,
        collection_id: str,
        *,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ) -> None:
        self.endpoint = endpoint.rstrip("/")
        self.project_id = project_id
        self.database_id = database_id
        self.collection_id = collection_id
        self._session = session
        self._owns_session = session is None
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    def document_url(self, item_id: str) -> str:
        return (
            f"{self.endpoint}/databases/{self.database_id}"
            f"/collections/{self.collection_id}/documents/{item_id}"
        )

    async def get_by_id(self, item_id: str) -> MenuItem:
        session = self._ensure_session()
        url = self.document_url(item_id)
        headers = {"X-Appwrite-Project": self.project_id}
        try:
            async with session.get(url, headers=headers, timeout=self._timeout) as response:
                if response.status == 404:
                    raise MenuItemNotFound(item_id)
                if response.status != 200:
                    raise MenuLookupError(f"Menu lookup for {item_id} failed with HTTP {response.status}")
                document = await response.json()
        except aiohttp.ClientError as exc:
            raise MenuLookupError(f"Menu lookup for {item_id} failed: {exc}") from exc

        try:
            item = MenuItem.from_dict(document)
        except (TypeError, ValueError, AttributeError) as exc:
            raise MenuLookupError(f"Malformed menu document for {item_id}: {exc}") from exc
        logger.debug("Resolved menu item %s -> %s", item_id, item.name)
        return item

    async def close(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> "RemoteMenuLookup":
        self._ensure_session()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session


__all__ = ["RemoteMenuLookup", "DEFAULT_REQUEST_TIMEOUT"]
