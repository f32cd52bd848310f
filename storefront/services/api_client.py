"""
API client for the storefront cart and wishlist endpoints.

This module handles HTTP communication with the remote storefront API:
reading a collection, adding or replacing an item, removing an item and
clearing a collection. Transport failures and error statuses surface as
RemoteUnavailable; bodies of the wrong shape as MalformedRemoteCollection.
"""

import asyncio
from typing import Any, Dict, List, Optional

import aiohttp

from storefront.config.logging_config import get_logger
from storefront.utils.error_handling import MalformedRemoteCollection, RemoteUnavailable

logger = get_logger(__name__)

COLLECTIONS = ("cart", "wishlist")


class StorefrontApiClient:
    """
    Client for the remote cart/wishlist API.

    Endpoints (relative to ``base_url``):
    - ``GET    /api/{collection}``                  -> ``{"items": [...]}``
    - ``POST   /api/{collection}``                  add or replace one item
    - ``DELETE /api/{collection}?productId={id}``   remove one item
    - ``DELETE /api/{collection}``                  clear the collection

    Every call returns the collection as the server sees it afterwards.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        auth_token: Optional[str] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: Base URL of the storefront API
            timeout: Total request timeout in seconds
            auth_token: Optional bearer token identifying the account
            session: Optional pre-built aiohttp session (not closed by this client)
        """
        if not base_url:
            raise ValueError("Storefront API base URL is required")

        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.auth_token = auth_token
        self._session = session
        self._owns_session = session is None

    @property
    def connected(self) -> bool:
        return self._session is not None and not self._session.closed

    async def connect(self) -> bool:
        """
        Open the HTTP session.

        Returns:
            bool: True once a session is available
        """
        if self.connected:
            return True

        headers = {"Accept": "application/json"}
        if self.auth_token:
            headers["Authorization"] = f"Bearer {self.auth_token}"

        self._session = aiohttp.ClientSession(
            headers=headers,
            timeout=aiohttp.ClientTimeout(total=self.timeout),
        )
        self._owns_session = True
        logger.info(f"Connected to storefront API at {self.base_url}")
        return True

    async def disconnect(self) -> None:
        """Close the HTTP session if this client opened it."""
        if self._session is not None and self._owns_session:
            await self._session.close()
            logger.info("Disconnected from storefront API")
        self._session = None

    async def health_check(self) -> Dict[str, Any]:
        """
        Report the client's connection state.

        Returns:
            Dict[str, Any]: Connection status information
        """
        return {
            "service": "StorefrontApi",
            "connected": self.connected,
            "base_url": self.base_url,
        }

    async def get_collection(self, collection: str) -> List[Dict[str, Any]]:
        """Fetch the current items of ``collection``."""
        return await self._request("GET", collection)

    async def add_item(self, collection: str, item: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Add ``item`` to ``collection``, replacing any item with the same productId."""
        return await self._request("POST", collection, json=item)

    async def remove_item(self, collection: str, product_id: str) -> List[Dict[str, Any]]:
        """Remove the item with ``product_id`` from ``collection``."""
        return await self._request("DELETE", collection, params={"productId": product_id})

    async def clear_collection(self, collection: str) -> List[Dict[str, Any]]:
        """Remove every item of ``collection``."""
        return await self._request("DELETE", collection)

    async def _request(self, method: str, collection: str, **kwargs: Any) -> List[Dict[str, Any]]:
        if collection not in COLLECTIONS:
            raise ValueError(f"Unknown collection: {collection}")

        if not self.connected:
            await self.connect()

        url = f"{self.base_url}/api/{collection}"
        logger.debug(f"{method} {url} {kwargs.get('params') or ''}")

        try:
            async with self._session.request(method, url, **kwargs) as response:
                if response.status >= 400:
                    message = await self._error_message(response)
                    raise RemoteUnavailable(
                        f"{method} /api/{collection} failed with status {response.status}: {message}",
                        status=response.status,
                    )
                try:
                    body = await response.json(content_type=None)
                except (aiohttp.ContentTypeError, ValueError) as e:
                    raise MalformedRemoteCollection(f"Response of {method} /api/{collection} is not JSON", cause=e)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self.handle_error(e, f"{method.lower()}_{collection}")
            raise RemoteUnavailable(f"{method} /api/{collection} failed", cause=e)

        if not isinstance(body, dict) or not isinstance(body.get("items"), list):
            raise MalformedRemoteCollection(f"Response of {method} /api/{collection} has no 'items' list")

        return body["items"]

    @staticmethod
    async def _error_message(response: Any) -> str:
        try:
            body = await response.json(content_type=None)
        except (aiohttp.ContentTypeError, ValueError):
            return response.reason or ""
        if isinstance(body, dict) and body.get("error"):
            return str(body["error"])
        return response.reason or ""

    def handle_error(
        self,
        error: Exception,
        operation: str,
        additional_info: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Log a transport error in a consistent way.

        Args:
            error: The exception that occurred
            operation: Name of the operation that failed
            additional_info: Any additional context information

        Returns:
            Dict[str, Any]: Error information in a structured format
        """
        error_info = {
            "service": self.__class__.__name__,
            "operation": operation,
            "error_type": type(error).__name__,
            "error_message": str(error)
        }

        if additional_info:
            error_info["additional_info"] = additional_info

        logger.error(f"Service error: {error_info}")
        return error_info
