"""Client for the stamper registry."""

from pathlib import Path
from typing import Any, Optional

import httpx


def _package_params(owner: str, name: str, version: Optional[str]) -> dict:
    params = {"owner": owner, "name": name}
    if version:
        params["version"] = version
    return params


def _error_payload(e: httpx.HTTPStatusError) -> dict:
    try:
        message = e.response.json().get("error") or str(e)
    except ValueError:
        message = str(e)
    return {"success": False, "status": e.response.status_code, "error": message}


class RegistryClient:
    """Client for interacting with a stamper registry."""

    def __init__(
        self,
        base_url: str = "http://localhost:3000",
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = httpx.Client(base_url=self.base_url, timeout=timeout, transport=transport)

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self._client.close()

    def close(self):
        self._client.close()

    def health(self) -> bool:
        """Check if registry is healthy."""
        try:
            response = self._client.get("/health")
            return response.status_code == 200
        except httpx.HTTPError:
            return False

    def publish(
        self,
        owner: str,
        name: str,
        version: Optional[str] = None,
        content: Optional[str] = None,
        content_path: Optional[Path] = None,
    ) -> dict:
        """Create a package version, or update it if it already exists."""
        if content_path:
            content = Path(content_path).read_text()

        payload: dict[str, Any] = {}
        if content is not None:
            payload["content"] = content

        try:
            response = self._client.post(
                "/packages/new",
                params=_package_params(owner, name, version),
                json=payload,
            )
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            return _error_payload(e)

    def update(
        self,
        owner: str,
        name: str,
        version: Optional[str] = None,
        content: Optional[str] = None,
        content_path: Optional[Path] = None,
    ) -> dict:
        """Overwrite an existing package version."""
        if content_path:
            content = Path(content_path).read_text()

        if not content:
            raise ValueError("Either content or content_path must be provided")

        try:
            response = self._client.put(
                "/packages/update",
                params=_package_params(owner, name, version),
                json={"content": content},
            )
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            return _error_payload(e)

    def get(self, owner: str, name: str, version: Optional[str] = None) -> Optional[str]:
        """Fetch raw package content; None if the version does not exist."""
        response = self._client.get("/packages/get", params=_package_params(owner, name, version))
        if response.status_code == 404:
            return None
        response.raise_for_status()
        return response.text

    def pull(
        self,
        owner: str,
        name: str,
        version: Optional[str] = None,
        output_path: Optional[Path] = None,
    ) -> Optional[str]:
        """Fetch package content and optionally write it to ``output_path``."""
        content = self.get(owner, name, version)

        if content is not None and output_path:
            output_path = Path(output_path)
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(content)

        return content

    def search(self, query: str, limit: Optional[int] = None) -> dict:
        """Search package keys by substring."""
        params: dict[str, Any] = {"query": query}
        if limit is not None:
            params["limit"] = limit
        response = self._client.get("/packages/search", params=params)
        response.raise_for_status()
        return response.json()


class AsyncRegistryClient:
    """Async client for a stamper registry."""

    def __init__(
        self,
        base_url: str = "http://localhost:3000",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = httpx.AsyncClient(base_url=self.base_url, timeout=timeout, transport=transport)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self._client.aclose()

    async def close(self):
        await self._client.aclose()

    async def health(self) -> bool:
        try:
            response = await self._client.get("/health")
            return response.status_code == 200
        except httpx.HTTPError:
            return False

    async def publish(
        self,
        owner: str,
        name: str,
        version: Optional[str] = None,
        content: Optional[str] = None,
    ) -> dict:
        payload: dict[str, Any] = {}
        if content is not None:
            payload["content"] = content

        try:
            response = await self._client.post(
                "/packages/new",
                params=_package_params(owner, name, version),
                json=payload,
            )
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            return _error_payload(e)

    async def update(
        self,
        owner: str,
        name: str,
        version: Optional[str] = None,
        content: Optional[str] = None,
    ) -> dict:
        if not content:
            raise ValueError("content must be provided")

        try:
            response = await self._client.put(
                "/packages/update",
                params=_package_params(owner, name, version),
                json={"content": content},
            )
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            return _error_payload(e)

    async def get(self, owner: str, name: str, version: Optional[str] = None) -> Optional[str]:
        response = await self._client.get("/packages/get", params=_package_params(owner, name, version))
        if response.status_code == 404:
            return None
        response.raise_for_status()
        return response.text

    async def search(self, query: str, limit: Optional[int] = None) -> dict:
        params: dict[str, Any] = {"query": query}
        if limit is not None:
            params["limit"] = limit
        response = await self._client.get("/packages/search", params=params)
        response.raise_for_status()
        return response.json()
