"""
Docker Engine API client used for registry lookups, image builds and pushes.
"""
import base64
import json
import logging
import os
from typing import Any, AsyncIterator, Dict, Optional
from urllib.parse import quote

import aiohttp

from ..core.exceptions import RegistryError
from ..core.models import ImageReference, RegistryAuth
from .base import RegistryClient


DEFAULT_DOCKER_HOST = "unix:///var/run/docker.sock"


def encode_auth(auth: RegistryAuth) -> str:
    """X-Registry-Auth header value"""
    payload = json.dumps(auth.to_dict()).encode('utf-8')
    return base64.urlsafe_b64encode(payload).decode('ascii')


class DockerEngineClient(RegistryClient):
    """
    Talks to the Docker daemon over its unix socket or a tcp endpoint.
    Streaming endpoints are exposed as async iterators of decoded JSON lines.
    """

    def __init__(
        self,
        docker_host: Optional[str] = None,
        api_version: str = "v1.41",
        insecure: bool = False,
        timeout: Optional[float] = None
    ):
        """
        Initialize Docker client.

        Args:
            docker_host: unix:///path or tcp://host:port (defaults to $DOCKER_HOST)
            api_version: Engine API version prefix
            insecure: Skip TLS verification for https endpoints
            timeout: Total timeout per request in seconds (None for no limit)
        """
        self.docker_host = docker_host or os.environ.get("DOCKER_HOST") or DEFAULT_DOCKER_HOST
        self.api_version = api_version
        self.insecure = insecure
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: Optional[aiohttp.ClientSession] = None
        self.logger = logging.getLogger(__name__)

        if self.docker_host.startswith("unix://"):
            self._socket_path = self.docker_host[len("unix://"):]
            self._base_url = "http://docker"
        elif self.docker_host.startswith(("tcp://", "http://", "https://")):
            self._socket_path = None
            scheme = "https" if self.docker_host.startswith("https://") else "http"
            address = self.docker_host.split("://", 1)[1]
            self._base_url = f"{scheme}://{address}".rstrip('/')
        else:
            raise ValueError(f"Unsupported DOCKER_HOST: {self.docker_host}")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
        return False

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            if self._socket_path:
                connector = aiohttp.UnixConnector(path=self._socket_path)
            else:
                connector = aiohttp.TCPConnector(ssl=not self.insecure)
            self._session = aiohttp.ClientSession(connector=connector, timeout=self.timeout)
        return self._session

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    def _url(self, path: str) -> str:
        return f"{self._base_url}/{self.api_version}{path}"

    async def check_auth(self, auth: RegistryAuth) -> Dict[str, Any]:
        session = self._get_session()
        async with session.post(self._url("/auth"), json=auth.to_dict()) as response:
            body = await response.text()
            if response.status >= 400:
                raise RegistryError(
                    f"Registry login failed for {auth.serveraddress}: {self._message(body)}",
                    status=response.status
                )
            self.logger.debug(f"Authenticated against {auth.serveraddress}")
            return json.loads(body) if body else {}

    async def image_exists(self, reference: ImageReference, auth: RegistryAuth) -> bool:
        session = self._get_session()
        url = self._url(f"/distribution/{quote(reference.tag, safe='/:')}/json")
        headers = {"X-Registry-Auth": encode_auth(auth)}

        async with session.get(url, headers=headers) as response:
            if response.status == 200:
                return True
            body = await response.text()
            if response.status == 404:
                self.logger.debug(f"Image not found: {reference}")
                return False
            raise RegistryError(
                f"Existence check for {reference} failed: {self._message(body)}",
                status=response.status
            )

    async def build_image(self, context: bytes, tag: str) -> AsyncIterator[Dict[str, Any]]:
        session = self._get_session()
        headers = {"Content-Type": "application/x-tar"}

        async with session.post(
            self._url("/build"),
            params={"t": tag, "rm": "1"},
            data=context,
            headers=headers
        ) as response:
            if response.status >= 400:
                body = await response.text()
                raise RegistryError(
                    f"Image build for {tag} failed: {self._message(body)}",
                    status=response.status
                )
            async for event in self._json_lines(response):
                yield event

    async def push_image(self, reference: ImageReference, auth: RegistryAuth) -> AsyncIterator[Dict[str, Any]]:
        session = self._get_session()
        url = self._url(f"/images/{quote(reference.image, safe='/:')}/push")
        headers = {"X-Registry-Auth": encode_auth(auth)}

        async with session.post(url, params={"tag": reference.version}, headers=headers) as response:
            if response.status >= 400:
                body = await response.text()
                raise RegistryError(
                    f"Image push for {reference} failed: {self._message(body)}",
                    status=response.status
                )
            async for event in self._json_lines(response):
                yield event

    @staticmethod
    async def _json_lines(response: aiohttp.ClientResponse) -> AsyncIterator[Dict[str, Any]]:
        """Decode a JSON-lines progress stream until the daemon closes it"""
        async for raw in response.content:
            line = raw.decode('utf-8', errors='replace').strip()
            if not line:
                continue
            try:
                yield json.loads(line)
            except json.JSONDecodeError:
                yield {"stream": line}

    @staticmethod
    def _message(body: str) -> str:
        try:
            return json.loads(body).get("message", body)
        except (json.JSONDecodeError, AttributeError):
            return body.strip()
