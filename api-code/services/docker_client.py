"""
Docker Engine API client for the container lifecycle used by deploys.

Talks plain HTTP to the Engine over its unix socket. Status codes that only
mean "already in the requested state" come back as ``False``; anything else
outside [200,300) raises ``DockerAPIError``.
"""

from __future__ import annotations

import base64
import json
import logging
from typing import Any, Dict, List, Optional

import httpx

from services.errors import ServiceAPIError, is_success


logger = logging.getLogger("deploy-bot.docker")

# Host part is ignored by the Engine when talking over the unix socket.
DOCKER_BASE_URL = "http://docker"

STATUS_NOT_MODIFIED = 304
STATUS_NOT_FOUND = 404
STATUS_CONFLICT = 409


class DockerAPIError(ServiceAPIError):
    service = "Docker Engine"


class DockerClient:
    """Async client for the subset of the Engine API needed to redeploy."""

    def __init__(
        self,
        socket_path: str = "/run/docker.sock",
        api_version: str = "v1.38",
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.socket_path = socket_path
        self.api_version = api_version.strip("/")
        if transport is None:
            transport = httpx.AsyncHTTPTransport(uds=socket_path)
        self._client = httpx.AsyncClient(
            transport=transport,
            base_url=DOCKER_BASE_URL,
            timeout=None,
        )

    async def close(self) -> None:
        await self._client.aclose()

    def _path(self, path: str) -> str:
        return f"/{self.api_version}{path}"

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, str]] = None,
        headers: Optional[Dict[str, str]] = None,
        json_body: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        logger.debug("Docker %s %s params=%s", method, path, params)
        return await self._client.request(
            method,
            self._path(path),
            params=params,
            headers=headers,
            json=json_body,
        )

    @staticmethod
    def _raise_for_status(response: httpx.Response, operation: str) -> None:
        if not is_success(response.status_code):
            raise DockerAPIError(response.status_code, response.text, operation=operation)

    async def list_containers(self, include_stopped: bool = False) -> List[Dict[str, Any]]:
        response = await self._request(
            "GET",
            "/containers/json",
            params={"all": _bool_param(include_stopped)},
        )
        self._raise_for_status(response, "list containers")
        return response.json()

    async def container_exists(self, container_id: str) -> bool:
        response = await self._request(
            "GET",
            "/containers/json",
            params={
                "all": "true",
                "filters": json.dumps({"id": [container_id]}),
            },
        )
        self._raise_for_status(response, "container exists")
        return len(response.json()) > 0

    async def pull_image(self, image: str, username: str, password: str) -> None:
        server_address = image.split("/", 1)[0]
        auth = {
            "username": username,
            "password": password,
            "serveraddress": server_address,
        }
        response = await self._request(
            "POST",
            "/images/create",
            params={"fromImage": image},
            headers={"X-Registry-Auth": _encode_registry_auth(auth)},
        )
        self._raise_for_status(response, "pull image")

        # The Engine answers 200 and streams progress; failures arrive in-band.
        stream_error = _find_stream_error(response.text)
        if stream_error:
            raise DockerAPIError(response.status_code, stream_error, operation="pull image")
        logger.info("Pulled image %s", image)

    async def create_container(self, name: str, image: str, network: str) -> str:
        response = await self._request(
            "POST",
            "/containers/create",
            params={"name": name},
            json_body={
                "Image": image,
                "HostConfig": {"NetworkMode": network},
            },
        )
        self._raise_for_status(response, "create container")
        container_id = response.json()["Id"]
        logger.info("Created container %s (%s) from %s", name, container_id[:12], image)
        return container_id

    async def _container_operation(self, container_id: str, operation: str) -> httpx.Response:
        return await self._request("POST", f"/containers/{container_id}/{operation}")

    async def start_container(self, container_id: str) -> bool:
        response = await self._container_operation(container_id, "start")
        if response.status_code == STATUS_NOT_MODIFIED:  # already started
            return False
        self._raise_for_status(response, "start container")
        return True

    async def stop_container(self, container_id: str) -> bool:
        response = await self._container_operation(container_id, "stop")
        if response.status_code == STATUS_NOT_MODIFIED:  # already stopped
            return False
        self._raise_for_status(response, "stop container")
        return True

    async def kill_container(self, container_id: str) -> bool:
        response = await self._container_operation(container_id, "kill")
        if response.status_code == STATUS_CONFLICT:  # not running
            return False
        self._raise_for_status(response, "kill container")
        return True

    async def remove_container(self, container_id: str, force: bool = False) -> bool:
        response = await self._request(
            "DELETE",
            f"/containers/{container_id}",
            params={"force": _bool_param(force)},
        )
        if response.status_code == STATUS_NOT_FOUND:  # already removed
            return False
        self._raise_for_status(response, "remove container")
        return True


def _bool_param(value: bool) -> str:
    return "true" if value else "false"


def _encode_registry_auth(auth: Dict[str, str]) -> str:
    raw = json.dumps(auth).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii")


def _find_stream_error(body: str) -> Optional[str]:
    for line in body.splitlines():
        line = line.strip()
        if not line:
            continue
        try:
            message = json.loads(line)
        except ValueError:
            continue
        if isinstance(message, dict) and message.get("error"):
            return str(message["error"])
    return None
