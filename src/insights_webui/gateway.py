from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote, urlencode

import httpx
from pydantic import TypeAdapter, ValidationError

from insights_webui.config import BackendConfig
from insights_webui.errors import BackendTimeout, DecodeError, TransportError, UnexpectedStatus
from insights_webui.models import (
    Cluster,
    ClusterConfiguration,
    ClusterConfigurationList,
    ClusterList,
    ConfigurationProfile,
    ProfileItem,
    ProfileList,
    Trigger,
    TriggerList,
)

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1/"

READ_OK_STATUSES: tuple[int, ...] = (200,)
WRITE_OK_STATUSES: tuple[int, ...] = (200, 201, 202)


def _quote_segment(segment: str | int) -> str:
    quoted = quote(str(segment), safe="")
    # "." and ".." would be removed as dot segments by URL normalization.
    if quoted in {".", ".."}:
        return quoted.replace(".", "%2E")
    return quoted


def build_path(*segments: str | int) -> str:
    """Join path segments, escaping each one so it cannot leave its segment."""

    return "/".join(_quote_segment(s) for s in segments)


def build_url(base_url: str, path: str, params: dict[str, str] | None = None) -> str:
    url = base_url.rstrip("/") + API_PREFIX + path
    if params:
        url += "?" + urlencode(params)
    return url


def _decode(adapter: TypeAdapter, body: bytes, what: str) -> Any:
    try:
        return adapter.validate_json(body)
    except ValidationError as exc:
        raise DecodeError(f"Unable to decode {what}: {exc}") from exc


class BackendGateway:
    """Async client for the controller service REST API."""

    def __init__(
        self,
        config: BackendConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = config.base_url
        timeout = httpx.Timeout(config.timeout_seconds)
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    @property
    def base_url(self) -> str:
        return self._base_url

    async def close(self) -> None:
        await self._client.aclose()

    async def _send(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None,
        body: str | bytes | None,
        expected: tuple[int, ...],
    ) -> httpx.Response:
        url = build_url(self._base_url, path, params)
        logger.debug("%s %s", method, url)
        try:
            response = await self._client.request(method, url, content=body)
        except httpx.TimeoutException as exc:
            raise BackendTimeout(f"Timed out talking to the server at {url}: {exc}") from exc
        except httpx.TransportError as exc:
            raise TransportError(f"Communication error with the server at {url}: {exc}") from exc

        if response.status_code not in expected:
            raise UnexpectedStatus(response.status_code, url, expected)
        return response

    async def read(self, path: str, *, params: dict[str, str] | None = None) -> bytes:
        response = await self._send(
            "GET", path, params=params, body=None, expected=READ_OK_STATUSES
        )
        return response.content

    async def write(
        self,
        path: str,
        method: str,
        *,
        params: dict[str, str] | None = None,
        body: str | bytes | None = None,
    ) -> None:
        await self._send(method, path, params=params, body=body, expected=WRITE_OK_STATUSES)

    # Reads

    async def list_clusters(self) -> list[Cluster]:
        body = await self.read(build_path("client", "cluster"))
        return _decode(ClusterList, body, "list of clusters") or []

    async def list_profiles(self) -> list[ConfigurationProfile]:
        body = await self.read(build_path("client", "profile"))
        return _decode(ProfileList, body, "list of configuration profiles") or []

    async def get_profile(self, profile_id: str | int) -> ConfigurationProfile:
        body = await self.read(build_path("client", "profile", profile_id))
        return _decode(ProfileItem, body, "configuration profile")

    async def list_configurations(self) -> list[ClusterConfiguration]:
        body = await self.read(build_path("client", "configuration"))
        return _decode(ClusterConfigurationList, body, "list of cluster configurations") or []

    async def get_configuration(self, configuration_id: str | int) -> str:
        """Return the cluster configuration as raw JSON text; it is only displayed."""

        body = await self.read(build_path("client", "configuration", configuration_id))
        return body.decode("utf-8", errors="replace")

    async def list_triggers(self, cluster_name: str) -> list[Trigger]:
        body = await self.read(build_path("client", "cluster", cluster_name, "trigger"))
        return _decode(TriggerList, body, f"list of triggers for {cluster_name}") or []

    async def list_all_triggers(self) -> list[Trigger]:
        body = await self.read(build_path("client", "trigger"))
        return _decode(TriggerList, body, "list of triggers") or []

    # Writes

    async def create_profile(self, *, username: str, description: str, configuration: str) -> None:
        await self.write(
            build_path("client", "profile"),
            "POST",
            params={"username": username, "description": description},
            body=configuration,
        )

    async def create_configuration(
        self,
        *,
        cluster: str,
        username: str,
        reason: str,
        description: str,
        configuration: str,
    ) -> None:
        await self.write(
            build_path("client", "cluster", cluster, "configuration"),
            "POST",
            params={"username": username, "reason": reason, "description": description},
            body=configuration,
        )

    async def enable_configuration(self, configuration_id: str | int) -> None:
        await self.write(build_path("client", "configuration", configuration_id, "enable"), "PUT")

    async def disable_configuration(self, configuration_id: str | int) -> None:
        await self.write(build_path("client", "configuration", configuration_id, "disable"), "PUT")

    async def activate_trigger(self, trigger_id: str | int) -> None:
        await self.write(build_path("client", "trigger", trigger_id, "activate"), "PUT")

    async def deactivate_trigger(self, trigger_id: str | int) -> None:
        await self.write(build_path("client", "trigger", trigger_id, "deactivate"), "PUT")

    async def trigger_must_gather(
        self, *, cluster_name: str, username: str, reason: str, link: str
    ) -> None:
        await self.write(
            build_path("client", "cluster", cluster_name, "trigger", "must-gather"),
            "POST",
            params={"username": username, "reason": reason, "link": link},
        )
