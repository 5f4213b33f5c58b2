from __future__ import annotations

import json
from collections.abc import Iterator
from typing import Any

import httpx
import pytest
from fastapi.testclient import TestClient

from insights_webui.app import create_app
from insights_webui.config import WebUIConfig

CONTROLLER_URL = "http://controller.test"


class FakeController:
    """Stand-in for the controller REST API; records every request it receives."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._routes: dict[tuple[str, str], Any] = {}

    def reply(
        self,
        method: str,
        path: str,
        *,
        status: int = 200,
        payload: Any = None,
        text: str | None = None,
    ) -> None:
        if text is None:
            text = "" if payload is None else json.dumps(payload)
        self._routes[(method, "/api/v1/" + path)] = (status, text)

    def fail(self, method: str, path: str, exc_type: type[httpx.TransportError]) -> None:
        self._routes[(method, "/api/v1/" + path)] = exc_type

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self._routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, text="unknown endpoint")
        if isinstance(route, type):
            raise route("controller unavailable", request=request)
        status, text = route
        return httpx.Response(status, text=text)

    @property
    def last(self) -> httpx.Request:
        assert self.requests, "no request reached the controller"
        return self.requests[-1]


def make_config(**overrides: Any) -> WebUIConfig:
    raw: dict[str, Any] = {"controller_url": CONTROLLER_URL, "address": ":8081"}
    raw.update(overrides)
    return WebUIConfig.model_validate(raw)


@pytest.fixture
def controller() -> FakeController:
    return FakeController()


@pytest.fixture
def client(controller: FakeController) -> Iterator[TestClient]:
    app = create_app(make_config(), transport=httpx.MockTransport(controller.handler))
    with TestClient(app) as c:
        yield c
