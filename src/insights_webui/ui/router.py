from __future__ import annotations

import json
import logging
import os
from collections.abc import Awaitable, Callable
from email.utils import formatdate
from pathlib import Path
from typing import Any

import jinja2
from fastapi import APIRouter, Form, HTTPException, Request
from fastapi.responses import HTMLResponse, PlainTextResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from starlette.responses import FileResponse, Response

from insights_webui.errors import (
    BackendTimeout,
    MissingParameter,
    TemplateError,
    UnexpectedStatus,
    WebUIError,
)
from insights_webui.gateway import BackendGateway
from insights_webui.models import Cluster

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent
TEMPLATES_DIR = BASE_DIR / "templates"
STATIC_DIR = BASE_DIR / "static"

NOT_FOUND_BODY = "Not found!"
TEMPLATE_ERROR_BODY = "Error parsing template"
BACKEND_ERROR_BODY = "Unable to read data from the controller service"
BACKEND_TIMEOUT_BODY = "The controller service did not respond in time"

SERVER_HEADER = "Insights Operator Web UI"

CONTENT_TYPES: dict[str, str] = {
    ".html": "text/html",
    ".js": "application/javascript",
    ".css": "text/css",
}
DEFAULT_CONTENT_TYPE = "text/html"

NO_CACHE_HEADERS: dict[str, str] = {
    "Expires": formatdate(0, usegmt=True),
    "Cache-Control": "no-cache, private, max-age=0",
    "Pragma": "no-cache",
    "X-Accel-Expires": "0",
}

STATIC_PAGES: dict[str, str] = {
    "/": "index.html",
    "/bootstrap.min.css": "bootstrap.min.css",
    "/bootstrap.min.js": "bootstrap.min.js",
    "/ccx.css": "ccx.css",
    "/new-profile": "new_profile.html",
    "/new-configuration": "new_configuration.html",
    "/configuration-created": "configuration_created.html",
    "/configuration-not-created": "configuration_not_created.html",
    "/profile-created": "profile_created.html",
    "/profile-not-created": "profile_not_created.html",
    "/trigger-created": "trigger_created.html",
    "/trigger-not-created": "trigger_not_created.html",
}

router = APIRouter(tags=["ui"])


def is_http_url(value: object) -> bool:
    """Only http(s) links are rendered as anchors."""

    return isinstance(value, str) and value.strip().lower().startswith(("http://", "https://"))


def content_type_for(filename: str) -> str:
    return CONTENT_TYPES.get(Path(filename).suffix.lower(), DEFAULT_CONTENT_TYPE)


def send_static_page(path: Path) -> Response:
    """Serve a local file verbatim, or 404 when it cannot be read."""

    if not path.is_file() or not os.access(path, os.R_OK):
        logger.warning("Static file %s cannot be read", path)
        return PlainTextResponse(NOT_FOUND_BODY, status_code=404)
    return FileResponse(
        path,
        media_type=content_type_for(path.name),
        headers={"Server": SERVER_HEADER},
    )


def _get_gateway(request: Request) -> BackendGateway:
    gateway = getattr(request.app.state, "gateway", None)
    if gateway is None:
        raise HTTPException(status_code=500, detail="Backend gateway not initialized")
    return gateway


def _get_static_dir(request: Request) -> Path:
    return getattr(request.app.state, "static_dir", STATIC_DIR)


def _require_query(request: Request, name: str) -> str:
    value = request.query_params.get(name)
    if value is None:
        raise MissingParameter(name)
    return value


def _require_form(value: str, name: str) -> str:
    if not value.strip():
        raise MissingParameter(name)
    return value


def _require_identifier(value: str, name: str) -> str:
    """An identifier placed in a backend path segment; blank or dot segments are rejected."""

    if value.strip() in {"", ".", ".."}:
        raise MissingParameter(name)
    return value


def _plain(body: str, status_code: int, headers: dict[str, str] | None = None) -> Response:
    return PlainTextResponse(body, status_code=status_code, headers=headers)


def _pretty_json(raw: str) -> str:
    try:
        return json.dumps(json.loads(raw), ensure_ascii=False, indent=2)
    except (TypeError, ValueError):
        return raw


def _template_response(
    request: Request, name: str, ctx: dict[str, Any], headers: dict[str, str] | None
) -> HTMLResponse:
    templates: Jinja2Templates = request.app.state.templates
    try:
        return templates.TemplateResponse(request, name, ctx, headers=headers)
    except jinja2.TemplateError as exc:
        raise TemplateError(f"Error parsing template {name}: {exc}") from exc


def _render(
    request: Request,
    name: str,
    ctx: dict[str, Any],
    *,
    error_body: str = NOT_FOUND_BODY,
    headers: dict[str, str] | None = None,
) -> Response:
    try:
        return _template_response(request, name, ctx, headers)
    except TemplateError:
        logger.exception("Unable to render %s", name)
        return _plain(error_body, 404, headers)


def _backend_failure(
    exc: WebUIError, what: str, headers: dict[str, str] | None = None
) -> Response:
    logger.warning("Error reading %s: %s", what, exc)
    if isinstance(exc, BackendTimeout):
        return _plain(BACKEND_TIMEOUT_BODY, 504, headers)
    return _plain(BACKEND_ERROR_BODY, 502, headers)


def _static_page(filename: str) -> Callable[[Request], Awaitable[Response]]:
    async def _serve(request: Request) -> Response:
        return send_static_page(_get_static_dir(request) / filename)

    return _serve


for _path, _filename in STATIC_PAGES.items():
    router.add_api_route(_path, _static_page(_filename), methods=["GET"], include_in_schema=False)


@router.get("/list-clusters", response_class=HTMLResponse)
async def list_clusters(request: Request) -> Response:
    try:
        clusters = await _get_gateway(request).list_clusters()
    except WebUIError as exc:
        return _backend_failure(exc, "list of clusters")

    return _render(
        request,
        "list_clusters.html",
        {"title": "Clusters", "active": "clusters", "items": clusters},
    )


@router.get("/list-profiles", response_class=HTMLResponse)
async def list_profiles(request: Request) -> Response:
    try:
        profiles = await _get_gateway(request).list_profiles()
    except WebUIError as exc:
        return _backend_failure(exc, "list of configuration profiles")

    return _render(
        request,
        "list_profiles.html",
        {"title": "Configuration profiles", "active": "profiles", "items": profiles},
    )


@router.get("/list-configurations", response_class=HTMLResponse)
async def list_configurations(request: Request) -> Response:
    headers = dict(NO_CACHE_HEADERS)
    try:
        configurations = await _get_gateway(request).list_configurations()
    except WebUIError as exc:
        return _backend_failure(exc, "list of cluster configurations", headers)

    return _render(
        request,
        "list_configurations.html",
        {"title": "Cluster configurations", "active": "configurations", "items": configurations},
        headers=headers,
    )


@router.get("/list-triggers", response_class=HTMLResponse)
@router.get("/list-all-triggers", response_class=HTMLResponse)
async def list_triggers(request: Request) -> Response:
    headers = dict(NO_CACHE_HEADERS)
    cluster_name = request.query_params.get("clusterName")
    gateway = _get_gateway(request)
    try:
        if cluster_name is None:
            triggers = await gateway.list_all_triggers()
        else:
            triggers = await gateway.list_triggers(cluster_name)
    except WebUIError as exc:
        return _backend_failure(exc, "list of triggers", headers)

    logger.debug("Read %d triggers (cluster: %s)", len(triggers), cluster_name or "all")
    return _render(
        request,
        "list_triggers.html",
        {
            "title": "Triggers",
            "active": "triggers",
            "items": triggers,
            "cluster_name": cluster_name,
        },
        headers=headers,
    )


@router.get("/describe-configuration", response_class=HTMLResponse)
async def describe_configuration(request: Request) -> Response:
    profile_id = _require_identifier(_require_query(request, "configuration"), "configuration")
    try:
        profile = await _get_gateway(request).get_profile(profile_id)
    except UnexpectedStatus as exc:
        if exc.status_code == 404:
            logger.info("Configuration profile %s not found", profile_id)
            return _plain(NOT_FOUND_BODY, 404)
        return _backend_failure(exc, f"configuration profile {profile_id}")
    except WebUIError as exc:
        return _backend_failure(exc, f"configuration profile {profile_id}")

    return _render(
        request,
        "describe_configuration.html",
        {
            "title": f"Configuration profile {profile.id}",
            "active": "profiles",
            "configuration": profile,
            "configuration_json": _pretty_json(profile.configuration),
        },
        error_body=TEMPLATE_ERROR_BODY,
    )


@router.get("/describe-cluster-configuration", response_class=HTMLResponse)
async def describe_cluster_configuration(request: Request) -> Response:
    raw_id = _require_query(request, "configuration")
    configuration_id = _require_identifier(raw_id, "configuration")
    try:
        raw = await _get_gateway(request).get_configuration(configuration_id)
    except WebUIError as exc:
        return _backend_failure(exc, f"cluster configuration {configuration_id}")

    return _render(
        request,
        "describe_cluster_configuration.html",
        {
            "title": f"Cluster configuration {configuration_id}",
            "active": "configurations",
            "configuration_id": configuration_id,
            "configuration_json": _pretty_json(raw),
        },
        error_body=TEMPLATE_ERROR_BODY,
    )


@router.get("/trigger-must-gather-configuration", response_class=HTMLResponse)
async def trigger_must_gather_configuration(request: Request) -> Response:
    raw_id = _require_query(request, "clusterID")
    try:
        cluster_id = int(raw_id)
    except ValueError as exc:
        raise MissingParameter("clusterID") from exc
    cluster_name = _require_query(request, "clusterName")

    return _render(
        request,
        "trigger_must_gather.html",
        {
            "title": "Trigger must-gather",
            "active": "clusters",
            "cluster": Cluster(id=cluster_id, name=cluster_name),
        },
        error_body=TEMPLATE_ERROR_BODY,
    )


@router.post("/store-profile")
async def store_profile(
    request: Request,
    username: str = Form(default=""),
    description: str = Form(default=""),
    configuration: str = Form(default=""),
) -> RedirectResponse:
    logger.info("username %s", username)
    logger.info("description %s", description)
    logger.info("configuration %s", configuration)

    try:
        await _get_gateway(request).create_profile(
            username=username, description=description, configuration=configuration
        )
    except WebUIError as exc:
        logger.warning("Error communicating with the service: %s", exc)
        return RedirectResponse(url="/profile-not-created", status_code=301)

    logger.info("Configuration profile has been created")
    return RedirectResponse(url="/profile-created", status_code=301)


@router.post("/store-configuration")
async def store_configuration(
    request: Request,
    username: str = Form(default=""),
    cluster: str = Form(default=""),
    reason: str = Form(default=""),
    description: str = Form(default=""),
    configuration: str = Form(default=""),
) -> RedirectResponse:
    logger.info("username %s", username)
    logger.info("cluster %s", cluster)
    logger.info("reason %s", reason)
    logger.info("description %s", description)
    logger.info("configuration %s", configuration)

    try:
        await _get_gateway(request).create_configuration(
            cluster=_require_identifier(cluster, "cluster"),
            username=username,
            reason=reason,
            description=description,
            configuration=configuration,
        )
    except WebUIError as exc:
        logger.warning("Error communicating with the service: %s", exc)
        return RedirectResponse(url="/configuration-not-created", status_code=301)

    logger.info("Configuration has been created")
    return RedirectResponse(url="/configuration-created", status_code=301)


async def _toggle(
    action: Callable[[str], Awaitable[None]],
    item_id: str,
    done_message: str,
    redirect_to: str,
) -> Response:
    try:
        await action(item_id)
    except WebUIError as exc:
        # The browser is not told about the failure; the list page still shows the old state.
        logger.warning("Error communicating with the service: %s", exc)
        return Response(status_code=200)

    logger.info(done_message, item_id)
    return RedirectResponse(url=redirect_to, status_code=307)


@router.api_route("/enable-configuration", methods=["GET", "PUT"])
async def enable_configuration(request: Request) -> Response:
    configuration_id = _require_identifier(_require_query(request, "id"), "id")
    return await _toggle(
        _get_gateway(request).enable_configuration,
        configuration_id,
        "Configuration %s has been enabled",
        "/list-configurations",
    )


@router.api_route("/disable-configuration", methods=["GET", "PUT"])
async def disable_configuration(request: Request) -> Response:
    configuration_id = _require_identifier(_require_query(request, "id"), "id")
    return await _toggle(
        _get_gateway(request).disable_configuration,
        configuration_id,
        "Configuration %s has been disabled",
        "/list-configurations",
    )


@router.api_route("/activate-trigger", methods=["GET", "PUT"])
async def activate_trigger(request: Request) -> Response:
    trigger_id = _require_identifier(_require_query(request, "id"), "id")
    return await _toggle(
        _get_gateway(request).activate_trigger,
        trigger_id,
        "Trigger %s has been activated",
        "/list-triggers",
    )


@router.api_route("/deactivate-trigger", methods=["GET", "PUT"])
async def deactivate_trigger(request: Request) -> Response:
    trigger_id = _require_identifier(_require_query(request, "id"), "id")
    return await _toggle(
        _get_gateway(request).deactivate_trigger,
        trigger_id,
        "Trigger %s has been deactivated",
        "/list-triggers",
    )


@router.post("/trigger-must-gather")
async def trigger_must_gather(
    request: Request,
    clusterid: str = Form(default=""),
    clustername: str = Form(default=""),
    username: str = Form(default=""),
    reason: str = Form(default=""),
    link: str = Form(default=""),
) -> RedirectResponse:
    logger.info("clusterID %s", clusterid)
    logger.info("clusterName %s", clustername)
    logger.info("username %s", username)
    logger.info("reason %s", reason)
    logger.info("link %s", link)

    try:
        await _get_gateway(request).trigger_must_gather(
            cluster_name=_require_identifier(clustername, "clustername"),
            username=username,
            reason=reason,
            link=link,
        )
    except WebUIError as exc:
        logger.warning("Error communicating with the service: %s", exc)
        return RedirectResponse(url="/trigger-not-created", status_code=301)

    logger.info("Trigger has been created")
    return RedirectResponse(url="/trigger-created", status_code=301)
