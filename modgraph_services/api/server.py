"""FastAPI wiring for the graph render service.

``create_app`` builds an application around one ``ArtifactStore`` and one
``RenderPipeline``; both hang off ``app.state`` so handlers never reach for
module globals. The module-level ``app`` is configured from the environment
and is what uvicorn serves.
"""
from __future__ import annotations

import logging
import re
import uuid
from typing import Sequence

from fastapi import APIRouter, FastAPI, HTTPException, Request, status
from fastapi.responses import HTMLResponse, PlainTextResponse, RedirectResponse, Response
from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException as StarletteHTTPException

from modgraph_services.api.templates import GRAPH_FORM_FIELD, RAW_PATH, UPLOAD_PATH, render_root
from modgraph_services.config import ServiceSettings
from modgraph_services.errors import ArtifactNotFoundError, EmptyInputError, StageError
from modgraph_services.ops.metrics import MetricsRegistry
from modgraph_services.pipeline.render import RenderPipeline
from modgraph_services.pipeline.stages import Stage, default_stages
from modgraph_services.store import ArtifactStore

logger = logging.getLogger("modgraph_services.api")

SVG_CONTENT_TYPE = "image/svg+xml"
VIEW_PATH = "/view/"
VIEW_PATH_PATTERN = re.compile(r"^" + re.escape(VIEW_PATH) + r"([0-9a-f]{32})$")

router = APIRouter()


class RenderRequest(BaseModel):
    graph: str


class RenderResponse(BaseModel):
    id: str
    path: str
    url: str


def match_view_path(path: str) -> str | None:
    """Return the identifier from ``/view/<id>``, or None if ``path`` is not one."""

    matches = VIEW_PATH_PATTERN.match(path)
    if matches is None:
        return None
    return matches.group(1)


def view_path(identifier: str) -> str:
    return VIEW_PATH + identifier


def _settings(request: Request) -> ServiceSettings:
    return request.app.state.settings


def _metrics(request: Request) -> MetricsRegistry:
    return request.app.state.metrics


def _cache_headers(request: Request) -> dict:
    return {"Cache-Control": f"max-age={_settings(request).cache_max_age}"}


def _public_url(request: Request, path: str) -> str:
    scheme = (
        _settings(request).public_scheme
        or request.headers.get("x-forwarded-proto")
        or request.url.scheme
    )
    host = request.headers.get("host") or request.url.netloc
    return f"{scheme}://{host}{path}"


def _too_large(settings: ServiceSettings) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
        detail=f"graph exceeds {settings.max_input_bytes} bytes",
    )


async def _read_body(request: Request) -> bytes:
    """Read the request body, stopping as soon as it passes the input limit."""

    settings = _settings(request)
    received = bytearray()
    async for chunk in request.stream():
        received.extend(chunk)
        if len(received) > settings.max_input_bytes:
            raise _too_large(settings)
    return bytes(received)


async def _render(request: Request, data: bytes) -> str:
    """Run the pipeline off the event loop and translate its failures."""

    settings = _settings(request)
    metrics = _metrics(request)
    pipeline: RenderPipeline = request.app.state.pipeline

    if len(data) > settings.max_input_bytes:
        raise _too_large(settings)

    metrics.counter("render.calls").inc()
    try:
        identifier = await run_in_threadpool(pipeline.render, data)
    except EmptyInputError as exc:
        metrics.counter("render.rejected").inc()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except StageError as exc:
        metrics.counter(f"render.failures.{exc.stage}").inc()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"rendering failed in {exc.stage} stage",
        ) from exc

    metrics.counter("render.stored").inc()
    return identifier


@router.get("/", response_class=HTMLResponse)
def root(request: Request):
    logger.info("root %s %s", request.method, request.url)
    return HTMLResponse(render_root(str(request.base_url)), headers=_cache_headers(request))


@router.get("/health")
def healthcheck(request: Request):
    return {"status": "ok", "artifacts": len(request.app.state.store)}


@router.post(UPLOAD_PATH)
async def upload(request: Request):
    logger.info("upload %s %s", request.method, request.url)
    settings = _settings(request)
    try:
        form = await request.form(max_part_size=settings.max_input_bytes)
    except StarletteHTTPException as exc:
        # text fields over max_part_size fail while parsing, before _render sees them
        if exc.status_code == status.HTTP_400_BAD_REQUEST and "exceeded maximum size" in str(exc.detail):
            raise _too_large(settings) from exc
        raise
    value = form.get(GRAPH_FORM_FIELD)
    if isinstance(value, UploadFile):
        data = await value.read()
    else:
        data = (value or "").encode("utf-8")

    identifier = await _render(request, data)
    return RedirectResponse(view_path(identifier), status_code=status.HTTP_303_SEE_OTHER)


@router.post(RAW_PATH)
async def raw(request: Request):
    logger.info("raw %s %s", request.method, request.url)
    data = await _read_body(request)
    identifier = await _render(request, data)
    return PlainTextResponse(f"Open: {_public_url(request, view_path(identifier))}\n")


@router.post("/api/render", response_model=RenderResponse)
async def render_json(request: Request, body: RenderRequest):
    identifier = await _render(request, body.graph.encode("utf-8"))
    path = view_path(identifier)
    return RenderResponse(id=identifier, path=path, url=_public_url(request, path))


@router.get(VIEW_PATH + "{identifier}")
def serve_svg(request: Request, identifier: str):
    logger.info("view %s %s", request.method, request.url)
    metrics = _metrics(request)
    name = match_view_path(request.url.path)
    if name is None or name != identifier:
        metrics.counter("view.misses").inc()
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="not found")

    try:
        payload = request.app.state.store.get(name)
    except ArtifactNotFoundError as exc:
        metrics.counter("view.misses").inc()
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="not found") from exc

    metrics.counter("view.hits").inc()
    return Response(payload, media_type=SVG_CONTENT_TYPE, headers=_cache_headers(request))


@router.get("/metrics")
def metric_snapshot(request: Request):
    """Expose collected counters for lightweight observability."""

    return {"counters": _metrics(request).snapshot()}


def create_app(
    settings: ServiceSettings | None = None,
    *,
    store: ArtifactStore | None = None,
    stages: Sequence[Stage] | None = None,
    metrics: MetricsRegistry | None = None,
) -> FastAPI:
    settings = settings or ServiceSettings.from_env()
    store = store if store is not None else ArtifactStore()

    app = FastAPI(title="modgraphviz Web Interface")
    app.state.settings = settings
    app.state.store = store
    app.state.pipeline = RenderPipeline(stages if stages is not None else default_stages(settings), store)
    app.state.metrics = metrics or MetricsRegistry()

    @app.middleware("http")
    async def tag_request_id(request: Request, call_next):
        request_id = request.headers.get(settings.request_id_header) or str(uuid.uuid4())
        response = await call_next(request)
        response.headers[settings.request_id_header] = request_id
        return response

    app.include_router(router)
    return app


app = create_app()
