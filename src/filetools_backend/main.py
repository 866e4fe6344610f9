from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional

from fastapi import Depends, FastAPI, Header, Query, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException as StarletteHTTPException

from .configuration import Settings, configure_logging, load_settings
from .dispatch import ToolRouter
from .download import WholeFileResponse, media_type_for, resolve_artifact
from .errors import ErrorKind, ToolError
from .lifecycle import OutputLifecycle
from .middleware import RateLimiter, RateLimitMiddleware
from .registry import ToolRegistry, build_registry, resolve_language
from .responses import data_envelope, error_response, health_envelope, process_envelope
from .storage import StorageLayout, UploadIntake
from .tools import build_handlers

logger = logging.getLogger(__name__)

FILES_FIELD = "files"

settings = load_settings()
configure_logging(settings)

layout = StorageLayout(settings.storage.upload_dir, settings.storage.output_dir)
layout.ensure()
lifecycle = OutputLifecycle(
    retention_seconds=settings.lifecycle.retention_seconds,
    sweep_interval_seconds=settings.lifecycle.sweep_interval_seconds,
)
intake = UploadIntake(layout, settings.limits.max_files, settings.limits.max_file_size_bytes)
registry = build_registry(settings.localization.default_language)
router = ToolRouter(registry, build_handlers(settings), intake, layout, lifecycle)
rate_limiter = RateLimiter(settings.server.rate_limit_per_minute)


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    layout.ensure()
    lifecycle.adopt_existing(layout.output_root)
    lifecycle.start()
    try:
        yield
    finally:
        lifecycle.stop()


app = FastAPI(title="File Tools API", version="0.1.0", lifespan=lifespan)

app.add_middleware(RateLimitMiddleware, limiter=rate_limiter)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.server.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_settings() -> Settings:
    return settings


def get_registry() -> ToolRegistry:
    return registry


def get_router() -> ToolRouter:
    return router


def get_intake() -> UploadIntake:
    return intake


def get_layout() -> StorageLayout:
    return layout


def get_lifecycle() -> OutputLifecycle:
    return lifecycle


@app.exception_handler(ToolError)
async def tool_error_handler(request: Request, exc: ToolError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{exc.tool_id or request.url.path}: {exc.message}")
    return error_response(exc.status_code, exc.message)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = "API not found" if exc.status_code == 404 else str(exc.detail)
    return error_response(exc.status_code, message, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return error_response(400, message)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return error_response(500, "Internal server error")


@app.get("/health")
def health() -> Dict[str, Any]:
    return health_envelope(with_timestamp=True)


@app.get("/api/health")
def api_health() -> Dict[str, Any]:
    return health_envelope()


@app.get("/api/tools")
def list_tools(catalog: ToolRegistry = Depends(get_registry)) -> Dict[str, Any]:
    return data_envelope([summary.model_dump(by_alias=True, mode="json") for summary in catalog.list_all()])


@app.get("/api/tools/{tool_id}")
def get_tool(
    tool_id: str,
    lang: Optional[str] = Query(None),
    accept_language: Optional[str] = Header(None),
    catalog: ToolRegistry = Depends(get_registry),
) -> Any:
    language = resolve_language(lang, accept_language, catalog.default_language)
    descriptor = catalog.localize(tool_id, language)
    if descriptor is None:
        return error_response(404, "Tool not found")
    served = language if language in catalog.languages(tool_id) else catalog.default_language
    return JSONResponse(
        data_envelope(descriptor.model_dump(by_alias=True, exclude_none=True, mode="json")),
        headers={"Content-Language": served},
    )


@app.post("/api/tools/{tool_id}/process")
async def process_tool(
    tool_id: str,
    request: Request,
    tool_router: ToolRouter = Depends(get_router),
    upload_intake: UploadIntake = Depends(get_intake),
) -> Dict[str, Any]:
    # Nothing is written to disk for a tool that does not exist
    if not tool_router.supports(tool_id):
        logger.warning(f"Rejected request for unsupported tool {tool_id!r}")
        raise ToolError(ErrorKind.UNSUPPORTED_TOOL, tool_id)

    async with request.form() as form:
        parts: List[UploadFile] = [value for value in form.getlist(FILES_FIELD) if isinstance(value, UploadFile)]
        raw_options: Dict[str, str] = {
            key: value for key, value in form.multi_items() if key != FILES_FIELD and isinstance(value, str)
        }
        stored = await upload_intake.receive(parts, FILES_FIELD)

    logger.info(f"Processing {tool_id} with {len(stored)} file(s) and options {sorted(raw_options)}")
    result = await run_in_threadpool(tool_router.process, tool_id, stored, raw_options)
    return process_envelope(result)


@app.get("/api/download/{filename}")
def download(
    filename: str,
    storage: StorageLayout = Depends(get_layout),
    outputs: OutputLifecycle = Depends(get_lifecycle),
) -> WholeFileResponse:
    path = resolve_artifact(filename, storage, outputs)
    return WholeFileResponse(
        path,
        media_type=media_type_for(path.name),
        filename=outputs.display_name(path.name) or path.name,
        headers={"Cache-Control": "no-cache", "Accept-Ranges": "none"},
    )
