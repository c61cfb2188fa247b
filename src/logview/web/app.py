"""FastAPI application exposing the LogView API and web UI."""

from __future__ import annotations

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Iterator, List, Union

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, StrictFloat, StrictInt, StrictStr
from starlette.exceptions import HTTPException as StarletteHTTPException

from logview.config import AppConfig
from logview.device import check_device
from logview.errors import LogViewError, StorageError
from logview.remote import NOT_FOUND_OR_EXPIRED, RemoteClient, RemoteLogService
from logview.service import LogFileService
from logview.storage import SQLiteLogStore
from logview.utils.ids import normalize_log_id
from logview.web.frontend import router as frontend_router

LOGGER = logging.getLogger(__name__)

LOG_NOT_FOUND = "Log not found"
INVALID_REQUEST = "Invalid request"


class DownloadPayload(BaseModel):
    log_id: Union[StrictStr, StrictInt, StrictFloat]


class TagsPayload(BaseModel):
    tags: str = ""


class NotesPayload(BaseModel):
    notes: str = ""


class MetadataPayload(BaseModel):
    tags: str = ""
    notes: str = ""


class DeviceCheckPayload(BaseModel):
    device_name: str = ""


def _setup_logging(debug: bool) -> None:
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _success(data: Any = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"status": "success"}
    if data is not None:
        body["data"] = data
    return body


def _error(message: str, code: int) -> JSONResponse:
    return JSONResponse(status_code=code, content={"error": message, "code": code})


def get_store(request: Request) -> Iterator[SQLiteLogStore]:
    """Open the record store for the duration of one request."""
    store = SQLiteLogStore(request.app.state.config.resolve_db_path())
    try:
        yield store
    finally:
        store.close()


def get_files(request: Request) -> LogFileService:
    return request.app.state.files


def get_remote_logs(request: Request) -> RemoteLogService:
    return request.app.state.remote_logs


def _require_record(store: SQLiteLogStore, log_id: str) -> str:
    log_id = normalize_log_id(log_id)
    if store.get_record(log_id) is None:
        raise HTTPException(status_code=404, detail=LOG_NOT_FOUND)
    return log_id


router = APIRouter(prefix="/api")


@router.get("/logs")
def list_logs(store: SQLiteLogStore = Depends(get_store)) -> List[Dict[str, Any]]:
    return [record.to_dict() for record in store.list_records()]


@router.get("/logs/{log_id}")
def get_log(log_id: str, store: SQLiteLogStore = Depends(get_store)) -> Dict[str, Any]:
    record = store.get_record(normalize_log_id(log_id))
    if record is None:
        raise HTTPException(status_code=404, detail=LOG_NOT_FOUND)
    return record.to_dict()


@router.post("/download")
async def download_log(
    payload: DownloadPayload,
    store: SQLiteLogStore = Depends(get_store),
    files: LogFileService = Depends(get_files),
) -> Dict[str, Any]:
    log_id = normalize_log_id(payload.log_id)
    outcome = await asyncio.to_thread(files.download_and_extract, log_id)
    if not outcome.success:
        status = 404 if outcome.error == NOT_FOUND_OR_EXPIRED else 500
        raise HTTPException(status_code=status, detail=f"Download failed: {outcome.error}")

    try:
        await asyncio.to_thread(
            store.create_record, log_id, outcome.file_path, outcome.extract_path
        )
    except StorageError:
        # No record means no extraction directory either.
        await asyncio.to_thread(files.delete_files, log_id)
        raise
    data: Dict[str, Any] = {"log_id": log_id}
    if outcome.skipped:
        data["skipped"] = outcome.skipped
    return _success(data)


@router.get("/logs/{log_id}/files")
def get_log_files(
    log_id: str,
    store: SQLiteLogStore = Depends(get_store),
    files: LogFileService = Depends(get_files),
) -> Dict[str, Any]:
    log_id = _require_record(store, log_id)
    return files.get_tree(log_id).to_dict()


@router.get("/logs/{log_id}/file")
def get_log_file(
    log_id: str,
    path: str = "",
    store: SQLiteLogStore = Depends(get_store),
    files: LogFileService = Depends(get_files),
) -> Dict[str, Any]:
    if not path:
        raise HTTPException(status_code=400, detail="File path must not be empty")
    log_id = _require_record(store, log_id)
    return files.read_file(log_id, path).to_dict()


@router.delete("/logs/{log_id}")
def delete_log(
    log_id: str,
    store: SQLiteLogStore = Depends(get_store),
    files: LogFileService = Depends(get_files),
) -> Dict[str, Any]:
    log_id = normalize_log_id(log_id)
    if not store.delete_record(log_id):
        raise HTTPException(status_code=404, detail=LOG_NOT_FOUND)
    try:
        files.delete_files(log_id)
    except OSError as exc:
        LOGGER.error("Unable to remove files for %s: %s", log_id, exc)
        raise HTTPException(status_code=500, detail="Failed to remove log files") from exc
    return _success()


@router.put("/logs/{log_id}/tags")
def update_log_tags(
    log_id: str, payload: TagsPayload, store: SQLiteLogStore = Depends(get_store)
) -> Dict[str, Any]:
    log_id = _require_record(store, log_id)
    store.update_tags(log_id, payload.tags)
    return _success({"tags": payload.tags})


@router.put("/logs/{log_id}/notes")
def update_log_notes(
    log_id: str, payload: NotesPayload, store: SQLiteLogStore = Depends(get_store)
) -> Dict[str, Any]:
    log_id = _require_record(store, log_id)
    store.update_notes(log_id, payload.notes)
    return _success({"notes": payload.notes})


@router.put("/logs/{log_id}/metadata")
def update_log_metadata(
    log_id: str, payload: MetadataPayload, store: SQLiteLogStore = Depends(get_store)
) -> Dict[str, Any]:
    log_id = _require_record(store, log_id)
    store.update_tags_and_notes(log_id, payload.tags, payload.notes)
    return _success({"tags": payload.tags, "notes": payload.notes})


@router.get("/remote-logs")
def list_remote_logs(
    keyword: str = "", remote_logs: RemoteLogService = Depends(get_remote_logs)
) -> List[Dict[str, Any]]:
    return [log.to_dict() for log in remote_logs.list_remote_logs(keyword)]


@router.post("/device-check")
async def device_check(payload: DeviceCheckPayload, request: Request) -> Dict[str, Any]:
    config: AppConfig = request.app.state.config
    result = await asyncio.to_thread(
        check_device,
        payload.device_name,
        binary=config.device_binary,
        domain_suffix=config.device_domain_suffix,
        timeout=config.device_timeout,
    )
    return result.to_dict()


def create_app(config: AppConfig | None = None, *, client: RemoteClient | None = None) -> FastAPI:
    """Build the application.

    The remote client is created here (or injected) and shared by every
    request; the tree cache sweeper runs for the lifetime of the app.
    """
    config = config if config is not None else AppConfig.from_env()
    config.ensure_directories()
    owns_client = client is None
    remote = client if client is not None else RemoteClient.from_config(config)
    files = LogFileService(config, remote)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        _setup_logging(config.debug)
        files.cache.start_sweeper(config.tree_cache_sweep_interval)
        try:
            yield
        finally:
            files.cache.stop_sweeper()
            if owns_client:
                remote.close()

    app = FastAPI(title="LogView", version="0.1.0", lifespan=lifespan)
    app.state.config = config
    app.state.files = files
    app.state.remote_logs = RemoteLogService(remote)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next: Any) -> Any:
        start = time.perf_counter()
        response = await call_next(request)
        latency_ms = (time.perf_counter() - start) * 1000
        path = request.url.path
        if request.url.query:
            path = f"{path}?{request.url.query}"
        client_host = request.client.host if request.client else "-"
        LOGGER.info(
            "%s %s | Status: %d | Latency: %.2f ms | IP: %s",
            request.method,
            path,
            response.status_code,
            latency_ms,
            client_host,
        )
        return response

    @app.exception_handler(LogViewError)
    async def handle_logview_error(request: Request, exc: LogViewError) -> JSONResponse:
        if exc.status_code >= 500:
            LOGGER.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return _error(exc.message, exc.status_code)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return _error(str(exc.detail), exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        LOGGER.debug("Rejected request to %s: %s", request.url.path, exc.errors())
        return _error(INVALID_REQUEST, 400)

    app.include_router(frontend_router)
    app.include_router(router)
    return app
