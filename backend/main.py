"""
Quralyst Waitlist API
Main FastAPI application
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, HTMLResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.background import BackgroundTask
from starlette.exceptions import HTTPException as StarletteHTTPException
import uvicorn

from config import BASE_DIR, Settings, get_settings
from export import (
    ExportFileResponse,
    NothingToExportError,
    export_filename,
    remove_export_later,
    write_export,
)
from validation import is_valid_email
from waitlist import WaitlistStore, build_store

logging.basicConfig(
    level=get_settings().log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Quralyst Waitlist",
    description="Email waitlist signup with JSON-file storage and CSV export",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# Static files
STATIC_DIR = (BASE_DIR / "static").resolve()
if STATIC_DIR.exists():
    app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")


_store: Optional[WaitlistStore] = None


def get_store() -> WaitlistStore:
    """Get or create the configured store singleton"""
    global _store
    if _store is None:
        _store = build_store(get_settings())
    return _store


def _failure(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message})


@app.exception_handler(StarletteHTTPException)
async def http_error(request: Request, exc: StarletteHTTPException):
    # a known path with the wrong method is still an unmatched route
    if exc.status_code in (404, 405):
        return _failure(404, "Endpoint not found")
    return _failure(exc.status_code, str(exc.detail))


@app.exception_handler(Exception)
async def unhandled_error(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _failure(500, "Something went wrong!")


@app.get("/", response_class=HTMLResponse)
async def root():
    """Serve the signup page"""
    index_path = STATIC_DIR / "index.html"
    if index_path.exists():
        return FileResponse(index_path, media_type="text/html")
    return HTMLResponse(content="<h1>Quralyst Waitlist API is running</h1>", status_code=200)


@app.get("/health")
@app.get("/api/health")
async def health():
    """Liveness probe"""
    return {
        "success": True,
        "message": "Server is running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


async def _read_email(request: Request) -> str:
    content_type = request.headers.get("content-type", "")
    if "application/json" in content_type:
        try:
            payload = await request.json()
        except ValueError:
            return ""
        value = payload.get("email") if isinstance(payload, dict) else None
    else:
        form = await request.form()
        value = form.get("email")
    return value.strip() if isinstance(value, str) else ""


@app.post("/api/waitlist")
async def join_waitlist(request: Request, store: WaitlistStore = Depends(get_store)):
    """Add an email to the waitlist (JSON or form body)"""
    email = await _read_email(request)
    if not is_valid_email(email):
        return _failure(400, "Please provide a valid email address")

    metadata = {
        "ip": request.client.host if request.client else "",
        "userAgent": request.headers.get("user-agent", ""),
    }
    result = store.append(email, metadata)
    if result.success:
        return {"success": True, "message": result.message, "totalEmails": result.total}
    if result.error == "duplicate":
        return _failure(409, result.message)
    return _failure(500, result.message)


@app.get("/api/waitlist")
async def list_waitlist(store: WaitlistStore = Depends(get_store)):
    """All entries (admin endpoint)"""
    entries = store.load()
    return {
        "success": True,
        "emails": [entry.to_record() for entry in entries],
        "total": len(entries),
    }


@app.delete("/api/waitlist")
async def clear_waitlist(store: WaitlistStore = Depends(get_store)):
    """Delete all entries (admin endpoint)"""
    if not store.clear():
        return _failure(500, "Failed to delete emails")
    logger.info("Waitlist cleared")
    return {"success": True, "message": "All emails deleted"}


@app.get("/api/export")
async def export_waitlist(
    store: WaitlistStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    """Download the waitlist as CSV; the generated file is removed after a delay"""
    try:
        path = write_export(store.load(), settings.export_dir)
    except NothingToExportError as e:
        return _failure(404, str(e))
    except OSError:
        logger.exception("CSV creation error")
        return _failure(500, "Failed to create CSV file")

    return ExportFileResponse(
        path,
        media_type="text/csv",
        filename=export_filename(),
        background=BackgroundTask(remove_export_later, path, settings.export_cleanup_seconds),
    )


if __name__ == "__main__":
    settings = get_settings()
    logger.info("Quralyst Waitlist Server running on port %d", settings.port)
    logger.info("Add emails: POST /api/waitlist")
    logger.info("View emails: GET /api/waitlist")
    logger.info("Export CSV: GET /api/export")
    logger.info("Clear emails: DELETE /api/waitlist")
    uvicorn.run("main:app", host="0.0.0.0", port=settings.port)
