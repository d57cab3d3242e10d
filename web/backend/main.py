"""MediaFlow Web Backend - FastAPI Application."""

from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles

from mediaflow import __version__
from mediaflow.workflow_io import WorkflowFormatError

from .routes import flows_router, node_types_router, ws_router
from .routes.flows import FLOWS_DIR, _flows
from .services.paths import resolve_frontend_dir

logger = logging.getLogger(__name__)

app = FastAPI(
    title="MediaFlow",
    description="Node-graph execution backend for media-generation workflows",
    version=__version__,
)

# Editor dev server runs on another origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(flows_router, prefix="/api")
app.include_router(node_types_router, prefix="/api")
app.include_router(ws_router, prefix="/api")


@app.exception_handler(WorkflowFormatError)
async def workflow_format_error_handler(request: Request, exc: WorkflowFormatError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


logger.info(f"MediaFlow backend {__version__}: {len(_flows)} flow(s) in {FLOWS_DIR}")


@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "mediaflow", "version": __version__, "flows": len(_flows)}


# The SPA catch-all must be registered after every /api route.
FRONTEND_DIR = resolve_frontend_dir()
if FRONTEND_DIR.is_dir():
    if (FRONTEND_DIR / "assets").is_dir():
        app.mount("/assets", StaticFiles(directory=FRONTEND_DIR / "assets"), name="assets")

    @app.get("/")
    async def serve_frontend():
        return FileResponse(FRONTEND_DIR / "index.html")

    @app.get("/{path:path}")
    async def serve_frontend_fallback(path: str):
        """Serve bundle files, falling back to index.html for client-side routes."""
        if path.startswith("api/"):
            raise HTTPException(status_code=404, detail="API endpoint not found")
        file_path = FRONTEND_DIR / path
        if file_path.is_file():
            return FileResponse(file_path)
        return FileResponse(FRONTEND_DIR / "index.html")
