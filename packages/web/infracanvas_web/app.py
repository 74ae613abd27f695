"""FastAPI backend wrapping the infracanvas compiler."""

from __future__ import annotations

import asyncio
import logging
import multiprocessing

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from infracanvas import GraphSnapshot
from infracanvas.compiler import DOCUMENT_NAMES, CompileOptions, UnsupportedProviderError, compile_graph
from infracanvas.naming import DEFAULT_SESSION
from infracanvas.schema import SchemaStore, get_schema_store
from infracanvas.synthesizers import get_synthesizer
from pydantic import BaseModel, Field, ValidationError
from starlette.middleware.base import BaseHTTPMiddleware

from infracanvas_web import __version__

log = logging.getLogger(__name__)

app = FastAPI(title="infracanvas", version=__version__, description="Canvas graph to Terraform compiler")


class PathTraversalMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        raw_path = request.scope.get("path", "") or request.url.path
        if ".." in raw_path:
            return JSONResponse(status_code=404, content={"detail": "Not found"})
        return await call_next(request)


app.add_middleware(PathTraversalMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://localhost:3000"],
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_store() -> SchemaStore:
    return get_schema_store()


# --- Request models ---


class CompileRequest(BaseModel):
    snapshot: dict
    region: str | None = None
    project: str | None = None
    session: str = Field(default=DEFAULT_SESSION, min_length=1, max_length=200)


class DownloadRequest(CompileRequest):
    document: str = "main.tf"


# --- Endpoints ---


@app.get("/api/health")
def health():
    try:
        stats = get_store().stats()
        return {"status": "ok", "schemas_loaded": True, "services": stats["total_services"]}
    except Exception:
        log.exception("Schema store failed to load")
        return {"status": "ok", "schemas_loaded": False}


@app.get("/api/services/{provider}")
def list_services(provider: str):
    entries = get_store().list_services(provider)
    if not entries:
        raise HTTPException(status_code=404, detail=f"No services registered for provider {provider!r}")
    return {
        "provider": provider.lower(),
        "services": [
            {**e.to_dict(), "synthesized": get_synthesizer(e.provider, e.service_id) is not None} for e in entries
        ],
    }


def _snapshot(data: dict) -> GraphSnapshot:
    try:
        return GraphSnapshot.model_validate(data)
    except ValidationError as e:
        detail = e.errors(include_url=False, include_context=False, include_input=False)
        raise HTTPException(status_code=422, detail=detail) from e


async def _compile(req: CompileRequest):
    snapshot = _snapshot(req.snapshot)
    options = CompileOptions(region=req.region, project=req.project, session=req.session)
    try:
        return await asyncio.to_thread(compile_graph, snapshot, get_store(), options)
    except UnsupportedProviderError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


@app.post("/api/compile")
async def compile_endpoint(req: CompileRequest):
    try:
        result = await _compile(req)
        return result.to_dict()
    except HTTPException:
        raise
    except Exception as e:
        log.exception("Compile endpoint failed")
        raise HTTPException(status_code=500, detail="Internal server error") from e


@app.post("/api/download")
async def download(req: DownloadRequest):
    if req.document not in DOCUMENT_NAMES:
        raise HTTPException(
            status_code=400, detail=f"Unknown document: {req.document}. Supported: {', '.join(DOCUMENT_NAMES)}"
        )
    try:
        result = await _compile(req)
        return Response(
            content=result.documents[req.document],
            media_type="text/plain",
            headers={"Content-Disposition": f"attachment; filename={req.document}"},
        )
    except HTTPException:
        raise
    except Exception as e:
        log.exception("Download endpoint failed")
        raise HTTPException(status_code=500, detail="Internal server error") from e


def serve(host: str = "127.0.0.1", port: int = 8000):
    """Start the infracanvas web server."""
    import uvicorn

    workers = min(multiprocessing.cpu_count(), 4)
    uvicorn.run("infracanvas_web.app:app", host=host, port=port, workers=workers)
