"""
FastAPI Script Conversion Backend
Converts C# Unity mesh scripts to GLB files and exposes a script for browsing
"""
import json
import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse, Response
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings, load_settings
from .converter import convert_script
from .errors import ConversionErrorKind
from .models import (
    ErrorResponse,
    HealthResponse,
    ScriptChunkResponse,
    ScriptFormatResponse,
    ScriptMetadataResponse,
    ScriptResponse,
)
from .script_source import ScriptSource

logger = logging.getLogger(__name__)

GLB_MEDIA_TYPE = "model/gltf-binary"

# Conversion error kind -> HTTP status
ERROR_STATUS = {
    ConversionErrorKind.NO_MESH_FOUND: 400,
    ConversionErrorKind.INVALID_MESH: 422,
    ConversionErrorKind.ENCODING_FAILURE: 500,
}

ENDPOINTS = {
    "POST /api/upload": "Upload C# Unity script and convert to GLB",
    "GET /api/script": "Get the entire script",
    "GET /api/script/chunk": "Get a chunk of the script (query params: start, end, chunkSize)",
    "GET /api/script/metadata": "Get script metadata",
    "GET /api/script/format": "Get formatted script structure",
    "GET /api/health": "Health check",
}


async def read_script_content(request: Request, max_size: int) -> str:
    """
    Pull the script text out of an upload body

    Form bodies use the `script` or `file` field, JSON uses the
    `script` or `content` key, anything else is taken as raw text.
    """
    body = await request.body()
    if len(body) > max_size:
        raise HTTPException(
            status_code=413,
            detail=f"File too large. Maximum size: {max_size // (1024*1024)} MB"
        )

    content_type = request.headers.get("content-type", "")

    if "multipart/form-data" in content_type or "application/x-www-form-urlencoded" in content_type:
        form = await request.form()
        value = form.get("script") or form.get("file") or ""
        if isinstance(value, UploadFile):
            data = await value.read()
            return data.decode("utf-8", errors="replace")
        return value

    if "application/json" in content_type:
        try:
            payload = json.loads(body)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=f"Invalid JSON body: {e}")
        if not isinstance(payload, dict):
            raise HTTPException(status_code=400, detail="JSON body must be an object")
        value = payload.get("script") or payload.get("content") or ""
        return value if isinstance(value, str) else ""

    return body.decode("utf-8", errors="replace")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the application around an explicit Settings instance"""
    settings = settings or load_settings()

    logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))

    app = FastAPI(
        title="Script to GLB Conversion API",
        description="Convert C# Unity mesh scripts to binary glTF",
        version="1.0.0"
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    script = ScriptSource(settings.script_path)

    def require_script() -> None:
        if script.stats() is None:
            raise HTTPException(status_code=404, detail="Script file not found")

    @app.get("/")
    async def index():
        """Serve the upload page"""
        if not settings.index_html_path.is_file():
            raise HTTPException(status_code=500, detail="Could not load HTML page")
        return FileResponse(settings.index_html_path, media_type="text/html")

    @app.get("/api")
    async def api_root():
        return {
            "message": "C# Script to GLB Converter API",
            "endpoints": ENDPOINTS,
        }

    @app.get("/api/health", response_model=HealthResponse)
    async def health_check():
        """Health check for deployment platforms"""
        return HealthResponse(
            message="API is running",
            timestamp=datetime.now(timezone.utc).isoformat(),
        )

    @app.post("/api/upload")
    async def upload(request: Request):
        """
        Convert an uploaded C# script to a GLB file

        Accepts multipart form data, JSON or a raw text body.
        Returns the GLB as a download.
        """
        source_text = await read_script_content(request, settings.max_upload_size)

        if not source_text or not source_text.strip():
            raise HTTPException(status_code=400, detail="No script content provided")

        result = convert_script(source_text)

        if not result.ok:
            raise HTTPException(
                status_code=ERROR_STATUS[result.error.kind],
                detail=result.error.message,
            )

        metadata = result.metadata
        return Response(
            content=result.glb,
            media_type=GLB_MEDIA_TYPE,
            headers={
                "Content-Disposition": f'attachment; filename="{settings.glb_filename}"',
                "X-Vertex-Count": str(metadata.vertexCount),
                "X-Triangle-Count": str(metadata.triangleCount),
                "X-Has-Normals": str(metadata.hasNormals).lower(),
            },
        )

    @app.get("/api/script", response_model=ScriptResponse)
    async def get_script():
        require_script()
        return ScriptResponse(content=script.read_text(), metadata=script.stats())

    @app.get("/api/script/chunk", response_model=ScriptChunkResponse)
    async def get_script_chunk(
        start: int = Query(default=0, ge=0),
        end: Optional[int] = Query(default=None, ge=0),
        chunk_size: Optional[int] = Query(default=None, alias="chunkSize", gt=0),
    ):
        require_script()
        return script.read_chunk(
            start=start,
            end=end or None,
            chunk_size=chunk_size or settings.default_chunk_size,
        )

    @app.get("/api/script/metadata", response_model=ScriptMetadataResponse)
    async def get_script_metadata():
        metadata = script.metadata()
        if metadata is None:
            raise HTTPException(status_code=404, detail="Script file not found")
        return ScriptMetadataResponse(metadata=metadata)

    @app.get("/api/script/format", response_model=ScriptFormatResponse)
    async def get_script_format():
        require_script()
        return ScriptFormatResponse(
            structure=script.structure(),
            fileInfo=script.stats(),
            preview=script.preview(),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request, exc):
        """Custom error response format"""
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                success=False,
                error=str(exc.detail),
                detail=str(exc.detail)
            ).model_dump()
        )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    settings = app.state.settings
    uvicorn.run(app, host=settings.host, port=settings.port)
