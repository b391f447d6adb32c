"""
Service configuration from environment variables
"""
import os
from pathlib import Path
from typing import List

from dotenv import load_dotenv
from pydantic import BaseModel, Field

# Load environment variables
load_dotenv()


class Settings(BaseModel):
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"

    # File exposed by the /api/script endpoints
    script_path: Path = Path("E_4.cs")
    index_html_path: Path = Path("index.html")

    max_upload_size: int = Field(default=50 * 1024 * 1024, gt=0)  # 50 MB
    default_chunk_size: int = Field(default=100000, gt=0)
    glb_filename: str = "model.glb"
    cors_origins: List[str] = ["*"]


def load_settings() -> Settings:
    """Build Settings from the environment (and .env)"""
    env = {
        "host": os.getenv("HOST"),
        "port": os.getenv("PORT"),
        "log_level": os.getenv("LOG_LEVEL"),
        "script_path": os.getenv("SCRIPT_PATH"),
        "index_html_path": os.getenv("INDEX_HTML_PATH"),
        "max_upload_size": os.getenv("MAX_UPLOAD_SIZE"),
        "default_chunk_size": os.getenv("DEFAULT_CHUNK_SIZE"),
        "glb_filename": os.getenv("GLB_FILENAME"),
    }
    origins = os.getenv("CORS_ORIGINS")
    if origins:
        env["cors_origins"] = [o.strip() for o in origins.split(",") if o.strip()]

    return Settings(**{key: value for key, value in env.items() if value is not None})
