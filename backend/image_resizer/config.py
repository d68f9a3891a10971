"""
Resizer Configuration

Service configuration is read from a JSON file (path in RESIZER_CONFIG);
deployment knobs for the cache and HTTP client come from the environment.

Example config.json:
    {
        "port": 8080,
        "image_host": "https://images.example.com/",
        "host_white_list": ["images.example.com"],
        "size_limits": {"width": 2000, "height": 2000},
        "placeholders": [{"name": "thumb", "size": {"width": 150, "height": 150}}],
        "warmup_sizes": [{"width": 200, "height": 200}],
        "cache_thumbnails": true
    }
"""

import json
import logging
import os
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field

from .sizing import SizeSpec

logger = logging.getLogger(__name__)

# ============================================
# Environment
# ============================================

CONFIG_PATH = os.getenv("RESIZER_CONFIG", "config.json")
CACHE_PATH = os.getenv("RESIZER_CACHE_PATH", "./image_cache")
LRU_MAX_ENTRIES = int(os.getenv("RESIZER_LRU_MAX_ENTRIES", "256"))
FETCH_TIMEOUT_SECONDS = float(os.getenv("RESIZER_FETCH_TIMEOUT", "10"))
WARMUP_CONCURRENCY = int(os.getenv("RESIZER_WARMUP_CONCURRENCY", "4"))
LOG_LEVEL = os.getenv("RESIZER_LOG_LEVEL", "INFO")


class Placeholder(BaseModel):
    """A named size usable in place of a WIDTHxHEIGHT descriptor."""
    name: str
    size: SizeSpec


class Configuration(BaseModel):
    """Read-only service configuration."""
    port: int = Field(8080, ge=1, le=65535)
    image_host: str = Field(..., description="Prefix prepended to the requested path")
    host_white_list: List[str] = Field(default_factory=list)
    size_limits: SizeSpec = Field(default_factory=lambda: SizeSpec(width=2000, height=2000))
    placeholders: List[Placeholder] = Field(default_factory=list)
    warmup_sizes: List[SizeSpec] = Field(default_factory=list)
    cache_thumbnails: bool = True


def load_config(path: Optional[str] = None) -> Configuration:
    """
    Load configuration from a JSON file.

    Raises:
        FileNotFoundError: the file does not exist
        pydantic.ValidationError: the file content is invalid
    """
    config_file = Path(path or CONFIG_PATH)
    with open(config_file, "r", encoding="utf-8") as f:
        data = json.load(f)
    config = Configuration.model_validate(data)
    logger.info(f"[Resizer] Loaded configuration from {config_file}")
    return config
