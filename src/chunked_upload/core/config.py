"""Settings for uploads, loadable from ``CHUNKED_UPLOAD_*`` environment variables."""

import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from .exceptions import ConfigurationError
from .planner import CHUNK_SIZE

ENV_PREFIX = "CHUNKED_UPLOAD_"
DEFAULT_STATE_PATH = Path("~/.chunked_upload/progress.json")


class UploadSettings(BaseModel):
    """Validated upload settings."""

    endpoint_url: Optional[str] = Field(
        None,
        description="URL that receives the chunks",
        examples=["https://uploads.example.com/chunks"],
    )
    chunk_size: int = Field(
        CHUNK_SIZE,
        ge=1,
        description="Chunk size in bytes",
    )
    max_concurrent: int = Field(
        3,
        ge=1,
        description="Number of chunks in flight at once",
    )
    retry_times: int = Field(
        0,
        ge=0,
        description="Extra attempts per chunk after the first failure",
    )
    retry_backoff: float = Field(
        0.0,
        ge=0,
        description="Base delay in seconds between attempts, doubled each retry",
    )
    request_timeout: float = Field(
        60.0,
        gt=0,
        description="Per-request timeout in seconds",
    )
    state_path: Path = Field(
        DEFAULT_STATE_PATH,
        validate_default=True,
        description="JSON file holding the completed chunks of every session",
    )

    @field_validator("endpoint_url")
    @classmethod
    def validate_endpoint_url(cls, v: Optional[str]) -> Optional[str]:
        """Validate endpoint URL scheme."""
        if v is not None and not v.startswith(("http://", "https://")):
            raise ValueError("endpoint_url must start with http:// or https://")
        return v

    @field_validator("state_path")
    @classmethod
    def expand_state_path(cls, v: Path) -> Path:
        return v.expanduser()

    @classmethod
    def build(cls, **values: Any) -> "UploadSettings":
        """Create settings, turning validation errors into ConfigurationError."""
        try:
            return cls(**{k: v for k, v in values.items() if v is not None})
        except ValidationError as e:
            first = e.errors()[0]
            field = ".".join(str(part) for part in first.get("loc", ()))
            raise ConfigurationError(
                f"Invalid setting {field}: {first.get('msg')}", field or None
            ) from e

    @classmethod
    def from_env(
        cls, environ: Optional[Mapping[str, str]] = None, **overrides: Any
    ) -> "UploadSettings":
        """Read settings from the environment; explicit overrides win."""
        environ = os.environ if environ is None else environ
        values: Dict[str, Any] = {}
        for name in cls.model_fields:
            raw = environ.get(f"{ENV_PREFIX}{name.upper()}")
            if raw not in (None, ""):
                values[name] = raw
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls.build(**values)
