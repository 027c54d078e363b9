"""
Server configuration.

Values come from the command line or from environment variables; the
resulting ServerConfig is frozen and shared read-only by every connection.
"""

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .auth import Authorizer, BasicAuth
from .mime import MimeResolver
from .paths import canonical_root

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8080


class ServerConfig(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    host: str = DEFAULT_HOST
    port: int = Field(DEFAULT_PORT, ge=0, le=65535)
    root: Path
    script_prefix: str = "/scripts"
    read_buffer: int = Field(8192, gt=0)
    read_timeout: Optional[float] = 10.0
    script_timeout: Optional[float] = 30.0
    mime: MimeResolver = Field(default_factory=MimeResolver)
    authorizer: Optional[Authorizer] = None
    auth_realm: str = "scriptserve"

    @field_validator("root", mode="before")
    @classmethod
    def _canonical_root(cls, value):
        return canonical_root(value)

    @property
    def scripts_dir(self) -> Path:
        return self.root / self.script_prefix.strip("/")

    @property
    def script_env(self) -> dict:
        """Base environment handed to scripts before request variables."""
        return {"PATH": os.environ.get("PATH", os.defpath)}


def _optional_float(name: str, default: Optional[float]) -> Optional[float]:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    value = float(raw)
    return value if value > 0 else None


def config_from_env(**overrides) -> ServerConfig:
    settings = {
        "host": os.getenv("HOST", DEFAULT_HOST),
        "port": int(os.getenv("PORT", str(DEFAULT_PORT))),
        "root": os.getenv("ROOT", "."),
        "script_prefix": os.getenv("SCRIPT_PREFIX", "/scripts"),
        "read_buffer": int(os.getenv("READ_BUFFER", "8192")),
        "read_timeout": _optional_float("READ_TIMEOUT", 10.0),
        "script_timeout": _optional_float("SCRIPT_TIMEOUT", 30.0),
        "auth_realm": os.getenv("AUTH_REALM", "scriptserve"),
    }
    user = os.getenv("AUTH_USER")
    if user:
        settings["authorizer"] = BasicAuth(user, os.getenv("AUTH_PASSWORD", ""))
    settings.update(overrides)
    return ServerConfig(**settings)
