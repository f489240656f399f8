# imgsrc/config.py
from dataclasses import dataclass

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # img-src.io API
    IMG_SRC_API_KEY: str | None = None                # absence is reported per call, not at startup
    IMG_SRC_API_URL: str = "https://api.img-src.io"
    API_TIMEOUT_SEC: float = 30.0

    # Uploads and CDN
    MAX_IMAGE_SIZE: int = 5 * 1024 * 1024
    CDN_BASE_URL: str = "https://img-src.io"

    # HTTP MCP transport
    MCP_HTTP_HOST: str = "127.0.0.1"
    MCP_HTTP_PORT: int = 8080
    MCP_HTTP_PATH: str = "/mcp"

    # Security: Bearer token and allowed origins
    MCP_HTTP_BEARER_TOKEN: str = "change-me"         # set in .env for prod
    MCP_HTTP_ALLOWED_ORIGINS: str = "http://localhost, http://127.0.0.1"
    MCP_HTTP_ALLOW_NO_ORIGIN: bool = True            # allow non-browser clients

    # Logging
    LOG_LEVEL: str = "INFO"


@dataclass(frozen=True)
class ClientConfig:
    """
    Read-only view of the API settings, built once at startup and shared by
    every request.
    """
    base_url: str
    api_key: str | None = None
    timeout_sec: float = 30.0

    @classmethod
    def from_settings(cls, s: Settings) -> "ClientConfig":
        return cls(
            base_url=s.IMG_SRC_API_URL.rstrip("/"),
            api_key=s.IMG_SRC_API_KEY or None,
            timeout_sec=s.API_TIMEOUT_SEC,
        )
