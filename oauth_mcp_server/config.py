from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    JWT_SECRET: str
    SERVER_URI: Optional[str] = None
    TOKEN_AUDIENCE: str = "mcp-server"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    AUTH_CODE_EXPIRE_MINUTES: int = 10
    DEFAULT_SCOPE: str = "mcp"
    SCOPES_SUPPORTED: List[str] = ["mcp"]
    PROTOCOL_VERSION_PREFIXES: List[str] = ["2024-"]
    SERVER_NAME: str = "oauth-mcp-server"
    SERVER_VERSION: str = "1.0.0"
    CORS_ORIGINS: List[str] = ["*"]
    SSE_KEEPALIVE_SECONDS: float = 30.0
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
