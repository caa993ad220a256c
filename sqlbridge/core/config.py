from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Optional here because the CLI can pass the URL as an argument instead
    DATABASE_URL: Optional[str] = None
    POOL_SIZE: int = 5
    MAX_OVERFLOW: int = 5
    ECHO_SQL: bool = False

    # Transport: "stdio" runs the MCP server, "rest" runs the HTTP API
    MODE: Literal["stdio", "rest"] = "stdio"
    HOST: str = "127.0.0.1"
    PORT: int = 9593

    LOG_LEVEL: str = "INFO"

    # This tells Pydantic to read from the .env file
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


# Create a single instance of the settings to use everywhere
settings = Settings()
