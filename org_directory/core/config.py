from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Graph endpoint
    GRAPH_BASE_URL: str = "https://graph.microsoft.com"
    GRAPH_API_VERSION: str = "v1.0"
    GRAPH_ACCESS_TOKEN: str | None = None  # Authorization: Bearer
    HTTP_TIMEOUT: float = 30.0

    # Batching / traversal
    BATCH_MAX_SIZE: int = 20
    BATCH_DEBOUNCE_SECONDS: float = 0.0
    MANAGER_CHAIN_MAX_DEPTH: int = 15

    # HTTP wrapper
    HTTP_HOST: str = "0.0.0.0"
    HTTP_PORT: int = 8002
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    @property
    def graph_root_url(self) -> str:
        return f"{self.GRAPH_BASE_URL.rstrip('/')}/{self.GRAPH_API_VERSION}"


settings = Settings()
