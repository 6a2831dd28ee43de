from pydantic_settings import BaseSettings
from pydantic import Field, ConfigDict


class Settings(BaseSettings):
    query_service_url: str = Field(
        "http://localhost:8000", description="Base URL of the backend query service"
    )
    request_timeout_seconds: float = Field(30.0, description="Timeout for query service requests")
    query_execute_path: str = Field(
        "/api/v1/backend/excecute-query/{database_id}/",
        description="Query service route that runs a chart query; the spelling matches the deployed backend",
    )
    max_rows: int = Field(50000, description="Maximum allowed rows per query result")
    log_level: str = Field("INFO", description="Logging level")
    cors_allow_origins: str = Field(
        "*",
        description="CORS allow origins for the API (use '*' or a comma-separated list)",
    )
    cache_ttl_seconds: float = Field(300.0, description="Lifetime of cached query results")
    cache_max_entries: int = Field(100, description="Maximum number of cached query results")
    enable_series_pivot: bool = Field(
        False, description="Pivot category/value results into one series per category"
    )

    model_config = ConfigDict(env_prefix="CHARTPIPE_", case_sensitive=False)


settings = Settings()
