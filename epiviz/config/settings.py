from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    max_rows: int = Field(50000, description="Maximum allowed rows per uploaded line list")
    max_columns: int = Field(200, description="Maximum allowed columns per uploaded line list")
    date_padding_days: int = Field(
        5, description="Days added before the first / after the last date when start/stop are omitted"
    )
    log_level: str = Field("INFO", description="Logging level")
    cors_allow_origins: str = Field(
        "*",
        description="CORS allow origins for the API (use '*' or a comma-separated list)",
    )

    model_config = SettingsConfigDict(env_prefix="EPIVIZ_", case_sensitive=False)


settings = Settings()
