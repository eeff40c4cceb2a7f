"""
Application Configuration using Pydantic Settings

Loads configuration from environment variables with sensible defaults.
"""

import json
from typing import Annotated, List

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # ========================================================================
    # Snowflake Connection Settings
    # ========================================================================
    SNOWFLAKE_ACCOUNT: str = "your_account.region"
    SNOWFLAKE_USER: str = "your_username"
    SNOWFLAKE_PASSWORD: str = ""
    SNOWFLAKE_WAREHOUSE: str = "COMPUTE_WH"
    SNOWFLAKE_DATABASE: str = ""
    SNOWFLAKE_SCHEMA: str = "PUBLIC"
    SNOWFLAKE_ROLE: str = ""

    # Connector-level timeouts (seconds).
    #
    # Large iteration sizes can take minutes to stream back; the network and
    # socket timeouts must stay above the slowest expected query so that we
    # record a latency instead of a client-side timeout.
    SNOWFLAKE_CONNECT_LOGIN_TIMEOUT: int = 15
    SNOWFLAKE_CONNECT_NETWORK_TIMEOUT: int = 300
    SNOWFLAKE_CONNECT_SOCKET_TIMEOUT: int = 300

    # Recycle connections after N seconds.
    SNOWFLAKE_POOL_RECYCLE: int = 3600

    # ========================================================================
    # Postgres Connection Settings
    # ========================================================================
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_DATABASE: str = "postgres"
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = ""

    # Per-statement timeout (seconds).
    POSTGRES_COMMAND_TIMEOUT: float = 300.0

    # ========================================================================
    # Query Templates
    # ========================================================================
    # The row bound is substituted for `{rowCount}` or `@rowCount`.
    POSTGRES_QUERY: str = "SELECT * FROM benchmark_data LIMIT {rowCount}"
    SNOWFLAKE_QUERY: str = "SELECT * FROM BENCHMARK_DATA LIMIT {rowCount}"

    # ========================================================================
    # Test Configuration
    # ========================================================================
    # Accepts a JSON list or a comma-separated string ("10,100,1000").
    ITERATION_SIZES: Annotated[List[int], NoDecode] = [10, 100, 1000, 10000]
    RUNS_PER_ITERATION: int = 5

    @field_validator("ITERATION_SIZES", mode="before")
    @classmethod
    def _parse_iteration_sizes(cls, v):
        if isinstance(v, str):
            text = v.strip()
            if text.startswith("["):
                return json.loads(text)
            return [int(part) for part in text.split(",") if part.strip()]
        return v

    # ========================================================================
    # Output Settings
    # ========================================================================
    CSV_REPORT_PATH: str = "./results/results.csv"
    STATISTICS_CSV_REPORT_PATH: str = "./results/statistics.csv"
    JSON_REPORT_PATH: str = "./results/results.json"

    # ========================================================================
    # Logging Settings
    # ========================================================================
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # ========================================================================
    # Feature Flags
    # ========================================================================
    ENABLE_POSTGRES: bool = True
    ENABLE_SNOWFLAKE: bool = True


# Create global settings instance
settings = Settings()
