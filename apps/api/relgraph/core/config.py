from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "Relationship Graph API"
    environment: str = "dev"
    api_prefix: str = "/v1"

    database_dsn: str = "sqlite:///./relgraph.db"
    db_pool_size: int = Field(default=20, ge=1, le=200)
    db_max_overflow: int = Field(default=40, ge=0, le=400)
    db_pool_timeout_seconds: int = Field(default=60, ge=1, le=600)
    db_pool_recycle_seconds: int = Field(default=1800, ge=30, le=86400)

    redis_url: str = "redis://redis:6379/0"
    queue_mode: str = "redis"
    queue_name: str = "relgraph"
    queue_job_timeout_seconds: int = Field(default=1800, ge=30, le=86400)
    queue_retry_max: int = Field(default=2, ge=0, le=10)
    queue_retry_interval_seconds: int = Field(default=60, ge=5, le=3600)

    log_level: str = "INFO"
    log_json: bool = False
    cors_allow_origins: str = "http://localhost:3000,http://127.0.0.1:3000"

    # Edge defaults
    default_edge_strength: float = Field(default=0.5, ge=0.0, le=1.0)
    default_edge_confidence: float = Field(default=0.8, ge=0.0, le=1.0)
    approved_strength_cap: float = Field(default=0.8, ge=0.0, le=1.0)

    # Network analytics. The influence divisor and diversity caps are product
    # tunables, not calibrated constants.
    analytics_staleness_hours: int = Field(default=24, ge=1, le=24 * 30)
    influence_weight_direct: float = Field(default=0.4, ge=0.0)
    influence_weight_reach: float = Field(default=0.2, ge=0.0)
    influence_weight_industry: float = Field(default=0.2, ge=0.0)
    influence_weight_geography: float = Field(default=0.1, ge=0.0)
    influence_weight_seniority: float = Field(default=0.1, ge=0.0)
    influence_normalizer: float = Field(default=10.0, gt=0.0)
    industry_diversity_cap: int = Field(default=10, ge=1)
    geographic_diversity_cap: int = Field(default=20, ge=1)
    seniority_diversity_cap: int = Field(default=15, ge=1)

    # Path search
    path_default_max_degrees: int = Field(default=3, ge=1, le=10)
    paths_default_max_degrees: int = Field(default=4, ge=1, le=8)
    paths_default_min_strength: float = Field(default=0.2, ge=0.0, le=1.0)
    paths_default_max_results: int = Field(default=3, ge=1, le=50)

    # Discovery
    discovery_min_confidence: float = Field(default=0.3, ge=0.0, le=1.0)
    discovery_persist_min_confidence: float = Field(default=0.5, ge=0.0, le=1.0)
    discovery_persist_limit: int = Field(default=10, ge=0, le=100)
    discovery_high_confidence: float = Field(default=0.7, ge=0.0, le=1.0)
    discovery_batch_size: int = Field(default=10, ge=1, le=500)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
