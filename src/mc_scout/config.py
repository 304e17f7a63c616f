"""Runtime configuration for MC Scout."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-driven runtime settings."""

    model_config = SettingsConfigDict(env_prefix="MC_SCOUT_", env_file=".env", extra="ignore")

    app_name: str = "mc-scout"
    log_level: str = "INFO"
    data_dir: str = Field(default=".mc_scout", description="Directory holding the JSON state documents.")
    sampler_backend: str = Field(default="demo", description="World sampler backend: demo or minescript.")
    demo_seed: int = 0
    travel_speed: float = Field(default=4.3, gt=0, description="Baseline travel speed in blocks per second.")
    prune_tolerance: float = Field(default=0.10, ge=0)
    task_expiry_seconds: int = Field(default=3600, gt=0)
    danger_report_level: int = Field(default=3, ge=0, le=10)
    auto_waypoint_min_value: int = Field(
        default=0,
        ge=0,
        description="Promote discovered resources worth at least this much to waypoints; 0 disables.",
    )
    scan_workers: int = Field(default=2, ge=1)
    scan_history_path: str | None = None


settings = Settings()
