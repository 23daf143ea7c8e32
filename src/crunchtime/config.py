"""Configuration management using Pydantic settings."""

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Simulation settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="CRUNCHTIME_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # Grid
    grid_width: int = Field(20, ge=17)
    grid_height: int = Field(15, ge=12)

    # Game length and goal
    max_ticks: int = Field(200, gt=0)
    target_score: int = Field(100, gt=0)
    min_participants: int = Field(3, ge=1)

    # Per-tick event probabilities
    spawn_chance: float = Field(0.05, ge=0.0, le=1.0)
    bonus_chance: float = Field(0.02, ge=0.0, le=1.0)
    outage_chance: float = Field(0.01, ge=0.0, le=1.0)

    # Environment timings (ticks)
    consumable_lifetime: int = Field(30, gt=0)
    outage_duration: int = Field(10, gt=0)
    bonus_commits: int = Field(2, gt=0)

    # Agent behavior
    distraction_radius: int = Field(5, ge=0)
    crunch_threshold: float = Field(0.10, ge=0.0, le=1.0)
    crunch_steps: int = Field(2, ge=1)
    headphones_duration: int = Field(20, gt=0)
    pizza_distraction: int = Field(5, ge=0)
    energy_drink_distraction: int = Field(3, ge=0)

    # Force push (crunch-time commit gamble)
    force_push_chance: float = Field(0.5, ge=0.0, le=1.0)
    force_push_min: int = Field(1, ge=1)
    force_push_max: int = Field(3, ge=1)

    # Merge conflicts
    conflict_penalty: int = Field(5, gt=0)

    # Bounded log windows
    log_limit: int = Field(200, gt=0)

    @model_validator(mode="after")
    def _check_ranges(self) -> "Settings":
        if self.force_push_min > self.force_push_max:
            raise ValueError(
                f"force_push_min ({self.force_push_min}) exceeds "
                f"force_push_max ({self.force_push_max})"
            )
        return self


settings = Settings()
