"""
Configuration management with environment variable support and validation.

Design principles:
- Environment-specific configs (dev, staging, prod)
- Validation at startup (fail fast)
- Type safety with Pydantic
- Business-rule constants live here, with the documented defaults
"""

import os
from functools import lru_cache
from typing import Literal, cast

from dotenv import load_dotenv
from pydantic import BaseModel, Field, model_validator

# Load environment variables from .env file
load_dotenv()


class ClassificationConfig(BaseModel):
    """Fixed-threshold classification policy."""

    critical_low_factor: float = Field(
        default=0.7, gt=0.0, le=1.0, description="Fraction of the range minimum that is critical"
    )
    critical_high_factor: float = Field(
        default=1.3, ge=1.0, description="Multiple of the range maximum that is critical"
    )


class ScoringConfig(BaseModel):
    """Health score deductions and recency weighting."""

    base_score: int = Field(default=100, gt=0, le=100, description="Score with no abnormalities")
    abnormal_deduction: int = Field(default=5, ge=0, description="Points deducted for LOW/HIGH")
    critical_deduction: int = Field(default=15, ge=0, description="Points deducted for CRITICAL")
    recency_window_days: int = Field(
        default=90, gt=0, description="Days over which recent abnormalities weigh more"
    )
    max_recency_multiplier: float = Field(
        default=2.0, ge=1.0, description="Weight of an abnormality measured today"
    )

    @model_validator(mode="after")
    def critical_outweighs_abnormal(self) -> "ScoringConfig":
        if self.critical_deduction < self.abnormal_deduction:
            raise ValueError("critical_deduction must be at least abnormal_deduction")
        return self


class TrendConfig(BaseModel):
    """Trend detection thresholds and windows."""

    lookback_days: int = Field(default=180, gt=0, description="Long-horizon trend window")
    recent_window_days: int = Field(default=90, gt=0, description="Short-horizon trend window")
    change_threshold: float = Field(
        default=0.1, gt=0.0, description="Relative change in distance that counts as a trend"
    )
    min_data_points: int = Field(default=2, ge=2, description="Points needed for a trend")
    min_velocity_points: int = Field(default=3, ge=3, description="Points needed for a slope")
    zero_epsilon: float = Field(
        default=0.001, gt=0.0, description="Distances below this are treated as zero"
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    format: Literal["json", "console"] = Field(default="json", description="Logging format")


class AppConfig(BaseModel):
    """Main application configuration combining all subsystems."""

    # Environment
    environment: Literal["development", "staging", "production"] = Field(
        default="development", description="Environment"
    )
    debug: bool = Field(default=False, description="Enable debug mode")

    # Component configs
    classification: ClassificationConfig = Field(default_factory=ClassificationConfig)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    trend: TrendConfig = Field(default_factory=TrendConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def debug_only_in_dev(self) -> "AppConfig":
        """Ensure debug mode is only allowed in development environment."""
        if self.debug and self.environment != "development":
            raise ValueError("debug mode is only allowed in development environment")
        return self


def load_config_from_env() -> AppConfig:
    """Load configuration from environment variables with validation."""

    def _env_to_literal(val: str) -> Literal["development", "staging", "production"]:
        v = val.strip().lower()
        if v in {"dev", "development"}:
            return "development"
        if v in {"stage", "staging"}:
            return "staging"
        return "production"

    def _level_to_literal(val: str) -> Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
        v = val.strip().upper()
        return cast(
            Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
            v if v in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"} else "INFO",
        )

    # Detect environment
    environment = _env_to_literal(os.getenv("ENVIRONMENT", "development"))
    debug = environment == "development"

    classification_config = ClassificationConfig(
        critical_low_factor=float(os.getenv("CRITICAL_LOW_FACTOR", "0.7")),
        critical_high_factor=float(os.getenv("CRITICAL_HIGH_FACTOR", "1.3")),
    )

    scoring_config = ScoringConfig(
        recency_window_days=int(os.getenv("RECENCY_WINDOW_DAYS", "90")),
    )

    trend_config = TrendConfig(
        lookback_days=int(os.getenv("TREND_LOOKBACK_DAYS", "180")),
        recent_window_days=int(os.getenv("TREND_RECENT_WINDOW_DAYS", "90")),
        change_threshold=float(os.getenv("TREND_CHANGE_THRESHOLD", "0.1")),
    )

    logging_config = LoggingConfig(
        level=_level_to_literal(os.getenv("LOG_LEVEL", "INFO")),
        format="console" if debug else "json",
    )

    return AppConfig(
        environment=environment,
        debug=debug,
        classification=classification_config,
        scoring=scoring_config,
        trend=trend_config,
        logging=logging_config,
    )


@lru_cache
def get_config() -> AppConfig:
    """Get cached application configuration."""
    return load_config_from_env()


def validate_config() -> None:
    """Validate configuration at startup."""
    try:
        config = get_config()
        print(f"Configuration loaded for {config.environment} environment")
    except Exception as e:
        print(f"Configuration validation failed: {e}")
        raise


# Development helpers
def print_config_summary() -> None:
    """Print configuration summary for debugging."""
    config = get_config()

    print("\nCONFIGURATION SUMMARY")
    print(f"Environment: {config.environment}")
    print(f"Debug Mode: {config.debug}")
    print(f"Log Level: {config.logging.level}")

    print("\nCLASSIFICATION")
    print(f"Critical Low: {config.classification.critical_low_factor:.0%} of minimum")
    print(f"Critical High: {config.classification.critical_high_factor:.0%} of maximum")

    print("\nSCORING")
    print(f"Deductions: {config.scoring.abnormal_deduction} / {config.scoring.critical_deduction}")
    print(f"Recency Window: {config.scoring.recency_window_days}d")

    print("\nTRENDS")
    print(f"Lookback: {config.trend.lookback_days}d")
    print(f"Recent Window: {config.trend.recent_window_days}d")
    print(f"Change Threshold: {config.trend.change_threshold:.0%}")


if __name__ == "__main__":
    validate_config()
    print_config_summary()
