"""
Runtime settings using Pydantic.

Settings can be overridden via environment variables prefixed with
TENSOR_LOGIC_, for example TENSOR_LOGIC_TOP_K=20.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import (
    DEFAULT_TEMPERATURE,
    MAX_BATCH,
    MAX_RULES,
    PREMISE_MATCH_THRESHOLD,
    SATISFACTION_THRESHOLD,
    TOP_K,
    TRAIN_MAX_STEPS,
    UNIFY_THRESHOLD,
)


class Settings(BaseSettings):
    """Tunable engine parameters with environment variable support."""

    model_config = SettingsConfigDict(
        env_prefix="TENSOR_LOGIC_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Retrieval
    top_k: int = Field(
        default=TOP_K,
        description="Number of atoms retrieved as the relevant set",
        ge=1,
    )

    recompute_attention: bool = Field(
        default=False,
        description="Recompute store attention before every inference step",
    )

    # Thresholds
    premise_match_threshold: float = Field(
        default=PREMISE_MATCH_THRESHOLD,
        description="Minimum similarity for a premise to be matched",
        ge=-1.0,
        le=1.0,
    )

    satisfaction_threshold: float = Field(
        default=SATISFACTION_THRESHOLD,
        description="Query/conclusion similarity that ends inference",
        ge=-1.0,
        le=1.0,
    )

    unify_threshold: float = Field(
        default=UNIFY_THRESHOLD,
        description="Minimum similarity for structural unification",
        ge=-1.0,
        le=1.0,
    )

    # Attention
    temperature: float = Field(
        default=DEFAULT_TEMPERATURE,
        description="Softmax temperature of the learned attention",
        gt=0.0,
    )

    max_batch: int = Field(
        default=MAX_BATCH,
        description="Largest batch accepted by the attention transform",
        ge=1,
    )

    # Rules and training
    max_rules: int = Field(
        default=MAX_RULES,
        description="Maximum number of rules per engine",
        ge=1,
    )

    train_max_steps: int = Field(
        default=TRAIN_MAX_STEPS,
        description="Inference depth used by a training step",
        ge=1,
    )

    # Runtime
    debug: bool = Field(
        default=False,
        description="Enable debug logging in scripts",
    )


# Global settings instance (engines accept an explicit override)
settings = Settings()
