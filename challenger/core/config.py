"""
Application settings management.

Settings are loaded from environment variables with .env file support.
Challenge behaviour (phase thresholds, intensity model, insight caps) is
loaded from config/challenge_config.yaml. All configuration is validated
using Pydantic.
"""

from pathlib import Path
from typing import List, Literal, Optional

import yaml
from pydantic import BaseModel, Field, field_validator, ValidationInfo
from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    """
    Application settings loaded from environment.

    Environment variables take precedence over .env file values.
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # ==========================================================================
    # Paths
    # ==========================================================================

    config_dir: Path = Field(
        default=PROJECT_ROOT / "config",
        description="Directory containing YAML configuration files",
    )
    logs_dir: Path = Field(
        default=Path("logs"), description="Directory for session log files"
    )
    log_sessions_to_keep: int = Field(
        default=5, ge=1, le=100, description="Number of recent log files to retain"
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", description="Minimum level for application log events"
    )

    # ==========================================================================
    # Completion Service
    # ==========================================================================
    #
    # completion_mode=llm calls the configured provider over HTTP.
    # completion_mode=scripted uses canned per-phase replies (no network).

    completion_mode: Literal["llm", "scripted"] = Field(
        default="llm", description="Completion backend: llm or scripted"
    )
    llm_provider: Literal["openai", "anthropic"] = Field(
        default="openai", description="LLM provider for challenger replies"
    )
    llm_model: Optional[str] = Field(
        default=None,
        description="Override model ID (defaults defined in challenger/llm/client.py)",
    )
    llm_temperature: float = Field(
        default=0.8, ge=0.0, le=2.0, description="Sampling temperature"
    )
    llm_max_tokens: int = Field(
        default=500, ge=1, le=8192, description="Max tokens per reply"
    )
    llm_timeout: float = Field(
        default=30.0, gt=0, description="LLM request timeout in seconds"
    )

    # API Keys (required for providers you use)
    openai_api_key: Optional[str] = Field(default=None, description="OpenAI API key")
    anthropic_api_key: Optional[str] = Field(
        default=None, description="Anthropic API key"
    )

    # ==========================================================================
    # Voice Service (ElevenLabs)
    # ==========================================================================

    voice_enabled: bool = Field(
        default=False, description="Synthesize challenger replies to speech"
    )
    elevenlabs_api_key: Optional[str] = Field(
        default=None, description="ElevenLabs API key"
    )
    elevenlabs_voice_id: str = Field(
        default="pNInz6obpgDQGcFmaJgB", description="ElevenLabs voice ID"
    )
    elevenlabs_model_id: str = Field(
        default="eleven_multilingual_v2", description="ElevenLabs TTS model"
    )
    elevenlabs_stt_model_id: str = Field(
        default="scribe_v1", description="ElevenLabs speech-to-text model"
    )
    voice_timeout: float = Field(
        default=20.0, gt=0, description="Voice request timeout in seconds"
    )

    # ==========================================================================
    # Server Configuration
    # ==========================================================================

    host: str = Field(default="127.0.0.1", description="Server host address")
    port: int = Field(default=5001, ge=1, le=65535, description="Server port")
    debug: bool = Field(default=False, description="Enable debug mode")

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v):
        return v.upper() if isinstance(v, str) else v


# ============================================================================
# Challenge Configuration (from YAML)
# ============================================================================


class PhaseConfig(BaseModel):
    """Configuration for a single challenge phase.

    A phase closes once the number of turns tagged with it (both speakers)
    reaches turn_threshold.
    """

    turn_threshold: int = Field(
        default=4, ge=1, le=50, description="Tagged turns before the phase closes"
    )


class PhasesConfig(BaseModel):
    """Thresholds for every non-terminal phase."""

    provocation: PhaseConfig = Field(default_factory=PhaseConfig)
    deep_dive: PhaseConfig = Field(default_factory=PhaseConfig)
    synthesis: PhaseConfig = Field(default_factory=PhaseConfig)


class IntensityConfig(BaseModel):
    """Challenge intensity model."""

    initial: float = Field(default=0.7, ge=0.0, le=1.0)
    minimum: float = Field(default=0.3, ge=0.0, le=1.0)
    maximum: float = Field(default=1.0, ge=0.0, le=1.0)
    engagement_step: float = Field(default=0.1, gt=0.0, le=1.0)
    feedback_step: float = Field(default=0.2, gt=0.0, le=1.0)
    escalation_threshold: float = Field(
        default=0.8, ge=0.0, le=1.0, description="Escalate when intensity exceeds this"
    )
    escalation_suffix: str = Field(default="Try again.")
    engagement_markers: List[str] = Field(
        default_factory=lambda: ["specific", "numbers", "data", "metrics", "concrete"]
    )

    @field_validator("initial")
    @classmethod
    def initial_within_bounds(cls, v: float, info: ValidationInfo) -> float:
        """Clamp the initial intensity into [minimum, maximum]."""
        minimum = info.data.get("minimum", 0.3)
        maximum = info.data.get("maximum", 1.0)
        return min(max(v, minimum), maximum)


class SessionConfig(BaseModel):
    """Conversation session configuration."""

    context_turn_limit: int = Field(
        default=6,
        ge=1,
        le=50,
        description="Recent turns passed to the Completion Service",
    )
    idle_timeout_seconds: Optional[float] = Field(
        default=1800.0,
        gt=0,
        description="Idle time after which the registry evicts a session (None disables)",
    )


class InsightsConfig(BaseModel):
    """Caps applied by the insight extractor."""

    max_challenged_assumptions: int = Field(default=5, ge=1)
    max_key_decisions: int = Field(default=3, ge=1)
    max_next_steps: int = Field(default=3, ge=1)
    max_risk_factors: int = Field(default=3, ge=1)


class ChallengeConfig(BaseModel):
    """
    Complete challenge configuration loaded from challenge_config.yaml.
    """

    phases: PhasesConfig = Field(default_factory=PhasesConfig)
    intensity: IntensityConfig = Field(default_factory=IntensityConfig)
    session: SessionConfig = Field(default_factory=SessionConfig)
    insights: InsightsConfig = Field(default_factory=InsightsConfig)


def load_challenge_config(config_path: Optional[Path] = None) -> ChallengeConfig:
    """
    Load challenge configuration from YAML file.

    Args:
        config_path: Path to challenge_config.yaml. If None, looks in the
            project config/ directory, then in ./config.

    Returns:
        ChallengeConfig with validated settings (defaults if no file is found)

    Raises:
        pydantic.ValidationError: If the file content fails validation
    """
    if config_path is None:
        candidates = [
            PROJECT_ROOT / "config" / "challenge_config.yaml",
            Path.cwd() / "config" / "challenge_config.yaml",
        ]
        config_path = next((p for p in candidates if p.exists()), None)
        if config_path is None:
            return ChallengeConfig()

    config_path = Path(config_path).resolve()

    if not config_path.exists():
        return ChallengeConfig()

    with open(config_path) as f:
        config_data = yaml.safe_load(f)

    if not config_data:
        return ChallengeConfig()

    return ChallengeConfig(**config_data)


# Global settings instance
settings = Settings()

# Global challenge config instance
challenge_config = load_challenge_config()
