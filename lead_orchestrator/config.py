"""
Centralized configuration with environment variable overrides.

Business facts, model choices, inference deadlines, transport credentials
and sandbox flags are all configurable here. Nothing deployment-specific is
hardcoded in the orchestration logic.
"""

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from lead_orchestrator.logging_context import install_sender_filter

load_dotenv()

logger = logging.getLogger(__name__)

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_float(env_var: str, default: str) -> float:
    """Parse a float from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return float(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid float for {env_var}: {raw!r}"
        ) from None


def _safe_bool(env_var: str, default: str) -> bool:
    """Parse a boolean flag from an env var (true/false, 1/0, yes/no, on/off)."""
    raw = os.getenv(env_var, default).strip().lower()
    if raw in _TRUE_VALUES:
        return True
    if raw in _FALSE_VALUES:
        return False
    raise ValueError(f"Invalid boolean for {env_var}: {raw!r}")


@dataclass(frozen=True)
class BusinessConfig:
    """Static business facts given to the inference provider and used in replies."""

    name: str = os.getenv("BUSINESS_NAME", "Cortinas Argentinas")
    assistant_name: str = os.getenv("ASSISTANT_NAME", "Caia")
    address: str = os.getenv(
        "BUSINESS_ADDRESS", "Bv. Avellaneda Bis 235, S2000 Rosario, Santa Fe"
    )
    hours: str = os.getenv("BUSINESS_HOURS", "8 a 17 hs")
    payment_methods: str = os.getenv("PAYMENT_METHODS", "Todos")
    delivery_times: str = os.getenv(
        "DELIVERY_TIMES", "entre 7 y 21 días dependiendo el tipo de trabajo"
    )
    products: str = os.getenv(
        "PRODUCTS", "Roller, textiles, bandas verticales, toldos y cerramientos"
    )


@dataclass(frozen=True)
class ModelConfig:
    """Inference provider credentials and model variants."""

    api_key: str = os.getenv("OPENAI_API_KEY", "")
    primary_model: str = os.getenv("PRIMARY_MODEL", "gpt-4o-mini")
    fallback_model: str = os.getenv("FALLBACK_MODEL", "gpt-4.1-nano")
    llm_temperature: float = _safe_float("LLM_TEMPERATURE", "0.3")


@dataclass(frozen=True)
class ResilienceConfig:
    """Deadlines and backoff for the decision executor."""

    primary_timeout_sec: float = _safe_float("PRIMARY_TIMEOUT_SEC", "9.0")
    retry_timeout_sec: float = _safe_float("RETRY_TIMEOUT_SEC", "4.0")
    retry_backoff_sec: float = _safe_float("RETRY_BACKOFF_SEC", "0.5")
    history_window: int = _safe_int("HISTORY_WINDOW", "10")


@dataclass(frozen=True)
class TransportConfig:
    """Carrier credentials, operator destination and sandbox flags."""

    twilio_account_sid: str = os.getenv("TWILIO_ACCOUNT_SID", "")
    twilio_auth_token: str = os.getenv("TWILIO_AUTH_TOKEN", "")
    twilio_from: str = os.getenv("TWILIO_FROM", "whatsapp:+14155238886")
    handoff_to: str = os.getenv("HANDOFF_TO", "")
    dev_mode: bool = _safe_bool("DEV_MODE", "true")
    reply_to_lead_in_dev: bool = _safe_bool("REPLY_TO_LEAD_IN_DEV", "false")
    fast_ack: bool = _safe_bool("FAST_ACK", "true")
    send_timeout_sec: float = _safe_float("SEND_TIMEOUT_SEC", "15.0")


@dataclass(frozen=True)
class StorageConfig:
    """Where transcripts and handoff snapshots are written."""

    conversations_dir: str = os.getenv("CONVERSATIONS_DIR", "conversations")
    leads_dir: str = os.getenv("LEADS_DIR", "leads")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    business: BusinessConfig = field(default_factory=BusinessConfig)
    model: ModelConfig = field(default_factory=ModelConfig)
    resilience: ResilienceConfig = field(default_factory=ResilienceConfig)
    transport: TransportConfig = field(default_factory=TransportConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    debug_token: str = os.getenv("DEBUG_TOKEN", "")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    port: int = _safe_int("PORT", "3000")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    if not 0.0 <= config.model.llm_temperature <= 2.0:
        raise ValueError(
            f"LLM_TEMPERATURE must be between 0.0 and 2.0, got {config.model.llm_temperature}"
        )

    resilience = config.resilience
    if resilience.primary_timeout_sec <= 0:
        raise ValueError(
            f"PRIMARY_TIMEOUT_SEC must be > 0, got {resilience.primary_timeout_sec}"
        )
    if resilience.retry_timeout_sec <= 0:
        raise ValueError(
            f"RETRY_TIMEOUT_SEC must be > 0, got {resilience.retry_timeout_sec}"
        )
    if resilience.retry_timeout_sec >= resilience.primary_timeout_sec:
        raise ValueError(
            "RETRY_TIMEOUT_SEC must be shorter than PRIMARY_TIMEOUT_SEC, "
            f"got {resilience.retry_timeout_sec} >= {resilience.primary_timeout_sec}"
        )
    if resilience.retry_backoff_sec < 0:
        raise ValueError(
            f"RETRY_BACKOFF_SEC must be >= 0, got {resilience.retry_backoff_sec}"
        )
    if resilience.history_window < 1:
        raise ValueError(
            f"HISTORY_WINDOW must be >= 1, got {resilience.history_window}"
        )

    if config.transport.send_timeout_sec <= 0:
        raise ValueError(
            f"SEND_TIMEOUT_SEC must be > 0, got {config.transport.send_timeout_sec}"
        )
    if not 1 <= config.port <= 65535:
        raise ValueError(f"PORT must be between 1 and 65535, got {config.port}")


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s [%(sender_id)s]: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    for handler in logging.getLogger().handlers:
        install_sender_filter(handler)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logger.info(
        "Configuration loaded for '%s' (dev_mode=%s, fast_ack=%s)",
        config.business.name,
        config.transport.dev_mode,
        config.transport.fast_ack,
    )
    return config


# Singleton instance
settings = load_config()
