"""
AI Provider Settings Management

Handles loading, saving, and validation of the provider waterfall.
Settings are read from providers.yaml in the project root (or the file named
by AUTOAPPLY_PROVIDERS_FILE) and fall back to .env configuration plus the
built-in provider presets.
"""

import logging
import os
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)


def get_project_root() -> Path:
    """Get the project root directory."""
    current = Path(__file__).resolve()
    for parent in current.parents:
        if (parent / ".env").exists() or (parent / "pyproject.toml").exists():
            return parent
    return Path.cwd()


SETTINGS_FILE = get_project_root() / "providers.yaml"

SETTINGS_VERSION = 1

PURPOSE_FIELD = "field"
PURPOSE_DOCUMENT = "document"


@dataclass(frozen=True)
class ProviderDescriptor:
    """One provider/model combination in the waterfall."""
    provider_name: str
    model_id: str
    tier_rank: int
    request_timeout: float
    is_rate_limited: bool = False

    @property
    def descriptor_id(self) -> str:
        return f"{self.provider_name}:{self.model_id}"


@dataclass
class ProviderSettings:
    """Configuration for one text-generation backend."""

    name: str

    # "openai_compatible" or "huggingface"
    kind: str = "openai_compatible"

    base_url: str = ""
    api_key: Optional[str] = None

    # Environment variable holding the API key
    api_key_env: Optional[str] = None

    # Models in the order they should be tried
    models: List[str] = field(default_factory=list)

    # First tier rank used by this provider's models
    tier_offset: int = 0

    # Per-provider timeout overrides (None = waterfall default)
    field_timeout: Optional[float] = None
    document_timeout: Optional[float] = None

    headers: Dict[str, str] = field(default_factory=dict)
    enabled: bool = True

    # Models known to be throttled; tried never until removed from this list
    rate_limited_models: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProviderSettings":
        """Create from dictionary."""
        known_fields = {f.name for f in cls.__dataclass_fields__.values()}
        filtered = {k: v for k, v in data.items() if k in known_fields}
        return cls(**filtered)

    def resolve_api_key(self) -> Optional[str]:
        """API key from settings, else from the configured environment variable."""
        if self.api_key:
            return self.api_key
        if self.api_key_env:
            return os.getenv(self.api_key_env) or None
        return None

    @property
    def is_configured(self) -> bool:
        return self.enabled and bool(self.models) and bool(self.resolve_api_key())


@dataclass
class WaterfallSettings:
    """Ordered provider configuration shared by every generation call site."""

    version: int = SETTINGS_VERSION
    providers: List[ProviderSettings] = field(default_factory=list)

    # Default per-attempt timeouts (seconds)
    field_timeout: float = 10.0
    document_timeout: float = 30.0

    # Rate-limit backoff: delay = base * attempt index, capped at max
    backoff_base: float = 2.0
    backoff_max: float = 10.0

    temperature: float = 0.1

    # Chain used first by document generation, then the secondaries in order
    primary: str = "openrouter"
    secondaries: List[str] = field(default_factory=lambda: ["huggingface", "nvidia", "groq"])

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        data = asdict(self)
        data["providers"] = [p.to_dict() for p in self.providers]
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WaterfallSettings":
        """Create from dictionary."""
        known_fields = {f.name for f in cls.__dataclass_fields__.values()}
        filtered = {k: v for k, v in data.items() if k in known_fields}
        filtered["providers"] = [
            ProviderSettings.from_dict(p) for p in filtered.get("providers", []) or []
        ]
        return cls(**filtered)

    def get_provider(self, name: str) -> Optional[ProviderSettings]:
        for provider in self.providers:
            if provider.name == name:
                return provider
        return None

    def build_descriptors(
        self,
        purpose: str = PURPOSE_FIELD,
        provider_names: Optional[List[str]] = None,
    ) -> List[ProviderDescriptor]:
        """
        Expand provider settings into descriptors sorted by tier rank.

        Args:
            purpose: PURPOSE_FIELD (short timeouts) or PURPOSE_DOCUMENT
            provider_names: Restrict to these providers (default: all enabled)

        Returns:
            Descriptors in ascending tier_rank
        """
        descriptors = []
        for provider in self.providers:
            if not provider.enabled:
                continue
            if provider_names is not None and provider.name not in provider_names:
                continue

            if purpose == PURPOSE_DOCUMENT:
                timeout = provider.document_timeout or self.document_timeout
            else:
                timeout = provider.field_timeout or self.field_timeout

            for index, model in enumerate(provider.models):
                descriptors.append(ProviderDescriptor(
                    provider_name=provider.name,
                    model_id=model,
                    tier_rank=provider.tier_offset + index,
                    request_timeout=float(timeout),
                    is_rate_limited=model in provider.rate_limited_models,
                ))

        return sorted(descriptors, key=lambda d: d.tier_rank)

    def validate(self) -> Optional[str]:
        """Validate settings. Returns error message or None."""
        if self.field_timeout <= 0 or self.document_timeout <= 0:
            return "Timeouts must be positive"
        if self.backoff_base < 0 or self.backoff_max < self.backoff_base:
            return "Backoff must satisfy 0 <= backoff_base <= backoff_max"
        names = [p.name for p in self.providers]
        if len(names) != len(set(names)):
            return "Provider names must be unique"
        for name in [self.primary, *self.secondaries]:
            if name not in names:
                return f"Unknown provider in chain: {name}"
        return None


# Provider presets for the supported backends
PROVIDER_PRESETS: Dict[str, Dict[str, Any]] = {
    "openrouter": {
        "kind": "openai_compatible",
        "base_url": "https://openrouter.ai/api/v1",
        "api_key_env": "OPENROUTER_API_KEY",
        "tier_offset": 0,
        "headers": {
            "HTTP-Referer": "https://moubapply.com",
            "X-Title": "MoubApply",
        },
        "models": [
            "google/gemini-2.0-flash-exp:free",
            "meta-llama/llama-3.3-70b-instruct:free",
            "mistralai/mistral-small-3.1-24b-instruct:free",
            "deepseek/deepseek-r1-distill-llama-70b:free",
            "qwen/qwen-2.5-72b-instruct:free",
            "google/gemma-3-27b-it:free",
        ],
        "description": "OpenRouter free-tier models. Requires OPENROUTER_API_KEY.",
    },
    "huggingface": {
        "kind": "huggingface",
        "base_url": "https://api-inference.huggingface.co/models",
        "api_key_env": "HF_TOKEN",
        "tier_offset": 100,
        "models": [
            "mistralai/Mistral-7B-Instruct-v0.3",
            "meta-llama/Llama-3.2-3B-Instruct",
            "google/gemma-2-9b-it",
            "Qwen/Qwen2.5-7B-Instruct",
            "microsoft/Phi-3-mini-4k-instruct",
        ],
        "description": "Hugging Face serverless inference. Requires HF_TOKEN.",
    },
    "nvidia": {
        "kind": "openai_compatible",
        "base_url": "https://integrate.api.nvidia.com/v1",
        "api_key_env": "NVIDIA_API_KEY",
        "tier_offset": 200,
        "document_timeout": 60.0,
        "models": [
            "deepseek-ai/deepseek-r1",
            "meta/llama-3.1-405b-instruct",
            "qwen/qwen3-235b-a22b",
            "meta/llama-3.3-70b-instruct",
            "google/gemma-3-27b-it",
            "meta/llama-3.1-8b-instruct",
        ],
        "description": "NVIDIA NIM hosted models. Requires NVIDIA_API_KEY.",
    },
    "groq": {
        "kind": "openai_compatible",
        "base_url": "https://api.groq.com/openai/v1",
        "api_key_env": "GROQ_API_KEY",
        "tier_offset": 300,
        "models": [
            "llama-3.3-70b-versatile",
            "llama-3.1-8b-instant",
            "gemma2-9b-it",
        ],
        "description": "Groq LPU inference (fast). Requires GROQ_API_KEY.",
    },
}


def get_preset(preset_name: str) -> Optional[Dict[str, Any]]:
    """Get a provider preset by name."""
    return PROVIDER_PRESETS.get(preset_name)


def list_presets() -> Dict[str, Dict[str, Any]]:
    """Get all available presets."""
    return PROVIDER_PRESETS.copy()


def _env_list(name: str) -> Optional[List[str]]:
    raw = os.getenv(name)
    if not raw:
        return None
    values = [item.strip() for item in raw.split(",") if item.strip()]
    return values or None


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Ignoring invalid {name}={raw!r}")
        return default


def provider_from_preset(name: str) -> ProviderSettings:
    """Build ProviderSettings from a preset, applying <NAME>_MODELS overrides."""
    preset = PROVIDER_PRESETS[name]
    settings = ProviderSettings.from_dict({"name": name, **preset})
    settings.models = list(settings.models)
    models_override = _env_list(f"{name.upper()}_MODELS")
    if models_override:
        settings.models = models_override
    return settings


def _apply_env_overrides(settings: WaterfallSettings) -> WaterfallSettings:
    settings.field_timeout = _env_float("FIELD_REQUEST_TIMEOUT", settings.field_timeout)
    settings.document_timeout = _env_float("DOCUMENT_REQUEST_TIMEOUT", settings.document_timeout)
    settings.backoff_base = _env_float("RATE_LIMIT_BACKOFF_BASE", settings.backoff_base)
    settings.backoff_max = _env_float("RATE_LIMIT_BACKOFF_MAX", settings.backoff_max)
    return settings


def settings_file_path(path: Optional[Path] = None) -> Path:
    """`path`, else AUTOAPPLY_PROVIDERS_FILE, else providers.yaml in the project root."""
    if path:
        return Path(path)
    env_file = os.getenv("AUTOAPPLY_PROVIDERS_FILE")
    return Path(env_file) if env_file else SETTINGS_FILE


def load_waterfall_settings(path: Optional[Path] = None) -> WaterfallSettings:
    """
    Load waterfall settings from file or environment.

    Priority:
    1. `path`, AUTOAPPLY_PROVIDERS_FILE, or providers.yaml if it exists
    2. Built-in presets with environment variables (.env) as fallback

    Environment variable overrides (both sources):
    - FIELD_REQUEST_TIMEOUT / DOCUMENT_REQUEST_TIMEOUT
    - RATE_LIMIT_BACKOFF_BASE / RATE_LIMIT_BACKOFF_MAX

    Returns:
        WaterfallSettings instance
    """
    load_dotenv()

    settings_path = settings_file_path(path)

    if settings_path.exists():
        try:
            with open(settings_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
            settings = WaterfallSettings.from_dict(data)
            error = settings.validate()
            if error:
                raise ValueError(error)
            return _apply_env_overrides(settings)
        except (yaml.YAMLError, IOError, TypeError, ValueError) as e:
            logger.warning(f"Failed to load {settings_path}: {e}; using presets")

    settings = WaterfallSettings(
        providers=[provider_from_preset(name) for name in PROVIDER_PRESETS],
    )
    return _apply_env_overrides(settings)


def save_waterfall_settings(settings: WaterfallSettings, path: Optional[Path] = None) -> bool:
    """
    Save waterfall settings to a YAML file. API keys are never written.

    Returns:
        True if saved successfully, False otherwise
    """
    error = settings.validate()
    if error:
        logger.error(f"Invalid waterfall settings: {error}")
        return False

    data = settings.to_dict()
    for provider in data["providers"]:
        provider["api_key"] = None

    try:
        with open(path or SETTINGS_FILE, "w", encoding="utf-8") as f:
            yaml.safe_dump(data, f, sort_keys=False)
        return True
    except IOError as e:
        logger.error(f"Failed to save provider settings: {e}")
        return False
