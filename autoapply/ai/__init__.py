"""
AI Provider Module

Provides text-generation adapters and the provider waterfall that walks them
in tier order. Supports OpenAI-compatible APIs (OpenRouter, NVIDIA NIM, Groq)
and Hugging Face serverless inference.

Usage:
    from autoapply.ai import get_waterfall

    waterfall = get_waterfall("field")
    answer = await waterfall.generate("Are you over 18?", 100, ["Yes", "No"])
"""

import hashlib
import json
import logging
import os
import threading
from typing import Dict, List, Optional, Sequence

from .errors import (
    ProviderError,
    ProviderNetworkError,
    ProviderTimeoutError,
    ProviderRateLimitedError,
    ProviderHTTPError,
    InvalidContentError,
    ProviderNotConfiguredError,
    GenerationCancelledError,
    GenerationExhaustedError,
)
from .provider import TextProvider, ConnectionTestResult
from .settings import (
    ProviderDescriptor,
    ProviderSettings,
    WaterfallSettings,
    PURPOSE_FIELD,
    PURPOSE_DOCUMENT,
    PROVIDER_PRESETS,
    get_preset,
    list_presets,
    load_waterfall_settings,
    save_waterfall_settings,
    settings_file_path,
)
from .openai_provider import OpenAICompatibleProvider, HuggingFaceProvider
from .waterfall import (
    AttemptOutcome,
    AttemptRecord,
    GeneratedPayload,
    ProviderWaterfall,
    WaterfallReport,
    match_constraint,
)

logger = logging.getLogger(__name__)


# Cached waterfall instances with thread safety
_waterfall_lock = threading.Lock()
_waterfall_cache: Dict[str, object] = {}
_waterfall_settings: Optional[WaterfallSettings] = None
_waterfall_fingerprint: Optional[str] = None

# Environment variables that change the settings regardless of provider
_WATCHED_ENV = (
    "AUTOAPPLY_PROVIDERS_FILE",
    "FIELD_REQUEST_TIMEOUT",
    "DOCUMENT_REQUEST_TIMEOUT",
    "RATE_LIMIT_BACKOFF_BASE",
    "RATE_LIMIT_BACKOFF_MAX",
)


def _watched_env(settings: Optional[WaterfallSettings]) -> List[str]:
    """Env names the settings depend on: globals plus each provider's key and model list."""
    if settings is not None:
        providers = [(p.name, p.api_key_env) for p in settings.providers]
    else:
        providers = [(name, preset.get("api_key_env")) for name, preset in PROVIDER_PRESETS.items()]

    names = list(_WATCHED_ENV)
    for name, key_env in providers:
        names.append(f"{name.upper()}_MODELS")
        if key_env:
            names.append(key_env)
    return names


def _settings_fingerprint(settings: Optional[WaterfallSettings]) -> str:
    """
    Cheap cache key: settings file mtime plus the watched environment.

    Stats the settings file only. Key values are hashed, never kept.
    """
    path = settings_file_path()
    try:
        mtime = path.stat().st_mtime_ns
    except OSError:
        mtime = None
    env = [os.getenv(name) or "" for name in _watched_env(settings)]
    raw = json.dumps([str(path), mtime, env])
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


def create_provider(settings: ProviderSettings) -> TextProvider:
    """
    Create a provider adapter from its settings.

    Raises:
        ProviderNotConfiguredError: no API key is available
        ValueError: unknown adapter kind
    """
    if not settings.resolve_api_key():
        raise ProviderNotConfiguredError(
            f"{settings.api_key_env or 'api_key'} not set", provider=settings.name
        )

    if settings.kind == "openai_compatible":
        return OpenAICompatibleProvider(settings)
    elif settings.kind == "huggingface":
        return HuggingFaceProvider(settings)
    else:
        raise ValueError(f"Unknown provider kind: {settings.kind}")


def create_waterfall(
    purpose: str = PURPOSE_FIELD,
    settings: Optional[WaterfallSettings] = None,
    provider_names: Optional[Sequence[str]] = None,
) -> ProviderWaterfall:
    """
    Build a waterfall from settings.

    Args:
        purpose: PURPOSE_FIELD merges every provider by tier with short
            timeouts; PURPOSE_DOCUMENT uses the primary chain with long timeouts
        settings: WaterfallSettings to use, or None to load from file/env
        provider_names: Explicit provider chain, overriding the purpose default

    Returns:
        ProviderWaterfall (possibly empty when no provider is configured)
    """
    if settings is None:
        settings = load_waterfall_settings()

    if provider_names is None and purpose == PURPOSE_DOCUMENT:
        provider_names = [settings.primary]

    clients: Dict[str, TextProvider] = {}
    for provider in settings.providers:
        if not provider.enabled:
            continue
        if provider_names is not None and provider.name not in provider_names:
            continue
        try:
            clients[provider.name] = create_provider(provider)
        except ProviderNotConfiguredError as e:
            logger.warning(f"Skipping provider {provider.name}: {e}")

    descriptors = [
        d for d in settings.build_descriptors(purpose, list(provider_names) if provider_names else None)
        if d.provider_name in clients
    ]
    if not descriptors:
        logger.warning(f"No configured providers for {purpose} waterfall")

    label = "+".join(provider_names) if provider_names else "all"
    return ProviderWaterfall(
        descriptors,
        clients,
        backoff_base=settings.backoff_base,
        backoff_max=settings.backoff_max,
        temperature=settings.temperature,
        name=f"{purpose}:{label}",
    )


def create_secondary_waterfalls(
    settings: Optional[WaterfallSettings] = None,
) -> List[ProviderWaterfall]:
    """One document waterfall per secondary provider, in configured order (max three)."""
    if settings is None:
        settings = load_waterfall_settings()
    return [
        create_waterfall(PURPOSE_DOCUMENT, settings, provider_names=[name])
        for name in settings.secondaries[:3]
    ]


def get_waterfall(purpose: str = PURPOSE_FIELD, force_reload: bool = False) -> ProviderWaterfall:
    """
    Get the shared waterfall for a purpose.

    Uses a cached instance unless force_reload is True or settings have changed.
    Thread-safe.
    """
    return _cached(purpose, lambda settings: create_waterfall(purpose, settings), force_reload)


def get_secondary_waterfalls(force_reload: bool = False) -> List[ProviderWaterfall]:
    """Get the shared secondary document waterfalls."""
    return _cached("secondary", create_secondary_waterfalls, force_reload)


def _cached(key: str, factory, force_reload: bool):
    global _waterfall_settings, _waterfall_fingerprint

    with _waterfall_lock:
        fingerprint = _settings_fingerprint(_waterfall_settings)

        if force_reload or _waterfall_settings is None or fingerprint != _waterfall_fingerprint:
            _waterfall_settings = load_waterfall_settings()
            new_fingerprint = _settings_fingerprint(_waterfall_settings)
            if new_fingerprint != _waterfall_fingerprint:
                _waterfall_cache.clear()
                _waterfall_fingerprint = new_fingerprint
                logger.debug("Provider settings changed; rebuilding waterfalls")

        if force_reload or key not in _waterfall_cache:
            _waterfall_cache[key] = factory(_waterfall_settings)

        return _waterfall_cache[key]


def clear_provider_cache():
    """Clear the cached waterfall instances and settings."""
    global _waterfall_settings, _waterfall_fingerprint
    with _waterfall_lock:
        _waterfall_cache.clear()
        _waterfall_settings = None
        _waterfall_fingerprint = None


__all__ = [
    # Errors
    "ProviderError",
    "ProviderNetworkError",
    "ProviderTimeoutError",
    "ProviderRateLimitedError",
    "ProviderHTTPError",
    "InvalidContentError",
    "ProviderNotConfiguredError",
    "GenerationCancelledError",
    "GenerationExhaustedError",
    # Provider classes
    "TextProvider",
    "ConnectionTestResult",
    "OpenAICompatibleProvider",
    "HuggingFaceProvider",
    # Settings
    "ProviderDescriptor",
    "ProviderSettings",
    "WaterfallSettings",
    "PURPOSE_FIELD",
    "PURPOSE_DOCUMENT",
    "PROVIDER_PRESETS",
    "get_preset",
    "list_presets",
    "load_waterfall_settings",
    "save_waterfall_settings",
    # Waterfall
    "AttemptOutcome",
    "AttemptRecord",
    "GeneratedPayload",
    "ProviderWaterfall",
    "WaterfallReport",
    "match_constraint",
    # Factory functions
    "create_provider",
    "create_waterfall",
    "create_secondary_waterfalls",
    "get_waterfall",
    "get_secondary_waterfalls",
    "clear_provider_cache",
]
