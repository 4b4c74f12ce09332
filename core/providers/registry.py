"""LLM provider factory and model catalog.

Central registry of available LLM providers, models, and a factory
function to instantiate the correct provider for a given selection.
"""
from __future__ import annotations

import importlib
import logging
import os
from typing import Any, Dict, List, Optional

from .base import LLMProvider

logger = logging.getLogger(__name__)

DEFAULT_PROVIDER = "google"
DEFAULT_MODEL = "gemini-2.5-flash"

# ---------------------------------------------------------------------------
# Model catalog: supported provider/model combos for budget estimation
# ---------------------------------------------------------------------------

MODEL_CATALOG: List[Dict[str, Any]] = [
    # --- Google Gemini ---
    {
        "provider": "google",
        "provider_label": "Gemini",
        "model_id": "gemini-2.5-flash",
        "label": "Gemini 2.5 Flash",
        "tier": "standard",
        "description": "Fast and inexpensive. Default estimator.",
    },
    {
        "provider": "google",
        "provider_label": "Gemini",
        "model_id": "gemini-2.5-pro",
        "label": "Gemini 2.5 Pro",
        "tier": "premium",
        "description": "Higher accuracy for long, detailed briefs",
    },
    # --- Anthropic Claude ---
    {
        "provider": "anthropic",
        "provider_label": "Claude",
        "model_id": "claude-haiku-4-5-20251001",
        "label": "Claude Haiku 4.5",
        "tier": "standard",
        "description": "Fast, low cost",
    },
    {
        "provider": "anthropic",
        "provider_label": "Claude",
        "model_id": "claude-sonnet-4-5-20250929",
        "label": "Claude Sonnet 4.5",
        "tier": "premium",
        "description": "Balanced speed and quality",
    },
    # --- OpenAI GPT ---
    {
        "provider": "openai",
        "provider_label": "ChatGPT",
        "model_id": "gpt-4o-mini",
        "label": "GPT-4o mini",
        "tier": "standard",
        "description": "Fast, low cost",
    },
    {
        "provider": "openai",
        "provider_label": "ChatGPT",
        "model_id": "gpt-4o",
        "label": "GPT-4o",
        "tier": "premium",
        "description": "General-purpose flagship model",
    },
]

# Map of provider name → (required env var, import check module)
_PROVIDER_REQUIREMENTS = {
    "google":    ("GOOGLE_API_KEY",    "google.generativeai"),
    "anthropic": ("ANTHROPIC_API_KEY", "anthropic"),
    "openai":    ("OPENAI_API_KEY",    "openai"),
}


def get_model_catalog() -> List[Dict[str, Any]]:
    """Return the full model catalog for API consumption."""
    return MODEL_CATALOG


def get_providers() -> List[Dict[str, str]]:
    """Return unique provider list with labels."""
    seen = {}
    for m in MODEL_CATALOG:
        if m["provider"] not in seen:
            seen[m["provider"]] = m["provider_label"]
    return [{"id": k, "label": v} for k, v in seen.items()]


def get_default_model_for_provider(provider: str) -> Optional[str]:
    """Return the default (standard tier) model_id for a provider."""
    for m in MODEL_CATALOG:
        if m["provider"] == provider and m["tier"] == "standard":
            return m["model_id"]
    for m in MODEL_CATALOG:
        if m["provider"] == provider:
            return m["model_id"]
    return None


def validate_provider_model(provider: str, model_id: str) -> bool:
    """Check if a provider/model combination is valid."""
    return any(
        m["provider"] == provider and m["model_id"] == model_id
        for m in MODEL_CATALOG
    )


def check_provider_available(provider_name: str) -> Optional[str]:
    """Return None if provider is ready, or an error message string."""
    reqs = _PROVIDER_REQUIREMENTS.get(provider_name)
    if not reqs:
        return f"Unknown provider: {provider_name}"

    env_var, import_module = reqs
    try:
        importlib.import_module(import_module)
    except ImportError:
        return f"{import_module} package is not installed"

    if not os.environ.get(env_var):
        return f"{env_var} is not set"

    return None


# ---------------------------------------------------------------------------
# Provider factory
# ---------------------------------------------------------------------------

def get_provider(provider_name: str, model: Optional[str] = None) -> LLMProvider:
    """Create and return an LLMProvider instance for the given provider/model.

    Raises
    ------
    ValueError
        If the provider_name is not recognized.
    """
    kwargs: Dict[str, Any] = {}
    if model:
        kwargs["default_model"] = model

    if provider_name == "google":
        from .google_provider import GoogleProvider
        return GoogleProvider(**kwargs)
    elif provider_name == "anthropic":
        from .anthropic_provider import AnthropicProvider
        return AnthropicProvider(**kwargs)
    elif provider_name == "openai":
        from .openai_provider import OpenAIProvider
        return OpenAIProvider(**kwargs)
    else:
        raise ValueError(
            f"Unknown LLM provider: {provider_name!r}. "
            f"Supported: google, anthropic, openai"
        )


def get_available_provider(provider_name: str, model: Optional[str] = None) -> Optional[LLMProvider]:
    """Like ``get_provider`` but returns None when the provider cannot run here."""
    problem = check_provider_available(provider_name)
    if problem:
        logger.warning("LLM provider '%s' unavailable: %s", provider_name, problem)
        return None
    return get_provider(provider_name, model=model)
