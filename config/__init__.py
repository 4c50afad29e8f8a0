"""Configuration package for the interview session services."""
from .llm import AppConfig, LlmRoute, TaskOptions, load_config, resolve_registry
from .registry import TEXT_GENERATOR_KEY, bind_model, clear_registry, get_model, is_bound
from .settings import Settings, settings

__all__ = [
    "AppConfig",
    "LlmRoute",
    "TaskOptions",
    "load_config",
    "resolve_registry",
    "TEXT_GENERATOR_KEY",
    "bind_model",
    "clear_registry",
    "get_model",
    "is_bound",
    "Settings",
    "settings",
]
