"""Process-wide registry of swappable boundary factories.

The API layer looks up the text generator factory here so that the server can
bind the LLM-backed implementation while tests bind scripted fakes.
"""
from typing import Any, Callable, Dict

_FACTORIES: Dict[str, Callable[..., Any]] = {}

TEXT_GENERATOR_KEY = "models.text_generator"


def bind_model(key: str, factory: Callable[..., Any]) -> None:
    """Bind ``factory`` to ``key``, replacing any previous binding."""
    _FACTORIES[key] = factory


def get_model(key: str) -> Callable[..., Any]:
    """Return the factory bound to ``key``.

    Raises:
        KeyError: If nothing has been bound for ``key``.
    """

    try:
        return _FACTORIES[key]
    except KeyError:
        raise KeyError(f"Model not bound in registry: {key}") from None


def is_bound(key: str) -> bool:
    return key in _FACTORIES


def clear_registry() -> None:
    _FACTORIES.clear()
