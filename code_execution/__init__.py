from __future__ import annotations  # Re-export code execution public API

from .equality import render_value, values_equal
from .runner import ENTRYPOINT, SubprocessEvaluator, evaluate

__all__ = ["ENTRYPOINT", "SubprocessEvaluator", "evaluate", "render_value", "values_equal"]
