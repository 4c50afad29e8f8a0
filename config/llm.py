from __future__ import annotations  # LLM route configuration for the text generation tasks

from pathlib import Path
from typing import Dict, Tuple, Type

from pydantic import BaseModel, Field


class LlmRoute(BaseModel):  # One OpenAI-compatible chat endpoint
    name: str
    base_url: str
    endpoint: str
    model: str
    timeout_s: float = Field(ge=0.1)
    max_retries: int = Field(default=2, ge=0)
    api_key_env: str | None = None
    response_format: str | None = None
    extra_headers: Dict[str, str] = Field(default_factory=dict)
    sequential: bool = False
    enforce_json: bool = True


class TaskOptions(BaseModel):  # Sampling options for a single generation task
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_tokens: int | None = Field(default=None, ge=1)

    def as_payload(self) -> Dict[str, float | int]:
        payload: Dict[str, float | int] = {"temperature": self.temperature}
        if self.max_tokens is not None:
            payload["max_tokens"] = self.max_tokens
        return payload


class AppConfig(BaseModel):  # Configuration root: routes, task -> route map, task options
    llm_routes: Dict[str, LlmRoute]
    registry: Dict[str, str]
    tasks: Dict[str, TaskOptions] = Field(default_factory=dict)

    def options_for(self, task: str) -> TaskOptions:
        return self.tasks.get(task, TaskOptions())


def load_config(path: Path) -> AppConfig:
    data = path.read_text(encoding="utf-8")
    return AppConfig.model_validate_json(data)


def resolve_registry(cfg: AppConfig, schemas: Dict[str, Type[BaseModel]]) -> Dict[str, Tuple[LlmRoute, Type[BaseModel]]]:  # Pair every task with its route and output schema
    resolved: Dict[str, Tuple[LlmRoute, Type[BaseModel]]] = {}
    for task, schema in schemas.items():
        if task not in cfg.registry:
            raise KeyError(f"Registry entry missing for '{task}'")
        route_id = cfg.registry[task]
        if route_id not in cfg.llm_routes:
            raise KeyError(f"Route '{route_id}' missing for '{task}'")
        if not issubclass(schema, BaseModel):
            raise TypeError(f"Schema for '{task}' must be BaseModel")
        resolved[task] = (cfg.llm_routes[route_id], schema)
    return resolved
