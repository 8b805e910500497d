"""Default model resolver wiring using environment-derived settings."""

from __future__ import annotations

from typing import Callable, Dict, Optional, TypedDict

from langchain_openai import ChatOpenAI

from browsercrew.agents import ModelResolver
from browsercrew.config import Settings


class ModelConfig(TypedDict):
    id: str
    api_key: Optional[str]
    base_url: Optional[str]


def resolve_model_configs(settings: Settings) -> Dict[str, ModelConfig]:
    """Normalized configs for the ``default`` and ``fast`` roles.

    The fast role borrows the default role's credentials when it has none.
    """
    models = settings.models
    return {
        "default": {
            "id": models.default,
            "api_key": models.default_api_key,
            "base_url": models.default_base_url,
        },
        "fast": {
            "id": models.fast,
            "api_key": models.fast_api_key or models.default_api_key,
            "base_url": models.fast_base_url or models.default_base_url,
        },
    }


def _chat_kwargs(model: str, api_key: Optional[str], base_url: Optional[str], temperature: float) -> Dict[str, object]:
    if not api_key:
        raise RuntimeError(f"Missing API key for model {model}; set it in .env.")
    kwargs: Dict[str, object] = {"model": model, "api_key": api_key, "temperature": temperature}
    if base_url:
        kwargs["base_url"] = base_url
    return kwargs


def build_model_resolver(model_configs: Dict[str, ModelConfig], temperature: float = 0.2) -> ModelResolver:
    """Construct a resolver that returns ChatOpenAI-compatible clients."""

    catalog: Dict[str, Callable[[], ChatOpenAI]] = {}
    for config in model_configs.values():
        catalog[config["id"]] = lambda cfg=config: ChatOpenAI(
            **_chat_kwargs(cfg["id"], cfg["api_key"], cfg["base_url"], temperature)
        )

    def resolver(model_id: str):
        if model_id not in catalog:
            raise KeyError(f"Model {model_id} is not configured.")
        return catalog[model_id]()

    return resolver
