"""Which Claude model serves each role, switchable at runtime."""

import logging

from src.config import settings

logger = logging.getLogger(__name__)

MODEL_MAP: dict[str, str] = {
    "haiku": "claude-haiku-4-5-20251001",
    "sonnet": "claude-sonnet-4-5-20250929",
    "opus": "claude-opus-4-1-20250805",
}

FRIENDLY_NAMES: dict[str, str] = {v: k for k, v in MODEL_MAP.items()}

# role → friendly name used when the configured value is unknown
ROLE_DEFAULTS: dict[str, str] = {
    "chat": "sonnet",
    "fallback": "haiku",
    "memory": "haiku",
}


def _resolve(name_or_id: str) -> str | None:
    """Accept a friendly name or a full model ID; None if neither."""
    if name_or_id in MODEL_MAP:
        return MODEL_MAP[name_or_id]
    return name_or_id if name_or_id in FRIENDLY_NAMES else None


def friendly(model_id: str) -> str:
    return FRIENDLY_NAMES.get(model_id, model_id)


class ModelManager:
    """Singleton mapping roles to model IDs.

    ``chat`` answers the user, ``fallback`` takes over for one retry when
    the chat model is rate limited, and ``memory`` runs fact extraction.
    """

    _instance: "ModelManager | None" = None

    def __init__(self) -> None:
        configured = {
            "chat": settings.default_chat_model,
            "fallback": settings.fallback_chat_model,
            "memory": settings.default_memory_model,
        }
        self._models: dict[str, str] = {
            role: _resolve(configured[role]) or MODEL_MAP[default]
            for role, default in ROLE_DEFAULTS.items()
        }
        logger.info("Models: %s", self.describe())

    @classmethod
    def get(cls) -> "ModelManager":
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def _reset(cls) -> None:
        cls._instance = None

    def describe(self) -> str:
        """``chat=sonnet, fallback=haiku, memory=haiku`` style summary."""
        return ", ".join(f"{role}={friendly(model)}" for role, model in self._models.items())

    def model_for(self, role: str) -> str:
        return self._models[role]

    def set_model(self, role: str, name: str) -> str | None:
        """Point *role* at *name*. Returns the full ID, or None if *name* is unknown."""
        if role not in self._models:
            msg = f"Unknown model role: {role}"
            raise ValueError(msg)
        model_id = _resolve(name)
        if model_id:
            self._models[role] = model_id
            logger.info("%s model → %s", role.capitalize(), friendly(model_id))
        return model_id

    # -- Role shortcuts --------------------------------------------------------

    def get_chat_model(self) -> str:
        return self._models["chat"]

    def get_fallback_model(self) -> str:
        return self._models["fallback"]

    def get_memory_model(self) -> str:
        return self._models["memory"]

    def set_chat_model(self, name: str) -> str | None:
        return self.set_model("chat", name)

    def set_fallback_model(self, name: str) -> str | None:
        return self.set_model("fallback", name)

    def set_memory_model(self, name: str) -> str | None:
        return self.set_model("memory", name)
