"""Tests for model manager."""

from unittest.mock import patch

import pytest

from src.llm.models import MODEL_MAP, ModelManager, friendly


def _configure(mock_settings, chat="sonnet", fallback="haiku", memory="haiku") -> None:
    mock_settings.default_chat_model = chat
    mock_settings.fallback_chat_model = fallback
    mock_settings.default_memory_model = memory


@patch("src.llm.models.settings")
def test_default_models(mock_settings) -> None:
    _configure(mock_settings)
    ModelManager._reset()
    mm = ModelManager.get()
    assert mm.get_chat_model() == MODEL_MAP["sonnet"]
    assert mm.get_fallback_model() == MODEL_MAP["haiku"]
    assert mm.get_memory_model() == MODEL_MAP["haiku"]
    ModelManager._reset()


@patch("src.llm.models.settings")
def test_set_chat_model_by_name(mock_settings) -> None:
    _configure(mock_settings)
    ModelManager._reset()
    mm = ModelManager.get()
    result = mm.set_chat_model("opus")
    assert result == MODEL_MAP["opus"]
    assert mm.get_chat_model() == MODEL_MAP["opus"]
    # Fallback and memory models are unchanged
    assert mm.get_fallback_model() == MODEL_MAP["haiku"]
    assert mm.get_memory_model() == MODEL_MAP["haiku"]
    ModelManager._reset()


@patch("src.llm.models.settings")
def test_set_chat_model_invalid(mock_settings) -> None:
    _configure(mock_settings)
    ModelManager._reset()
    mm = ModelManager.get()
    result = mm.set_chat_model("gpt-4")
    assert result is None
    assert mm.get_chat_model() == MODEL_MAP["sonnet"]
    ModelManager._reset()


@patch("src.llm.models.settings")
def test_set_fallback_model(mock_settings) -> None:
    _configure(mock_settings)
    ModelManager._reset()
    mm = ModelManager.get()
    assert mm.set_fallback_model("sonnet") == MODEL_MAP["sonnet"]
    assert mm.get_fallback_model() == MODEL_MAP["sonnet"]
    ModelManager._reset()


@patch("src.llm.models.settings")
def test_set_memory_model(mock_settings) -> None:
    _configure(mock_settings)
    ModelManager._reset()
    mm = ModelManager.get()
    result = mm.set_memory_model("sonnet")
    assert result == MODEL_MAP["sonnet"]
    assert mm.get_memory_model() == MODEL_MAP["sonnet"]
    ModelManager._reset()


@patch("src.llm.models.settings")
def test_unknown_env_names_fall_back_to_defaults(mock_settings) -> None:
    _configure(mock_settings, chat="llama", fallback="mixtral", memory="gemma")
    ModelManager._reset()
    mm = ModelManager.get()
    assert mm.get_chat_model() == MODEL_MAP["sonnet"]
    assert mm.get_fallback_model() == MODEL_MAP["haiku"]
    assert mm.get_memory_model() == MODEL_MAP["haiku"]
    ModelManager._reset()


def test_friendly_name() -> None:
    assert friendly(MODEL_MAP["sonnet"]) == "sonnet"
    assert friendly(MODEL_MAP["haiku"]) == "haiku"
    assert friendly("unknown-model") == "unknown-model"


@patch("src.llm.models.settings")
def test_set_by_full_model_id(mock_settings) -> None:
    _configure(mock_settings)
    ModelManager._reset()
    mm = ModelManager.get()
    assert mm.set_chat_model(MODEL_MAP["haiku"]) == MODEL_MAP["haiku"]
    ModelManager._reset()


@patch("src.llm.models.settings")
def test_describe(mock_settings) -> None:
    _configure(mock_settings)
    ModelManager._reset()
    assert ModelManager.get().describe() == "chat=sonnet, fallback=haiku, memory=haiku"
    ModelManager._reset()


@patch("src.llm.models.settings")
def test_set_model_by_role(mock_settings) -> None:
    _configure(mock_settings)
    ModelManager._reset()
    mm = ModelManager.get()
    assert mm.set_model("fallback", "opus") == MODEL_MAP["opus"]
    assert mm.model_for("fallback") == MODEL_MAP["opus"]
    with pytest.raises(ValueError, match="role"):
        mm.set_model("vision", "haiku")
    ModelManager._reset()
