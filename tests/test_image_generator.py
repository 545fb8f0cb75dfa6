"""Tests for photo generation via the OpenAI Images API."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src.images.generator import PROMPT_PREFIX, ImageGenerator, _get_client, build_image_prompt


@pytest.fixture(autouse=True)
def _reset_client():
    """Reset the module-level OpenAI client singleton between tests."""
    import src.images.generator as mod

    mod._client = None
    yield
    mod._client = None


@pytest.fixture
def _openai_key():
    with patch("src.images.generator.settings") as mock_settings:
        mock_settings.openai_api_key = "sk-test"
        mock_settings.image_model = "dall-e-3"
        mock_settings.image_size = "1024x1792"
        yield mock_settings


def _client_returning(data) -> MagicMock:
    client = MagicMock()
    client.images.generate = AsyncMock(return_value=SimpleNamespace(data=data))
    return client


def test_build_image_prompt() -> None:
    prompt = build_image_prompt("  mirror selfie ")
    assert prompt.startswith(PROMPT_PREFIX)
    assert "mirror selfie, high quality" in prompt


@pytest.mark.usefixtures("_openai_key")
async def test_generate_returns_url() -> None:
    client = _client_returning([SimpleNamespace(url="https://img.example/a.png")])

    with patch("src.images.generator._get_client", return_value=client):
        url = await ImageGenerator().generate("cozy selfie")

    assert url == "https://img.example/a.png"
    kwargs = client.images.generate.call_args.kwargs
    assert kwargs["model"] == "dall-e-3"
    assert kwargs["size"] == "1024x1792"
    assert kwargs["n"] == 1
    assert "cozy selfie" in kwargs["prompt"]


@pytest.mark.usefixtures("_openai_key")
async def test_generate_custom_model_and_size() -> None:
    client = _client_returning([SimpleNamespace(url="u")])

    with patch("src.images.generator._get_client", return_value=client):
        await ImageGenerator(model="gpt-image-1", size="1024x1024").generate("x")

    kwargs = client.images.generate.call_args.kwargs
    assert (kwargs["model"], kwargs["size"]) == ("gpt-image-1", "1024x1024")


@pytest.mark.usefixtures("_openai_key")
async def test_generate_api_error_returns_none() -> None:
    client = MagicMock()
    client.images.generate = AsyncMock(side_effect=RuntimeError("quota"))

    with patch("src.images.generator._get_client", return_value=client):
        assert await ImageGenerator().generate("selfie") is None


@pytest.mark.usefixtures("_openai_key")
async def test_generate_missing_url_returns_none() -> None:
    client = _client_returning([SimpleNamespace(url=None)])

    with patch("src.images.generator._get_client", return_value=client):
        assert await ImageGenerator().generate("selfie") is None


@pytest.mark.usefixtures("_openai_key")
async def test_generate_blank_description() -> None:
    with patch("src.images.generator._get_client") as get_client:
        assert await ImageGenerator().generate("   ") is None
    get_client.assert_not_called()


async def test_generate_without_key() -> None:
    with (
        patch("src.images.generator.settings") as mock_settings,
        patch("src.images.generator._get_client") as get_client,
    ):
        mock_settings.openai_api_key = ""
        generator = ImageGenerator()
        assert generator.enabled is False
        assert await generator.generate("selfie") is None
    get_client.assert_not_called()


def test_get_client_is_cached() -> None:
    with patch("src.images.generator.settings") as mock_settings:
        mock_settings.openai_api_key = "sk-test"
        assert _get_client() is _get_client()
