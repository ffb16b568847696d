"""
Tests for configuration loading and candidate construction.
"""

import pytest

from padhai_gateway.adapters import GeminiAdapter, GeminiImagenAdapter
from padhai_gateway.core.config import DEFAULT_CONFIG, load_config, parse_config
from padhai_gateway.core.errors import ConfigurationError
from padhai_gateway.core.interface import ProviderCapability
from padhai_gateway.core.registry import default_registry
from padhai_gateway.models.request import Mode, RequestEnvelope


class TestLoadConfig:
    """Test configuration parsing."""

    def test_default_config_trims_secrets(self, provider_env):
        """Test credentials from the environment are stripped."""
        config = parse_config(DEFAULT_CONFIG, provider_env)
        assert config.provider("siliconflow").api_key == "sf-test-key"
        assert config.provider("huggingface").api_key == "hf-test-token"
        assert config.provider("gemini").api_key == "gemini-test-key"
        assert config.attempt_timeout == 25.0

    def test_blank_secret_is_missing(self):
        """Test a whitespace-only credential counts as absent."""
        config = parse_config(DEFAULT_CONFIG, {"GEMINI_API_KEY": "   "})
        assert config.provider("gemini").api_key is None

    def test_env_expansion_in_api_key(self):
        """Test ${VAR} references are expanded."""
        config = parse_config(
            {"providers": [{"name": "g", "type": "gemini", "api_key": "${MY_KEY}"}]},
            {"MY_KEY": " secret "},
        )
        assert config.provider("g").api_key == "secret"

    def test_load_yaml_file(self, tmp_path, provider_env):
        """Test loading a YAML file."""
        path = tmp_path / "gateway.yaml"
        path.write_text(
            "attempt_timeout: 10\n"
            "locale: hi\n"
            "providers:\n"
            "  - {name: gemini, type: gemini, api_key_env: GEMINI_API_KEY}\n"
            "modes:\n"
            "  text:\n"
            "    - {provider: gemini, model: gemini-1.5-flash, capabilities: [system_instruction]}\n"
        )
        config = load_config(str(path), provider_env)
        assert config.attempt_timeout == 10.0
        assert config.locale == "hi"
        assert config.modes["text"][0].model == "gemini-1.5-flash"
        assert config.provider("gemini").api_key == "gemini-test-key"

    def test_missing_file_uses_defaults(self, tmp_path, provider_env):
        """Test a missing file falls back to the built-in configuration."""
        config = load_config(str(tmp_path / "absent.yaml"), provider_env)
        assert set(config.modes) == {"text", "reasoning", "vision", "image", "title"}

    def test_config_path_from_environment(self, tmp_path):
        """Test GATEWAY_CONFIG selects the file."""
        path = tmp_path / "custom.yaml"
        path.write_text("locale: hi\n")
        config = load_config(environ={"GATEWAY_CONFIG": str(path)})
        assert config.locale == "hi"


class TestRegistry:
    """Test candidate table construction."""

    def test_build_default_candidates(self, provider_env):
        """Test every mode gets its ordered chain."""
        table = default_registry().build_candidates(parse_config(DEFAULT_CONFIG, provider_env))

        assert [c.model_id for c in table[Mode.TEXT]] == [
            "Qwen/Qwen2.5-7B-Instruct",
            "gemini-1.5-flash",
            "gemini-1.5-pro",
            "mistralai/Mistral-7B-Instruct-v0.3",
            "gemini-pro",
        ]
        legacy = table[Mode.TEXT][-1]
        assert not legacy.supports(ProviderCapability.SYSTEM_INSTRUCTION)
        assert isinstance(legacy.adapter, GeminiAdapter)

        image = table[Mode.IMAGE]
        assert len(image) == 1
        assert isinstance(image[0].adapter, GeminiImagenAdapter)
        assert image[0].supports(ProviderCapability.IMAGE_OUTPUT)

    def test_candidates_share_adapter_per_provider(self, provider_env):
        """Test one adapter instance serves all models of a provider."""
        table = default_registry().build_candidates(parse_config(DEFAULT_CONFIG, provider_env))
        flash, pro = table[Mode.VISION][1], table[Mode.VISION][2]
        assert flash.adapter is pro.adapter

    def test_missing_credential_drops_candidates(self):
        """Test providers without credentials are left out of every chain."""
        table = default_registry().build_candidates(
            parse_config(DEFAULT_CONFIG, {"GEMINI_API_KEY": "g"})
        )
        assert all(c.provider_id.startswith("gemini") for chain in table.values() for c in chain)
        assert [c.model_id for c in table[Mode.TITLE]] == ["gemini-1.5-flash", "gemini-pro"]

    def test_no_credentials_is_configuration_error(self):
        """Test a gateway with no usable provider refuses to start."""
        with pytest.raises(ConfigurationError) as exc_info:
            default_registry().build_candidates(parse_config(DEFAULT_CONFIG, {}))
        assert "GEMINI_API_KEY" in exc_info.value.message

    def test_unknown_provider_type(self, provider_env):
        """Test an unregistered provider type is a configuration error."""
        config = parse_config(
            {"providers": [{"name": "x", "type": "mystery", "api_key": "k"}]},
            provider_env,
        )
        with pytest.raises(ConfigurationError):
            default_registry().build_candidates(config)

    def test_unknown_capability_ignored(self, provider_env):
        """Test unknown capability names are ignored."""
        config = parse_config(
            {
                "providers": [{"name": "gemini", "type": "gemini", "api_key": "k"}],
                "modes": {"text": [{"provider": "gemini", "model": "m", "capabilities": ["telepathy"]}]},
            },
            provider_env,
        )
        table = default_registry().build_candidates(config)
        assert table[Mode.TEXT][0].capabilities == frozenset()

    def test_extra_options_reach_adapter(self):
        """Test provider extras are passed to the adapter."""
        config = parse_config(
            {
                "providers": [{
                    "name": "imagen",
                    "type": "gemini_imagen",
                    "api_key": "k",
                    "extra": {"aspect_ratio": "16:9"},
                }],
                "modes": {"image": [{"provider": "imagen", "model": "imagen-3.0-generate-001",
                                     "capabilities": ["image_output"]}]},
            },
            {},
        )
        table = default_registry().build_candidates(config)
        request = table[Mode.IMAGE][0].build_request(RequestEnvelope(mode="image", free_text_prompt="x"))
        assert request.json["parameters"]["aspectRatio"] == "16:9"
