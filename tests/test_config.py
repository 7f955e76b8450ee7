"""
Tests for configuration loading (YAML file + environment overrides).
"""

import os
import shutil
import tempfile
from pathlib import Path

import pytest

from sgrec.config import EngineConfig, load_config
from sgrec.errors import InvalidConfigError

ENV_KEYS = ("SGREC_CONFIG", "SGREC_CACHE_TTL", "SGREC_SHUFFLE_SEED", "SGREC_SIMILARITY_THRESHOLD")


class TestEngineConfig:
    """Defaults and validation."""

    def test_defaults(self):
        config = EngineConfig().validate()

        assert config.similarity.threshold == 0.1
        assert config.similarity.track_weight == 0.5
        assert config.similarity.genre_weight == 0.3
        assert config.similarity.artist_weight == 0.2
        assert config.weekly_mix.collaborative == 0.6
        assert config.radio_mix.same_genre == 0.4
        assert config.cache_ttl_seconds == 1800
        assert config.default_limit == 20
        assert config.similar_listener_limit == 15
        assert config.shuffle_seed is None

    def test_from_dict_sections(self):
        config = EngineConfig.from_dict({
            "similarity": {"threshold": 0.2, "neighbor_limit": 5},
            "engine": {"default_limit": 30, "weekly_mix": {"collaborative": 0.5}},
            "cache": {"ttl_seconds": 60},
        })

        assert config.similarity.threshold == 0.2
        assert config.similarity.neighbor_limit == 5
        assert config.default_limit == 30
        assert config.weekly_mix.collaborative == 0.5
        assert config.weekly_mix.content == 0.3
        assert config.cache_ttl_seconds == 60.0

    def test_empty_mapping(self):
        assert EngineConfig.from_dict({}) == EngineConfig()
        assert EngineConfig.from_dict(None) == EngineConfig()

    def test_invalid_threshold(self):
        with pytest.raises(InvalidConfigError):
            EngineConfig.from_dict({"similarity": {"threshold": 1.0}})

    def test_shares_over_one(self):
        with pytest.raises(InvalidConfigError):
            EngineConfig.from_dict({"engine": {"radio_mix": {"same_artist": 0.5, "same_genre": 0.6}}})

    def test_unknown_key(self):
        with pytest.raises(InvalidConfigError):
            EngineConfig.from_dict({"similarity": {"tresh": 0.3}})

    def test_non_positive_ttl(self):
        with pytest.raises(InvalidConfigError):
            EngineConfig.from_dict({"cache": {"ttl_seconds": 0}})

    def test_non_numeric_values(self):
        """Wrongly typed values surface as configuration errors."""
        with pytest.raises(InvalidConfigError):
            EngineConfig.from_dict({"similarity": {"threshold": "abc"}})
        with pytest.raises(InvalidConfigError):
            EngineConfig.from_dict({"similarity": {"neighbor_limit": "ten"}})
        with pytest.raises(InvalidConfigError):
            EngineConfig.from_dict({"engine": {"weekly_mix": {"content": "half"}}})


class TestLoadConfig:
    """File discovery and environment overrides."""

    def setup_method(self):
        self.temp_dir = tempfile.mkdtemp()
        self.saved_env = {key: os.environ.pop(key, None) for key in ENV_KEYS}
        self.saved_cwd = os.getcwd()

    def teardown_method(self):
        os.chdir(self.saved_cwd)
        for key, value in self.saved_env.items():
            os.environ.pop(key, None)
            if value is not None:
                os.environ[key] = value
        shutil.rmtree(self.temp_dir)

    def write_config(self, text, name="config.yaml"):
        path = Path(self.temp_dir) / name
        path.write_text(text)
        return path

    def test_load_from_path(self):
        path = self.write_config(
            "similarity:\n"
            "  threshold: 0.25\n"
            "engine:\n"
            "  shuffle_seed: 7\n"
            "cache:\n"
            "  ttl_seconds: 600\n"
        )
        config = load_config(path)

        assert config.similarity.threshold == 0.25
        assert config.shuffle_seed == 7
        assert config.cache_ttl_seconds == 600

    def test_missing_default_file_uses_defaults(self):
        os.chdir(self.temp_dir)
        assert load_config() == EngineConfig()

    def test_missing_explicit_file(self):
        with pytest.raises(InvalidConfigError):
            load_config(Path(self.temp_dir) / "nope.yaml")

    def test_config_path_from_env(self):
        path = self.write_config("engine:\n  default_limit: 12\n", name="custom.yaml")
        os.environ["SGREC_CONFIG"] = str(path)

        assert load_config().default_limit == 12

    def test_env_overrides_file(self):
        path = self.write_config("cache:\n  ttl_seconds: 600\n")
        os.environ["SGREC_CACHE_TTL"] = "90"
        os.environ["SGREC_SHUFFLE_SEED"] = "3"
        os.environ["SGREC_SIMILARITY_THRESHOLD"] = "0.3"

        config = load_config(path)
        assert config.cache_ttl_seconds == 90
        assert config.shuffle_seed == 3
        assert config.similarity.threshold == 0.3

    def test_malformed_env_override(self):
        os.chdir(self.temp_dir)
        os.environ["SGREC_CACHE_TTL"] = "soon"

        with pytest.raises(InvalidConfigError):
            load_config()

    def test_malformed_yaml(self):
        path = self.write_config("similarity: [unclosed\n")
        with pytest.raises(InvalidConfigError):
            load_config(path)

    def test_non_numeric_yaml_value(self):
        path = self.write_config('similarity:\n  threshold: "abc"\n')
        with pytest.raises(InvalidConfigError):
            load_config(path)

    def test_non_mapping_yaml(self):
        path = self.write_config("- just\n- a list\n")
        with pytest.raises(InvalidConfigError):
            load_config(path)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
