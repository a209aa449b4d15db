"""Tests for PipelineConfig and ApiKeys."""

from __future__ import annotations

import pytest

from idea_validator.infrastructure.config import ApiKeys, PipelineConfig


class TestPipelineConfig:
    def test_defaults(self) -> None:
        cfg = PipelineConfig()
        assert cfg.rate_interval == 5.6
        assert cfg.web_timeout == 25.0
        assert cfg.twitter_timeout == 60.0
        assert cfg.web_max_results == 7
        assert cfg.web_source_limit == 15
        assert (cfg.worldwide_woeid, cfg.usa_woeid) == (1, 23424977)
        assert cfg.error_preview_chars == 80
        assert cfg.query_preview_chars == 72
        cfg.validate()

    @pytest.mark.parametrize(
        "overrides",
        [
            {"rate_interval": -1.0},
            {"web_timeout": 0.0},
            {"min_idea_length": 0},
            {"web_max_results": 0},
            {"demand_likes_divisor": 0.0},
        ],
    )
    def test_validate_rejects(self, overrides: dict[str, float]) -> None:
        with pytest.raises(ValueError):
            PipelineConfig(**overrides).validate()

    def test_round_trip_ignores_unknown_keys(self) -> None:
        data = PipelineConfig(rate_interval=1.0).to_dict()
        data["unknown"] = 1
        assert PipelineConfig.from_dict(data) == PipelineConfig(rate_interval=1.0)

    def test_from_dict_validates(self) -> None:
        with pytest.raises(ValueError):
            PipelineConfig.from_dict({"http_timeout": -2})


class TestApiKeys:
    def test_from_env(self) -> None:
        keys = ApiKeys.from_env({"OPENAI_API_KEY": "sk", "TAVILY_API_KEY": "tv"})
        assert keys.openai == "sk"
        assert keys.status() == {
            "openai": "configured",
            "gemini": "missing",
            "twitter": "missing",
            "tavily": "configured",
        }
        assert keys.missing() == ["GEMINI_API_KEY", "TWITTER_API_KEY"]

    def test_repr_hides_secrets(self) -> None:
        keys = ApiKeys(openai="sk-secret")
        assert "sk-secret" not in repr(keys)
