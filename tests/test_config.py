"""InsightConfig tests."""

import pytest

from insight_layer.config import InsightConfig
from insight_layer.errors import ValidationError


class TestInsightConfig:
    def test_defaults(self):
        config = InsightConfig()
        assert config.max_batch_size == 50
        assert config.duplicate_ttl_seconds == 300
        assert config.cluster_ttl_seconds == 14 * 24 * 3600
        assert config.durable_expiry_seconds == 24 * 3600
        assert config.stale_change_ratio == 0.2
        assert config.cache_namespace == "kanban-ai-cache"
        assert config.relay_base_url == "http://localhost:3100"
        assert config.cluster_slot == "clusters:default"

    def test_cluster_slot_per_board(self):
        assert InsightConfig(board_id="team-a").cluster_slot == "clusters:team-a"

    def test_trailing_slash_is_stripped(self):
        assert InsightConfig(relay_base_url="http://relay/").relay_base_url == "http://relay"

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"max_batch_size": 0},
            {"max_batch_size": 2.5},
            {"duplicate_ttl_seconds": 0},
            {"cluster_ttl_seconds": -1},
            {"stale_change_ratio": 0},
            {"stale_change_ratio": 1.5},
            {"cache_namespace": ""},
            {"max_retries": 0},
        ],
    )
    def test_invalid_values_rejected(self, kwargs):
        with pytest.raises(ValidationError):
            InsightConfig(**kwargs)

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("KANBAN_AI_MAX_BATCH_SIZE", "20")
        monkeypatch.setenv("KANBAN_AI_STALE_CHANGE_RATIO", "0.5")
        monkeypatch.setenv("KANBAN_AI_BOARD_ID", "roadmap")
        monkeypatch.setenv("KANBAN_AI_MAX_RETRIES", "3")
        monkeypatch.delenv("KANBAN_AI_BACKEND_URL", raising=False)
        monkeypatch.setenv("REACT_APP_BACKEND_URL", "http://relay.internal:3100/")

        config = InsightConfig.from_env()

        assert config.max_batch_size == 20
        assert config.stale_change_ratio == 0.5
        assert config.cluster_slot == "clusters:roadmap"
        assert config.max_retries == 3
        assert config.relay_base_url == "http://relay.internal:3100"

    def test_backend_url_env_wins(self, monkeypatch):
        monkeypatch.setenv("KANBAN_AI_BACKEND_URL", "http://a")
        monkeypatch.setenv("REACT_APP_BACKEND_URL", "http://b")
        assert InsightConfig.from_env().relay_base_url == "http://a"

    @pytest.mark.parametrize(
        "name, value",
        [
            ("KANBAN_AI_MAX_BATCH_SIZE", "abc"),
            ("KANBAN_AI_MAX_RETRIES", "2.5"),
            ("KANBAN_AI_STALE_CHANGE_RATIO", "high"),
            ("KANBAN_AI_REQUEST_TIMEOUT_SECONDS", "ten"),
        ],
    )
    def test_malformed_env_value_names_the_variable(self, monkeypatch, name, value):
        monkeypatch.setenv(name, value)
        with pytest.raises(ValidationError, match=name):
            InsightConfig.from_env()
