"""
Credential selection and client factory tests.

Run with:
    python -m pytest tests/test_credentials.py -v
"""

import random
from collections import Counter

import pytest

from core.config import Config, ProxyConfig, RunwayAPIConfig
from services.runway import (
    RunwayClient,
    ServiceCredential,
    new_runway_client,
    parse_credentials,
    resolve_credential,
)


class TestParseCredentials:

    def test_parses_keys_and_weights(self):
        credentials = parse_credentials(["key-a", "key-b:3", ""])

        assert [(c.api_key, c.weight) for c in credentials] == [("key-a", 1), ("key-b", 3)]


class TestResolveCredential:

    def test_weights_bias_selection(self):
        random.seed(99)
        pool = [ServiceCredential("light", weight=1), ServiceCredential("heavy", weight=3)]

        counts = Counter(resolve_credential(pool).api_key for _ in range(4000))

        assert 2700 < counts["heavy"] < 3300
        assert 700 < counts["light"] < 1300

    def test_pinned_key_wins(self):
        pool = [ServiceCredential("a", weight=10), ServiceCredential("b")]
        assert resolve_credential(pool, api_key="b").api_key == "b"

    def test_unknown_pinned_key(self):
        with pytest.raises(ValueError):
            resolve_credential([ServiceCredential("a")], api_key="zzz")

    def test_empty_pool(self):
        with pytest.raises(ValueError):
            resolve_credential([])


class TestConfig:

    def test_validate_flags_missing_keys(self):
        config = Config(
            runway=RunwayAPIConfig(api_keys=[], pinned_api_key=None),
            proxy=ProxyConfig(api_key="", servers=["https://proxy.example.com"]),
        )
        issues = config.validate()

        assert any("API key" in issue for issue in issues)
        assert any("PROXY_API_KEY" in issue for issue in issues)

    def test_target_host_from_base_url(self):
        config = RunwayAPIConfig(base_url="https://api.runwayml.com/")
        assert config.target_host == "api.runwayml.com"

    def test_env_loading(self, monkeypatch):
        monkeypatch.setenv("RUNWAY_API_KEYS", "key-a:2, key-b")
        monkeypatch.setenv("PROXY_SERVERS", "https://p0.example.com,https://p1.example.com")

        config = Config.from_env()

        assert config.runway.api_keys == ["key-a:2", "key-b"]
        assert config.proxy.servers == ["https://p0.example.com", "https://p1.example.com"]


class TestNewRunwayClient:

    @pytest.mark.asyncio
    async def test_builds_client_for_pinned_key(self, config):
        pool = [ServiceCredential("a"), ServiceCredential("b")]

        client = new_runway_client(pool, [], api_key="b", config=config)

        assert isinstance(client, RunwayClient)
        assert client.api_key == "b"
        assert client.queue.pending == 0
        await client.close()
