"""
tests/test_endpoint_registry.py - Endpoint registry tests.
"""

import pytest

from chain_gateway.endpoint_registry import EndpointRegistry, normalize_chain_id
from chain_gateway.exceptions import ConfigurationError

from tests.conftest import ENDPOINTS


class TestNormalizeChainId:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            (1, "1"),
            ("1", "1"),
            (" 137 ", "137"),
            (None, "default"),
            ("", "default"),
            ("   ", "default"),
            ("default", "default"),
        ],
    )
    def test_normalize(self, raw, expected):
        assert normalize_chain_id(raw) == expected


class TestEndpointRegistry:
    def test_known_chain(self, registry):
        assert registry.resolve("137") == ("137", ENDPOINTS["137"])
        assert registry.resolve_endpoint(1) == ENDPOINTS["1"]

    def test_unknown_chain_falls_back_to_default(self, registry):
        assert registry.resolve("999999") == ("default", ENDPOINTS["default"])

    def test_absent_chain_uses_default(self, registry):
        assert registry.resolve_endpoint(None) == ENDPOINTS["default"]

    def test_contains(self, registry):
        assert 1 in registry
        assert "42" not in registry
        assert None in registry

    def test_mapping_is_read_only(self, registry):
        with pytest.raises(TypeError):
            registry.endpoints["1"] = "https://elsewhere.example.org"  # type: ignore[index]

    def test_numeric_keys_are_normalized(self):
        registry = EndpointRegistry({1: "https://one.example.org", "default": "http://x.org"})
        assert registry.chain_ids() == ["1", "default"]

    def test_missing_default_is_rejected(self):
        with pytest.raises(ConfigurationError, match="default"):
            EndpointRegistry({"1": "https://one.example.org"})

    @pytest.mark.parametrize(
        "url",
        ["not a url", "ftp://node.example.org", "https://", "/relative/path"],
    )
    def test_malformed_url_fails_eagerly(self, url):
        with pytest.raises(ConfigurationError) as exc_info:
            EndpointRegistry({"1": url, "default": "https://default.example.org"})
        assert exc_info.value.context["chain_id"] == "1"
