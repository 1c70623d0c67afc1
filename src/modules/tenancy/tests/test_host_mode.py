"""Tests for host-mode detection."""

from __future__ import annotations

import pytest

from src.config import Settings
from src.modules.tenancy.host_mode import detect, is_valid_slug, normalize_host
from src.modules.tenancy.schemas import HostMode, HostModeResult


@pytest.fixture
def config() -> Settings:
    return Settings(
        base_domain="example.com",
        operator_hosts="base.example.com",
        preview_host_suffixes=".lovable.app,.netlify.app",
        default_tenant_slug="default",
    )


class TestNormalizeHost:
    def test_lowercases_and_strips_port(self) -> None:
        assert normalize_host("ACME.Example.com:8443") == "acme.example.com"

    def test_strips_trailing_dot(self) -> None:
        assert normalize_host("acme.example.com.") == "acme.example.com"

    @pytest.mark.parametrize("host", [None, "", "   ", "[::1]:8000", "bad_host.com", "-acme.com", "a..b"])
    def test_rejects_invalid_hosts(self, host) -> None:
        assert normalize_host(host) is None


class TestDetect:
    def test_operator_host_is_developer_mode(self, config) -> None:
        assert detect("base.example.com", settings=config) == HostModeResult(mode=HostMode.DEVELOPER)

    def test_operator_host_match_ignores_case_and_port(self, config) -> None:
        assert detect("BASE.example.com:443", settings=config).mode == HostMode.DEVELOPER

    def test_subdomain_provides_tenant_hint(self, config) -> None:
        result = detect("acme.example.com", settings=config)
        assert result == HostModeResult(mode=HostMode.TENANT, tenant_hint="acme")

    def test_custom_domain_is_tenant_mode_without_hint(self, config) -> None:
        result = detect("custom-client-domain.com", settings=config)
        assert result.mode == HostMode.TENANT
        assert result.tenant_hint is None
        assert result.domain == "custom-client-domain.com"

    def test_www_subdomain_gives_no_hint(self, config) -> None:
        result = detect("www.example.com", settings=config)
        assert result == HostModeResult(mode=HostMode.TENANT)

    def test_preview_host_uses_default_tenant(self, config) -> None:
        result = detect("my-branch.lovable.app", settings=config)
        assert result == HostModeResult(mode=HostMode.TENANT, tenant_hint="default")

    def test_localhost_uses_default_tenant(self, config) -> None:
        assert detect("localhost:5173", settings=config).tenant_hint == "default"

    def test_query_override_wins_over_host(self, config) -> None:
        result = detect("base.example.com", {"tenant": "Globex"}, settings=config)
        assert result == HostModeResult(mode=HostMode.TENANT, tenant_hint="globex")

    def test_malformed_override_is_ignored(self, config) -> None:
        result = detect("acme.example.com", {"tenant": "../etc"}, settings=config)
        assert result.tenant_hint == "acme"

    @pytest.mark.parametrize("host", [None, "", "[::1]", "not a host", "under_score.example.com"])
    def test_invalid_host_never_reaches_developer_mode(self, config, host) -> None:
        assert detect(host, settings=config) == HostModeResult(mode=HostMode.TENANT)

    def test_default_operator_hosts_are_base_and_www(self) -> None:
        config = Settings(base_domain="example.com", operator_hosts="")
        assert detect("example.com", settings=config).mode == HostMode.DEVELOPER
        assert detect("www.example.com", settings=config).mode == HostMode.DEVELOPER

    def test_detection_is_deterministic(self, config) -> None:
        hosts = ["acme.example.com", "base.example.com", "other.org"]
        assert [detect(h, settings=config) for h in hosts] == [detect(h, settings=config) for h in hosts]


def test_is_valid_slug() -> None:
    assert is_valid_slug("acme-2")
    assert not is_valid_slug("-acme")
    assert not is_valid_slug("Acme")
    assert not is_valid_slug("")
    assert not is_valid_slug(None)
