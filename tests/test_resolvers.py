"""Tests for scope based registry resolution."""

import base64

import pytest

from dependency_lens.config import ScopeRoutingConfig
from dependency_lens.resolvers import USER_AGENT, RegistryResolver, parse_scope


@pytest.mark.parametrize(
    "name, scope",
    [
        ("@org/pkg", "@org"),
        ("@org/pkg/deep", "@org"),
        ("lodash", None),
        ("@org", None),
    ],
)
def test_parse_scope(name, scope):
    assert parse_scope(name) == scope


def test_unscoped_package_uses_default_registry():
    resolver = RegistryResolver(ScopeRoutingConfig(default_registry="https://registry.example.com//"))
    route = resolver.resolve("lodash")
    assert route.registry == "https://registry.example.com"
    assert route.headers == {"Accept": "application/json", "User-Agent": USER_AGENT}
    assert not route.authenticated


def test_scoped_package_routes_to_scope_registry_with_bearer():
    config = ScopeRoutingConfig.from_options(
        scope_registries=["@acme=https://npm.pkg.github.com/"],
        scope_auth=["@acme=tok123"],
        environ={},
    )
    route = RegistryResolver(config).resolve("@acme/widgets")
    assert route.registry == "https://npm.pkg.github.com"
    assert route.headers["Authorization"] == "Bearer tok123"
    assert route.authenticated


def test_unmapped_scope_falls_back_to_default():
    config = ScopeRoutingConfig.from_options(
        default_registry="https://registry.npmjs.org",
        scope_registries=["@acme=https://npm.pkg.github.com"],
        environ={},
    )
    route = RegistryResolver(config).resolve("@other/thing")
    assert route.registry == "https://registry.npmjs.org"
    assert "Authorization" not in route.headers


def test_unset_env_credential_omits_authorization(monkeypatch):
    monkeypatch.delenv("TOKEN_X", raising=False)
    config = ScopeRoutingConfig.from_options(
        scope_registries=["@priv=https://npm.private.example.com"],
        scope_auth=["@priv=env:TOKEN_X"],
    )
    route = RegistryResolver(config).resolve("@priv/lib")
    assert route.registry == "https://npm.private.example.com"
    assert "Authorization" not in route.headers
    assert not route.authenticated


def test_set_env_credential_is_attached(monkeypatch):
    monkeypatch.setenv("TOKEN_X", "from-env")
    config = ScopeRoutingConfig.from_options(scope_auth=["@priv=env:TOKEN_X"])
    route = RegistryResolver(config).resolve("@priv/lib")
    assert route.headers["Authorization"] == "Bearer from-env"


def test_user_password_credential_is_base64_bearer():
    config = ScopeRoutingConfig.from_options(scope_auth=["@ado=me:pat"], environ={})
    route = RegistryResolver(config).resolve("@ado/pkg")
    encoded = base64.b64encode(b"me:pat").decode("ascii")
    assert route.headers["Authorization"] == f"Bearer {encoded}"
