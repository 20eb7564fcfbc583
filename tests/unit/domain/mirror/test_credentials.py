"""Tests for CredentialResolver."""

import pytest

from regsync.config import Config, CredentialsConfig
from regsync.domain.mirror.model.address import RegistryAddress
from regsync.domain.mirror.service.credentials import (
    DEFAULT_REGISTRY_PASSWORD,
    DEFAULT_REGISTRY_USERNAME,
    CredentialResolver,
)

REGISTRY = RegistryAddress("r1.example.com:5000")


class TestCredentialResolver:
    def test_defaults_when_not_overridden(self):
        resolver = CredentialResolver(config=CredentialsConfig())
        creds = resolver.resolve(REGISTRY)
        assert creds.username == DEFAULT_REGISTRY_USERNAME
        assert creds.password == DEFAULT_REGISTRY_PASSWORD

    def test_each_field_resolves_independently(self):
        resolver = CredentialResolver(config=CredentialsConfig(username="robot"))
        creds = resolver.resolve(REGISTRY)
        assert creds.username == "robot"
        assert creds.password == DEFAULT_REGISTRY_PASSWORD

    def test_empty_override_is_honoured(self):
        resolver = CredentialResolver(config=CredentialsConfig(password=""))
        assert resolver.resolve(REGISTRY).password == ""

    def test_password_not_in_repr(self):
        creds = CredentialResolver(config=CredentialsConfig(password="s3cret")).resolve(REGISTRY)
        assert "s3cret" not in repr(creds)

    def test_environment_overrides_through_config(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("DEFAULT_REGISTRY_USERNAME", "ops")
        monkeypatch.setenv("DEFAULT_REGISTRY_PASSWORD", "hunter2")
        resolver = CredentialResolver(config=Config().credentials)
        creds = resolver.resolve(REGISTRY)
        assert (creds.username, creds.password) == ("ops", "hunter2")

    def test_deterministic(self):
        resolver = CredentialResolver(config=CredentialsConfig(username="a", password="b"))
        assert resolver.resolve(REGISTRY) == resolver.resolve(RegistryAddress("r2.example.com:5000"))
