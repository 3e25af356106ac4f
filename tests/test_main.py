"""Process wiring: configuration errors stop startup, backends are chosen from settings."""

import pytest

from core.config import settings
from core.errors import ConfigError
from identity.memory import InMemoryDirectory
from identity.sql_directory import SqlDirectory
from main import build_directory, build_identity, build_notifier, create_app


def test_missing_refresh_secret_is_fatal():
    cfg = settings.model_copy(update={"jwt_refresh_secret": ""})
    with pytest.raises(ConfigError):
        build_identity(cfg)
    with pytest.raises(ConfigError):
        create_app(cfg=cfg)


def test_missing_access_secret_is_fatal():
    cfg = settings.model_copy(update={"jwt_access_secret": ""})
    with pytest.raises(ConfigError):
        build_identity(cfg)


def test_directory_backends():
    assert isinstance(build_directory(settings.model_copy(update={"directory_backend": "memory"})), InMemoryDirectory)
    sql = build_directory(settings.model_copy(update={"directory_backend": "sql", "database_url": "sqlite://"}))
    assert isinstance(sql, SqlDirectory)
    with pytest.raises(ConfigError):
        build_directory(settings.model_copy(update={"directory_backend": "ldap"}))


def test_notifier_transport_follows_mail_url():
    dev = build_notifier(settings.model_copy(update={"mail_service_url": ""}))
    live = build_notifier(settings.model_copy(update={"mail_service_url": "http://mail.test"}))
    assert type(dev._notifier).__name__ == "LoggingNotifier"
    assert type(live._notifier).__name__ == "HttpNotifier"


def test_link_bases():
    cfg = settings.model_copy(update={"api_url": "https://api.example/", "client_url": "https://app.example"})
    assert cfg.activation_base_url == "https://api.example/auth/activate"
    assert cfg.reset_base_url == "https://app.example/reset-password"
