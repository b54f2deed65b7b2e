"""Tests for the configuration module."""

import dataclasses

import pytest

from loki_shipper.config import ClientConfig, load_config, normalize_config
from loki_shipper.levels import LogLevel


def test_client_config_defaults():
    cfg = ClientConfig()
    assert cfg.url == "http://localhost:3100"
    assert cfg.labels == {}
    assert cfg.batch_size == 100
    assert cfg.min_wait_time == 1.0
    assert cfg.max_wait_time == 10.0
    assert cfg.min_level == LogLevel.INFO
    assert cfg.group_by_level is True
    assert cfg.request_timeout == 10.0


def test_normalize_replaces_zero_values():
    cfg = normalize_config(
        ClientConfig(
            url="http://loki:3100",
            batch_size=0,
            min_wait_time=0,
            max_wait_time=0,
            min_level=None,
            request_timeout=0,
        )
    )
    assert cfg.batch_size == 100
    assert cfg.min_wait_time == 1.0
    assert cfg.max_wait_time == 10.0
    assert cfg.min_level == LogLevel.INFO
    assert cfg.request_timeout == 10.0


def test_normalize_keeps_explicit_values():
    cfg = normalize_config(
        ClientConfig(url="http://loki", batch_size=5, min_wait_time=0.5,
                     max_wait_time=2, min_level=LogLevel.DEBUG)
    )
    assert cfg.batch_size == 5
    assert cfg.min_wait_time == 0.5
    assert cfg.max_wait_time == 2
    assert cfg.min_level == LogLevel.DEBUG


def test_normalize_copies_labels():
    labels = {"job": "api"}
    cfg = normalize_config(ClientConfig(url="http://loki", labels=labels))

    labels["job"] = "changed"

    assert cfg.labels == {"job": "api"}


def test_normalize_rejects_empty_url():
    with pytest.raises(ValueError):
        normalize_config(ClientConfig(url=""))


def test_normalize_rejects_negative_values():
    with pytest.raises(ValueError):
        normalize_config(ClientConfig(url="http://loki", batch_size=-1))


def test_config_is_frozen():
    cfg = ClientConfig()
    with pytest.raises(dataclasses.FrozenInstanceError):
        cfg.batch_size = 5


def test_load_config_defaults(monkeypatch):
    for name in ("LOKI_URL", "LOKI_LABELS", "BATCH_SIZE", "MIN_WAIT_TIME",
                 "MAX_WAIT_TIME", "MIN_LEVEL", "GROUP_BY_LEVEL", "REQUEST_TIMEOUT"):
        monkeypatch.delenv(name, raising=False)

    assert load_config() == ClientConfig()


def test_load_config_from_env(monkeypatch):
    monkeypatch.setenv("LOKI_URL", "http://192.168.1.1:3100")
    monkeypatch.setenv("LOKI_LABELS", "service_name=api, env=prod")
    monkeypatch.setenv("BATCH_SIZE", "50")
    monkeypatch.setenv("MIN_WAIT_TIME", "2")
    monkeypatch.setenv("MAX_WAIT_TIME", "20.5")
    monkeypatch.setenv("MIN_LEVEL", "warn")
    monkeypatch.setenv("GROUP_BY_LEVEL", "false")
    monkeypatch.setenv("REQUEST_TIMEOUT", "3")

    cfg = load_config()
    assert cfg.url == "http://192.168.1.1:3100"
    assert cfg.labels == {"service_name": "api", "env": "prod"}
    assert cfg.batch_size == 50
    assert cfg.min_wait_time == 2.0
    assert cfg.max_wait_time == 20.5
    assert cfg.min_level == LogLevel.WARN
    assert cfg.group_by_level is False
    assert cfg.request_timeout == 3.0


def test_load_config_explicit_environ():
    cfg = load_config({"LOKI_URL": "http://loki:3100", "MIN_LEVEL": "DEBUG"})
    assert cfg.url == "http://loki:3100"
    assert cfg.min_level == LogLevel.DEBUG


def test_load_config_bad_label():
    with pytest.raises(ValueError):
        load_config({"LOKI_LABELS": "novalue"})
