"""Tests for configuration management."""

import pytest

from src.cli.config import Config, TLSConfig


class TestConfig:
    def test_default_config(self):
        config = Config()
        assert config.nodes == []
        assert config.tls.trust_all is False
        assert config.http.timeout == 60
        assert config.pagination.page_size == 1000
        assert config.bootstrap.ready_status == 422

    def test_from_dict(self):
        data = {
            "nodes": ["vrops-01", "vrops-02"],
            "auth": {"username": "svc@corp.local", "auth_source": "AD"},
            "tls": {"trust_all": True},
            "http": {"timeout": 20},
            "pagination": {"page_size": 500, "alert_page_size": 5000},
            "bootstrap": {"timeout": 900, "interval": 15, "ready_status": 401},
            "export": {"directory": "/tmp/exports"},
        }
        config = Config.from_dict(data)

        assert config.nodes == ["vrops-01", "vrops-02"]
        assert config.auth.username == "svc@corp.local"
        assert config.auth.auth_source == "AD"
        assert config.tls.trust_all is True
        assert config.http.timeout == 20
        assert config.pagination.page_size == 500
        assert config.pagination.alert_page_size == 5000
        assert config.bootstrap.timeout == 900
        assert config.bootstrap.interval == 15
        assert config.bootstrap.ready_status == 401
        assert config.export_dir == "/tmp/exports"

    def test_nodes_as_comma_string(self):
        config = Config.from_dict({"nodes": "a, b,,c"})
        assert config.nodes == ["a", "b", "c"]

    def test_from_yaml(self, tmp_path):
        yaml_content = """
nodes:
  - vrops-lab
tls:
  trust_all: true
  ca_bundle: /etc/pki/roots.pem
pagination:
  page_size: 250
"""
        config_file = tmp_path / "config.yaml"
        config_file.write_text(yaml_content)

        config = Config.from_yaml(config_file)

        assert config.nodes == ["vrops-lab"]
        assert config.tls.ca_bundle == "/etc/pki/roots.pem"
        assert config.pagination.page_size == 250

    def test_from_yaml_missing_file(self, tmp_path):
        assert Config.from_yaml(tmp_path / "missing.yaml").nodes == []

    def test_load_from_env(self, tmp_path, monkeypatch):
        config_file = tmp_path / "env.yaml"
        config_file.write_text("nodes: [from-env]\n")
        monkeypatch.setenv("SUITEAPI_CONFIG", str(config_file))
        monkeypatch.chdir(tmp_path)

        assert Config.load().nodes == ["from-env"]

    def test_explicit_path_wins(self, tmp_path, monkeypatch):
        explicit = tmp_path / "explicit.yaml"
        explicit.write_text("nodes: [explicit]\n")
        env = tmp_path / "env.yaml"
        env.write_text("nodes: [from-env]\n")
        monkeypatch.setenv("SUITEAPI_CONFIG", str(env))

        assert Config.load(str(explicit)).nodes == ["explicit"]

    def test_to_dict_roundtrip(self):
        config = Config(nodes=["n1"], tls=TLSConfig(trust_all=True))
        data = config.to_dict()

        assert data["nodes"] == ["n1"]
        assert data["tls"]["trust_all"] is True
        assert Config.from_dict(data).to_dict() == data
