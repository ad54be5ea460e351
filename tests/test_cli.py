"""Tests for RelayDNS configuration and command line."""

import json
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from relaydns import __version__
from relaydns import cli
from relaydns.config import load_config, _parse_config, generate_example_config, EXAMPLE_CONFIG


# ─── Config Tests ────────────────────────────────────────────────────────────

def test_server_defaults():
    cfg = _parse_config({})
    assert cfg.server.host == "0.0.0.0"
    assert cfg.server.port == 8053
    assert cfg.server.upstream == "8.8.8.8"
    assert cfg.server.upstream_port == 53
    assert cfg.server.upstream_timeout is None
    assert cfg.server.log_queries is True


def test_load_config_without_path_uses_defaults():
    cfg = load_config(None)
    assert cfg.server.port == 8053


def test_server_override():
    cfg = _parse_config({"server": {"port": 5353, "upstream": "1.1.1.1", "log_level": "debug"}})
    assert cfg.server.port == 5353
    assert cfg.server.upstream == "1.1.1.1"
    assert cfg.server.log_level == "DEBUG"


def test_multiple_upstreams_rejected():
    with pytest.raises(ValueError, match="single server"):
        _parse_config({"server": {"upstream": ["8.8.8.8", "1.1.1.1"]}})


@pytest.mark.parametrize("port", [-1, 70000, "53"])
def test_bad_port_rejected(port):
    with pytest.raises(ValueError, match="port"):
        _parse_config({"server": {"port": port}})


@pytest.mark.parametrize("key", ["port", "upstream_port"])
def test_boolean_port_rejected(key):
    with pytest.raises(ValueError, match=key):
        _parse_config({"server": {key: True}})


def test_bad_timeout_rejected():
    with pytest.raises(ValueError, match="upstream_timeout"):
        _parse_config({"server": {"upstream_timeout": 0}})


def test_boolean_timeout_rejected():
    with pytest.raises(ValueError, match="upstream_timeout"):
        _parse_config({"server": {"upstream_timeout": True}})


def test_bad_log_level_rejected():
    with pytest.raises(ValueError, match="log_level"):
        _parse_config({"server": {"log_level": "LOUD"}})


def test_load_config_from_file(tmp_path):
    path = tmp_path / "relaydns.json"
    path.write_text(json.dumps({"server": {"port": 5300, "upstream_timeout": 2.5}}))
    cfg = load_config(str(path))
    assert cfg.server.port == 5300
    assert cfg.server.upstream_timeout == 2.5


def test_load_config_missing_file():
    with pytest.raises(FileNotFoundError):
        load_config("/nonexistent/path/config.json")


def test_generate_example_config(tmp_path):
    path = tmp_path / "example.json"
    generate_example_config(str(path))
    data = json.loads(path.read_text())
    assert data == EXAMPLE_CONFIG
    # the example must itself be loadable
    assert load_config(str(path)).server.upstream == "1.1.1.1"


# ─── CLI Tests ───────────────────────────────────────────────────────────────

def test_version(capsys):
    with pytest.raises(SystemExit) as exc:
        cli.main(["--version"])
    assert exc.value.code == 0
    assert __version__ in capsys.readouterr().out


def test_init_writes_file(tmp_path, capsys):
    path = tmp_path / "out.json"
    cli.main(["init", str(path)])
    assert path.exists()
    assert str(path) in capsys.readouterr().out


def test_check_valid(tmp_path, capsys):
    path = tmp_path / "ok.json"
    generate_example_config(str(path))
    cli.main(["check", str(path)])
    out = capsys.readouterr().out
    assert "Config is valid" in out
    assert "1.1.1.1:53" in out


def test_check_invalid(tmp_path, capsys):
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"server": {"upstream": ["a", "b"]}}))
    with pytest.raises(SystemExit) as exc:
        cli.main(["check", str(path)])
    assert exc.value.code == 1
    assert "Config error" in capsys.readouterr().err


def test_check_missing_file(capsys):
    with pytest.raises(SystemExit) as exc:
        cli.main(["check", "/nonexistent/relaydns.json"])
    assert exc.value.code == 1


def test_start_applies_overrides(monkeypatch):
    seen = {}

    async def fake_run_server(config):
        seen["config"] = config

    monkeypatch.setattr(cli, "run_server", fake_run_server)
    monkeypatch.setattr(cli, "setup_logging", lambda level: seen.setdefault("level", level))
    cli.main(["start", "--host", "127.0.0.1", "--port", "5454", "--upstream", "9.9.9.9", "--log-level", "DEBUG"])
    server = seen["config"].server
    assert server.host == "127.0.0.1"
    assert server.port == 5454
    assert server.upstream == "9.9.9.9"
    assert seen["level"] == "DEBUG"


def test_start_missing_config_exits(capsys):
    with pytest.raises(SystemExit) as exc:
        cli.main(["start", "--config", "/nonexistent/relaydns.json"])
    assert exc.value.code == 1
    assert "not found" in capsys.readouterr().err
