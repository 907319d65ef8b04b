"""
Tests for the textforensics command-line interface.

Commands are driven through ``main(argv)`` and their output captured with
capsys; ``serve`` is tested with the server call replaced.
"""

import io
import json
import os
import sys
from pathlib import Path

import pytest

from textforensics.cli import main
from textforensics.config.runtime import RuntimeMode, get_runtime_config

REPO_ROOT = Path(__file__).resolve().parents[2]
BUNDLED_CONFIG = str(REPO_ROOT / "config" / "default_config.yaml")


@pytest.fixture
def text_file(tmp_path):
    path = tmp_path / "input.txt"
    path.write_text("admin\u202e SGVsbG8sIFVsaSE=\n", encoding="utf-8")
    return str(path)


@pytest.fixture
def runtime_env(monkeypatch):
    """Environment restored after commands that export runtime settings."""
    for key in get_runtime_config(RuntimeMode.DEV).to_env_dict():
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


def _run_json(capsys, argv):
    exit_code = main(argv)
    captured = capsys.readouterr()
    return exit_code, json.loads(captured.out)


class TestAnalyzeCommand:
    def test_selected_check(self, capsys, text_file):
        exit_code, body = _run_json(
            capsys, ["analyze", text_file, "-c", "unicode_bidi", "--config", BUNDLED_CONFIG]
        )

        assert exit_code == 0
        assert body["ok"] is True
        assert set(body["server"]) == {"unicode_scan", "bidi_pairing"}
        assert body["server"]["bidi_pairing"]["issues"][0]["issue"] == "unclosed_open"

    def test_default_checks_from_config(self, capsys, text_file):
        exit_code, body = _run_json(capsys, ["analyze", text_file, "--config", BUNDLED_CONFIG])

        assert exit_code == 0
        assert set(body["server"]) == {
            "unicode_scan",
            "bidi_pairing",
            "spoof_tokens",
            "normalization",
            "base64",
        }

    def test_default_checks_override(self, capsys, text_file, tmp_path):
        config = tmp_path / "tf.yaml"
        config.write_text("default_checks: [unicode_norm]\n", encoding="utf-8")

        _, body = _run_json(capsys, ["analyze", text_file, "--config", str(config)])
        assert set(body["server"]) == {"normalization"}

    def test_no_mask_urls(self, capsys, tmp_path):
        config = tmp_path / "tf.yaml"
        config.write_text(
            "limits:\n  min_base64_length: 12\ndefault_checks: [payload_base64]\n",
            encoding="utf-8",
        )
        path = tmp_path / "url.txt"
        path.write_text("https://example.com/#SGVsbG8sIFVsaSE", encoding="utf-8")

        _, masked = _run_json(capsys, ["analyze", str(path), "--config", str(config)])
        _, unmasked = _run_json(
            capsys, ["analyze", str(path), "--config", str(config), "--no-mask-urls"]
        )

        assert masked["server"]["base64"] == []
        assert unmasked["server"]["base64"][0]["preview"] == "Hello, Uli!"

    def test_reads_stdin(self, capsys, monkeypatch):
        monkeypatch.setattr(sys, "stdin", io.TextIOWrapper(io.BytesIO("x\u202e".encode())))

        exit_code, body = _run_json(
            capsys, ["analyze", "-c", "unicode_specials", "--config", BUNDLED_CONFIG]
        )

        assert exit_code == 0
        assert body["server"]["unicode_scan"][0]["hex"] == "U+202E"

    def test_unicode_is_not_escaped(self, capsys, tmp_path):
        path = tmp_path / "fw.txt"
        path.write_text("\uff11\uff12\uff13", encoding="utf-8")

        main(["analyze", str(path), "-c", "unicode_norm", "--config", BUNDLED_CONFIG])
        assert '"nfkc_preview": "123"' in capsys.readouterr().out

    def test_pretty(self, capsys, text_file):
        main(["analyze", text_file, "-c", "unicode_norm", "--pretty", "--config", BUNDLED_CONFIG])
        assert capsys.readouterr().out.startswith("{\n  ")

    def test_missing_file(self, capsys, tmp_path):
        exit_code = main(["analyze", str(tmp_path / "nope.txt"), "--config", BUNDLED_CONFIG])

        assert exit_code == 1
        assert "Error: Cannot read" in capsys.readouterr().err

    def test_invalid_utf8(self, capsys, tmp_path):
        path = tmp_path / "latin1.txt"
        path.write_bytes(b"caf\xe9")

        assert main(["analyze", str(path), "--config", BUNDLED_CONFIG]) == 1
        assert "not valid UTF-8" in capsys.readouterr().err

    def test_invalid_config(self, capsys, text_file, tmp_path):
        config = tmp_path / "bad.yaml"
        config.write_text("limits: {max_payload_findings: -5}\n", encoding="utf-8")

        assert main(["analyze", text_file, "--config", str(config)]) == 1
        assert "E803" in capsys.readouterr().err

    def test_unknown_check_is_rejected(self, text_file):
        with pytest.raises(SystemExit) as exc_info:
            main(["analyze", text_file, "-c", "entropy"])
        assert exc_info.value.code == 2


class TestOtherCommands:
    def test_no_command_prints_help(self, capsys):
        assert main([]) == 0
        assert "usage: textforensics" in capsys.readouterr().out

    def test_version(self, capsys):
        with pytest.raises(SystemExit):
            main(["--version"])
        assert "textforensics 1.0.0" in capsys.readouterr().out

    def test_info(self, capsys):
        assert main(["info"]) == 0
        out = capsys.readouterr().out
        assert "payload_base64" in out
        assert "/api/analyze" in out

    def test_check_json(self, capsys):
        exit_code, status = _run_json(capsys, ["check", "--json", "--config", BUNDLED_CONFIG])

        assert exit_code == 0
        assert status["capabilities"]["unicode_db_available"] is True
        assert status["config"]["valid"] is True
        assert status["config"]["limits"]["max_payload_findings"] == 120

    def test_check_invalid_config(self, capsys, tmp_path):
        config = tmp_path / "bad.yaml"
        config.write_text("nonsense: 1\n", encoding="utf-8")

        assert main(["check", "--config", str(config)]) == 1
        assert "Configuration valid: False" in capsys.readouterr().out

    def test_check_json_reports_error_code(self, capsys, tmp_path):
        config = tmp_path / "bad.yaml"
        config.write_text("nonsense: 1\n", encoding="utf-8")

        exit_code, status = _run_json(capsys, ["check", "--json", "--config", str(config)])

        assert exit_code == 1
        assert status["config"]["valid"] is False
        assert status["config"]["error_code"] == "E803"
        assert status["config"]["details"] == {"path": str(config)}

    def test_check_verbose_prints_runtime_config(self, capsys, runtime_env):
        runtime_env.setenv("TEXTFORENSICS_MAX_BODY_BYTES", "4096")

        assert main(["check", "--verbose", "--config", BUNDLED_CONFIG]) == 0
        out = capsys.readouterr().out
        assert "max_payload_findings" in out
        assert "textforensics Runtime Configuration (dev)" in out
        assert "Max Body Bytes: 4096" in out

    def test_check_without_verbose_omits_runtime_config(self, capsys):
        main(["check", "--config", BUNDLED_CONFIG])
        assert "Runtime Configuration" not in capsys.readouterr().out

    def test_serve_passes_arguments(self, capsys, runtime_env):
        calls = []

        def fake_serve(**kwargs):
            calls.append(kwargs)
            return 0

        runtime_env.setattr("textforensics.entrypoints.serve.serve", fake_serve)
        exit_code = main(["serve", "--host", "127.0.0.1", "--port", "9100", "--workers", "2"])

        assert exit_code == 0
        assert calls == [
            {"host": "127.0.0.1", "port": 9100, "log_level": "info", "reload": False, "workers": 2}
        ]
        assert "Starting server on 127.0.0.1:9100" in capsys.readouterr().out

    def test_serve_exports_runtime_config(self, runtime_env, tmp_path):
        """Worker processes see the same settings as the launching command."""
        runtime_env.setattr("textforensics.entrypoints.serve.serve", lambda **kwargs: 0)
        runtime_env.setenv("TEXTFORENSICS_MAX_BODY_BYTES", "2048")
        config = str(tmp_path / "tf.yaml")

        main(["serve", "--port", "9200", "--workers", "3", "--config", config])

        assert os.environ["PORT"] == "9200"
        assert os.environ["TEXTFORENSICS_WORKERS"] == "3"
        assert os.environ["TEXTFORENSICS_CONFIG_PATH"] == config
        assert os.environ["TEXTFORENSICS_MAX_BODY_BYTES"] == "2048"

        workers_view = get_runtime_config()
        assert workers_view.server.port == 9200
        assert workers_view.security.max_body_bytes == 2048


pytestmark = pytest.mark.unit
