from __future__ import annotations

import json
from pathlib import Path

import pytest

from archviz_engine.cli import _build_parser, _handle_generate, _handle_quota, _handle_styles
from archviz_engine.quota.store import QuotaStore


@pytest.fixture
def cli_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    monkeypatch.setenv("ARCHVIZ_DRYRUN", "1")
    monkeypatch.setenv("ARCHVIZ_QUOTA_DB", str(tmp_path / "quota.sqlite"))
    monkeypatch.setenv("ARCHVIZ_SETTINGS_PATH", str(tmp_path / "settings.json"))
    monkeypatch.setenv("GEMINI_API_KEY", "process-key")
    for name in ("ARCHVIZ_STANDARD_MODEL", "ARCHVIZ_PREMIUM_MODEL", "ARCHVIZ_ANALYSIS_MODEL"):
        monkeypatch.delenv(name, raising=False)
    return tmp_path


def test_styles_lists_one_catalog(capsys: pytest.CaptureFixture[str]) -> None:
    args = _build_parser().parse_args(["styles", "render_style"])

    assert _handle_styles(args) == 0

    out = capsys.readouterr().out
    assert "[render_style]" in out
    assert "photo" in out
    assert "[scene]" not in out


def test_generate_dryrun_saves_image(cli_env: Path, capsys: pytest.CaptureFixture[str]) -> None:
    out_dir = cli_env / "out"
    args = _build_parser().parse_args(["generate", "--out", str(out_dir), "--text", "villa by a lake"])

    assert _handle_generate(args) == 0

    assert (out_dir / "gen-0001.png").exists()
    types = [json.loads(line)["type"] for line in (out_dir / "events.jsonl").read_text().splitlines()]
    assert types[0] == "session_started"
    assert "generation_succeeded" in types
    assert "Saved" in capsys.readouterr().out


def test_generate_reports_validation_message(cli_env: Path, capsys: pytest.CaptureFixture[str]) -> None:
    args = _build_parser().parse_args(["generate", "--out", str(cli_env / "out")])

    assert _handle_generate(args) == 1

    assert "Please select a style or enter a description." in capsys.readouterr().out


def test_generate_premium_downgrade_is_printed(cli_env: Path, capsys: pytest.CaptureFixture[str]) -> None:
    quota_args = _build_parser().parse_args(["quota", "--identity", "ana@example.com", "--set-limit", "0"])
    assert _handle_quota(quota_args) == 0
    capsys.readouterr()

    args = _build_parser().parse_args(
        [
            "generate",
            "--out",
            str(cli_env / "out"),
            "--arch-style",
            "modern",
            "--tier",
            "premium",
            "--identity",
            "ana@example.com",
        ]
    )

    assert _handle_generate(args) == 0
    out = capsys.readouterr().out
    assert "Daily Quota Exceeded. Switched to Standard Mode." in out
    assert "(standard)" in out


def test_quota_set_and_show(cli_env: Path, capsys: pytest.CaptureFixture[str]) -> None:
    args = _build_parser().parse_args(["quota", "--identity", "ana@example.com", "--set-limit", "50"])

    assert _handle_quota(args) == 0

    summary = json.loads(capsys.readouterr().out)
    assert summary["plan"] == "PRO PLAN"
    assert summary["remaining"] == 50


def test_quota_rejects_negative_limit(cli_env: Path) -> None:
    args = _build_parser().parse_args(["quota", "--identity", "ana@example.com", "--set-limit", "-1"])

    assert _handle_quota(args) == 2


def test_quota_set_limit_keeps_privileged_flag(cli_env: Path, capsys: pytest.CaptureFixture[str]) -> None:
    parser = _build_parser()
    store = QuotaStore(cli_env / "quota.sqlite")

    grant = parser.parse_args(["quota", "--identity", "admin", "--set-limit", "10", "--privileged"])
    assert _handle_quota(grant) == 0
    assert store.get_record("admin").is_privileged is True

    assert _handle_quota(parser.parse_args(["quota", "--identity", "admin", "--set-limit", "5"])) == 0
    record = store.get_record("admin")
    assert record.daily_limit == 5
    assert record.is_privileged is True

    clear = parser.parse_args(["quota", "--identity", "admin", "--set-limit", "5", "--no-privileged"])
    assert _handle_quota(clear) == 0
    assert store.get_record("admin").is_privileged is False


def test_generate_reports_model_collision(
    cli_env: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setenv("ARCHVIZ_STANDARD_MODEL", "gemini-3-pro-image-preview")
    args = _build_parser().parse_args(["generate", "--out", str(cli_env / "out"), "--text", "villa"])

    assert _handle_generate(args) == 1

    assert "Model configuration is invalid" in capsys.readouterr().out
    assert not (cli_env / "out" / "gen-0001.png").exists()
