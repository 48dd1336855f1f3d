import logging
from pathlib import Path

import pytest

from pst import main as cli
from pst.config import load_settings
from pst.domain.errors import ValidationError


def test_load_settings_defaults():
    settings = load_settings({})

    assert settings.backend == "sqlite"
    assert settings.db_path is None
    assert settings.log_level == logging.INFO
    assert settings.strict_stock is False


def test_load_settings_rest_backend():
    settings = load_settings(
        {
            "PST_BACKEND": "REST",
            "PST_REST_URL": "https://db.example.com",
            "PST_REST_KEY": "k",
            "PST_REST_TIMEOUT": "3.5",
            "PST_LOG_LEVEL": "debug",
            "PST_STRICT_STOCK": "yes",
        }
    )

    assert settings.backend == "rest"
    assert settings.rest_timeout == 3.5
    assert settings.log_level == logging.DEBUG
    assert settings.strict_stock is True


@pytest.mark.parametrize(
    "env",
    [
        {"PST_BACKEND": "mysql"},
        {"PST_BACKEND": "rest"},
        {"PST_REST_TIMEOUT": "soon"},
        {"PST_REST_TIMEOUT": "0"},
        {"PST_REST_TIMEOUT": "-1"},
        {"PST_REST_TIMEOUT": "nan"},
        {"PST_LOG_LEVEL": "LOUD"},
        {"PST_STRICT_STOCK": "maybe"},
    ],
)
def test_load_settings_rejects_bad_values(env):
    with pytest.raises(ValidationError):
        load_settings(env)


def test_cli_summary_and_export(tmp_path: Path, monkeypatch, capsys):
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("PST_DB_PATH", str(tmp_path / "cli.db"))

    assert cli.main(["summary"]) == 0
    assert "cash_position" in capsys.readouterr().out

    report = tmp_path / "out.xlsx"
    assert cli.main(["export", str(report)]) == 0
    assert report.exists()


def test_cli_reports_app_errors(tmp_path: Path, monkeypatch, capsys):
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("PST_BACKEND", "nope")

    assert cli.main(["summary"]) == 1
    assert "PST_BACKEND" in capsys.readouterr().err
