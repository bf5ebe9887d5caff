# tests/test_print_latest_postings.py
import importlib.util
from pathlib import Path

import pytest

from modules.job_scrape.lib import config

SCRIPT = Path(__file__).resolve().parent.parent / "scripts" / "print_latest_postings.py"


def _load():
    spec = importlib.util.spec_from_file_location("print_latest_postings", SCRIPT)
    mod = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(mod)
    return mod


@pytest.fixture
def script():
    return _load()


def test_default_db_is_the_service_default(monkeypatch):
    monkeypatch.delenv("JOB_SCRAPE_SQLITE_PATH", raising=False)
    assert _load().DEFAULT_DB == config.DEFAULT_SQLITE_PATH


def test_default_db_follows_env(monkeypatch, tmp_path):
    monkeypatch.setenv("JOB_SCRAPE_SQLITE_PATH", str(tmp_path / "x.db"))
    assert _load().DEFAULT_DB == str(tmp_path / "x.db")


def test_prints_latest_rows_for_platform(script, sqlite_gateway, mk_posting, capsys):
    sqlite_gateway.insert_postings([
        mk_posting("https://boards.greenhouse.io/acme/jobs/1", title="Data Engineer", company="Acme"),
        mk_posting("https://jobs.lever.co/initech/1", "lever", title="Sales Lead", company="Initech"),
    ])

    rc = script.main(["5", "--db", sqlite_gateway.sqlite_path, "--platform", "greenhouse"])

    out = capsys.readouterr().out
    assert rc == 0
    assert "Data Engineer" in out
    assert "Acme" in out
    assert "Sales Lead" not in out


def test_missing_db_is_reported_not_created(script, tmp_path, capsys):
    path = tmp_path / "absent.db"
    assert script.main(["--db", str(path)]) == 1
    assert "Database not found" in capsys.readouterr().out
    assert not path.exists()
