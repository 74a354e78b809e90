import json
from pathlib import Path

from click.testing import CliRunner

from bookharvest.cli import main
from bookharvest.config import Config
from bookharvest.harvest import HarvestReport, HarvestState
from bookharvest.models import Candidate


def _no_user_config(monkeypatch):
    monkeypatch.setattr("bookharvest.cli.load_config", lambda: Config())


def test_cli_init_writes_config(monkeypatch, tmp_path: Path):
    expected = tmp_path / "config.toml"
    _no_user_config(monkeypatch)

    def _fake_write_default_config(path=None, force=False):
        expected.write_text("[harvest]\nlimit = 3\n", encoding="utf-8")
        return expected

    monkeypatch.setattr("bookharvest.config.write_default_config", _fake_write_default_config)

    runner = CliRunner()
    result = runner.invoke(main, ["init"])

    assert result.exit_code == 0
    assert str(expected) in result.output


def test_cli_search_unknown_site_is_usage_error(monkeypatch):
    _no_user_config(monkeypatch)

    runner = CliRunner()
    result = runner.invoke(main, ["search", "Dune", "--site", "unknown_site"])

    assert result.exit_code == 2
    assert "Unknown target site" in result.output


def test_cli_search_json_output(monkeypatch):
    _no_user_config(monkeypatch)
    seen = {}

    async def _fake_harvest_with_report(task, config=None, client=None):
        seen["task"] = task
        seen["limit"] = config.limit
        return HarvestReport(
            task=task,
            results=[
                Candidate(
                    site="小立盘",
                    title="曾国藩传 - 张宏杰",
                    detail_url="https://www.xiaolipan.com/p/1496858.html",
                    download_url="https://www.xiaolipan.com/download/1496858.html",
                    relevance=60,
                )
            ],
            state=HarvestState.DONE,
            strategy="structured",
        )

    monkeypatch.setattr("bookharvest.cli.harvest_with_report", _fake_harvest_with_report)

    runner = CliRunner()
    result = runner.invoke(
        main,
        ["search", "曾国藩传", "-s", "xiaolipan", "-a", "张宏杰", "-n", "5", "--json"],
    )

    assert result.exit_code == 0
    assert json.loads(result.output)[0]["detailUrl"] == "https://www.xiaolipan.com/p/1496858.html"
    assert seen["task"].author == "张宏杰"
    assert seen["limit"] == 5


def test_cli_search_reports_no_results(monkeypatch):
    _no_user_config(monkeypatch)

    async def _fake_harvest_with_report(task, config=None, client=None):
        return HarvestReport(task=task, state=HarvestState.FAILED_EMPTY, error="HTTP 503")

    monkeypatch.setattr("bookharvest.cli.harvest_with_report", _fake_harvest_with_report)

    runner = CliRunner()
    result = runner.invoke(main, ["search", "Dune", "--site", "35ppt"])

    assert result.exit_code == 0
    assert "No results found" in result.output


def test_cli_sites_lists_builtin_adapters(monkeypatch):
    _no_user_config(monkeypatch)

    runner = CliRunner()
    result = runner.invoke(main, ["sites"])

    assert result.exit_code == 0
    for site_id in ("xiaolipan", "book5678", "35ppt"):
        assert site_id in result.output
