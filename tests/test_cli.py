import json

import pytest

from ux_review import cli
from ux_review.errors import Busy


class _StubOrchestrator:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.shutdown_calls = 0

    async def analyze(self, url):
        if self.error is not None:
            raise self.error
        return self.result

    async def check_health(self, include_llm=False):
        return {"backend": "ok", "screenshot": "ok", "overall": "healthy"}

    async def shutdown(self):
        self.shutdown_calls += 1


class _StubResult:
    def to_dict(self):
        return {"url": "https://example.com/", "score": 80}


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch, tmp_path):
    monkeypatch.setattr(cli, "configure_logging", lambda level: tmp_path / "log")


def test_cli_prints_result_json(monkeypatch, capsys):
    stub = _StubOrchestrator(result=_StubResult())
    monkeypatch.setattr(cli, "build_orchestrator", lambda: stub)

    assert cli.main(["https://example.com/"]) == 0

    assert json.loads(capsys.readouterr().out)["score"] == 80
    assert stub.shutdown_calls == 1


def test_cli_reports_stage_on_failure(monkeypatch, capsys):
    stub = _StubOrchestrator(error=Busy("Scraper is busy"))
    monkeypatch.setattr(cli, "build_orchestrator", lambda: stub)

    assert cli.main(["https://example.com/"]) == 3

    assert json.loads(capsys.readouterr().err) == {"error": "Scraper is busy", "stage": "capacity"}
    assert stub.shutdown_calls == 1


def test_cli_health(monkeypatch, capsys):
    monkeypatch.setattr(cli, "build_orchestrator", lambda: _StubOrchestrator())

    assert cli.main(["--health"]) == 0
    assert json.loads(capsys.readouterr().out)["overall"] == "healthy"


def test_cli_requires_url_or_health():
    with pytest.raises(SystemExit):
        cli.main([])
