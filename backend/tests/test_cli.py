"""CLI tests with the HTTP layer faked out."""

from __future__ import annotations

import base64
import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from catalog_import.cli import main as cli

runner = CliRunner()


class _FakeResponse:
    def __init__(self, payload: dict, status_code: int = 200) -> None:
        self._payload = payload
        self.status_code = status_code
        self.ok = status_code < 400
        self.text = json.dumps(payload)

    def json(self) -> dict:
        return self._payload


@pytest.fixture
def calls(monkeypatch: pytest.MonkeyPatch) -> list[tuple[str, str, dict]]:
    recorded: list[tuple[str, str, dict]] = []

    def _fake_request(method: str, url: str, timeout: int, **kwargs) -> _FakeResponse:
        recorded.append((method, url, kwargs))
        if url.endswith("/imports/sessions"):
            return _FakeResponse({"session_id": "ses_1", "stats": {"files": 1}})
        if url.endswith("/catalog") and method == "GET":
            return _FakeResponse({"detail": "boom"}, status_code=500)
        return _FakeResponse({"files": {"imported": 1}})

    monkeypatch.setattr(cli.requests, "request", _fake_request)
    monkeypatch.delenv("CATIMP_HOST", raising=False)
    return recorded


def _folder(tmp_path: Path) -> Path:
    heading = tmp_path / "CAT1" / "P.SPORTIF" / "Basketball" / "Techniques"
    heading.mkdir(parents=True)
    (heading / "bases.pptx").write_bytes(b"slides")
    return tmp_path


def test_import_posts_encoded_folder(tmp_path: Path, calls) -> None:
    result = runner.invoke(cli.app, ["import", str(_folder(tmp_path)), "--policy", "replace"])
    assert result.exit_code == 0, result.output

    method, url, kwargs = calls[0]
    assert (method, url) == ("POST", "http://127.0.0.1:8000/imports")
    body = kwargs["json"]
    assert body["policy"] == "replace"
    files = [item for item in body["entries"] if not item["is_directory"]]
    assert files[0]["relative_path"] == "CAT1/P.SPORTIF/Basketball/Techniques/bases.pptx"
    assert base64.b64decode(files[0]["content_b64"]) == b"slides"


def test_preview_opens_commits_and_discards_a_session(tmp_path: Path, calls) -> None:
    result = runner.invoke(cli.app, ["preview", str(_folder(tmp_path)), "--host", "http://api:9000/"])
    assert result.exit_code == 0, result.output
    assert [(method, url) for method, url, _ in calls] == [
        ("POST", "http://api:9000/imports/sessions"),
        ("POST", "http://api:9000/imports/sessions/ses_1/commit"),
        ("DELETE", "http://api:9000/imports/sessions/ses_1"),
    ]
    assert calls[1][2]["json"] == {"policy": "preview"}


def test_failed_request_exits_non_zero(calls) -> None:
    result = runner.invoke(cli.app, ["catalog"])
    assert result.exit_code == 1


def test_import_rejects_missing_folder(tmp_path: Path, calls) -> None:
    result = runner.invoke(cli.app, ["import", str(tmp_path / "missing")])
    assert result.exit_code == 2
    assert calls == []
