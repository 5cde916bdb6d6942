"""CLI entrypoint for the catalog importer."""

from __future__ import annotations

import asyncio
import base64
import json
import os
from pathlib import Path
from typing import Optional

import requests
import typer

from catalog_import.importer.sources import scan_directory
from catalog_import.importer.types import ImportPolicy, RawEntry

app = typer.Typer(name="catimp", help="Catalog folder import command-line interface")

DEFAULT_HOST = "http://127.0.0.1:8000"


def _resolve_host(override: Optional[str]) -> str:
    if override:
        return override.rstrip('/')
    env_host = os.environ.get("CATIMP_HOST")
    if env_host:
        return env_host.rstrip('/')
    return DEFAULT_HOST


def _request(method: str, path: str, host: Optional[str] = None, **kwargs) -> requests.Response:
    base = _resolve_host(host)
    url = f"{base}{path}"
    resp = requests.request(method, url, timeout=300, **kwargs)
    if not resp.ok:
        try:
            detail = resp.json()
        except ValueError:
            detail = resp.text
        typer.echo(f"Request failed ({resp.status_code}): {detail}", err=True)
        raise typer.Exit(code=1)
    return resp


async def _encode_entries(entries: list[RawEntry]) -> list[dict[str, object]]:
    payload: list[dict[str, object]] = []
    for entry in entries:
        item: dict[str, object] = {"relative_path": entry.relative_path, "is_directory": entry.is_directory}
        if entry.reader is not None:
            item["content_b64"] = base64.b64encode(await entry.reader()).decode("ascii")
        payload.append(item)
    return payload


def _folder_payload(path: Path) -> list[dict[str, object]]:
    try:
        entries = scan_directory(path)
    except NotADirectoryError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=2) from exc
    return asyncio.run(_encode_entries(entries))


@app.command("import")
def import_folder(
    path: Path = typer.Argument(..., help="Folder whose sub-folders are stages"),
    policy: ImportPolicy = typer.Option(ImportPolicy.MERGE, "--policy", help="merge, replace or preview"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Import a folder tree into the catalog."""
    body = {"entries": _folder_payload(path), "policy": policy.value}
    resp = _request("POST", "/imports", host=host, json=body)
    typer.echo(json.dumps(resp.json(), indent=2, ensure_ascii=False))


@app.command()
def preview(
    path: Path = typer.Argument(..., help="Folder whose sub-folders are stages"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Show the inferred tree and what a merge would do, without writing."""
    session = _request("POST", "/imports/sessions", host=host, json={"entries": _folder_payload(path)}).json()
    report = _request(
        "POST",
        f"/imports/sessions/{session['session_id']}/commit",
        host=host,
        json={"policy": ImportPolicy.PREVIEW.value},
    ).json()
    _request("DELETE", f"/imports/sessions/{session['session_id']}", host=host)
    typer.echo(json.dumps({"stats": session["stats"], "report": report}, indent=2, ensure_ascii=False))


@app.command()
def catalog(
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Print the current catalog tree."""
    resp = _request("GET", "/catalog", host=host)
    typer.echo(json.dumps(resp.json(), indent=2, ensure_ascii=False))


if __name__ == "__main__":
    app()
