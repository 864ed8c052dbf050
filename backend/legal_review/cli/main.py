"""CLI entrypoint for the legal document review service."""

from __future__ import annotations

import base64
import json
import os
import time
from pathlib import Path
from typing import List, Optional

import requests
import typer
import uvicorn

app = typer.Typer(name="lgr", help="Legal document review command-line interface")
queue_app = typer.Typer(name="queue", help="Inspect the review queue")
cases_app = typer.Typer(name="cases", help="Manage confirmed cases")
app.add_typer(queue_app, name="queue")
rules_app = typer.Typer(name="rules", help="Manage the rule documents")
app.add_typer(cases_app, name="cases")
app.add_typer(rules_app, name="rules")

DEFAULT_HOST = "http://127.0.0.1:8000"


def _resolve_host(override: Optional[str]) -> str:
    if override:
        return override.rstrip("/")
    env_host = os.environ.get("LGR_HOST")
    if env_host:
        return env_host.rstrip("/")
    return DEFAULT_HOST


def _request(method: str, path: str, host: Optional[str] = None, **kwargs) -> requests.Response:
    base = _resolve_host(host)
    url = f"{base}{path}"
    # pipeline runs pace their upstream calls, so allow a generous timeout
    resp = requests.request(method, url, timeout=600, **kwargs)
    if not resp.ok:
        try:
            detail = resp.json().get("error", resp.text)
        except ValueError:
            detail = resp.text
        typer.echo(f"Request failed ({resp.status_code}): {detail}", err=True)
        raise typer.Exit(code=1)
    return resp


def _echo(resp: requests.Response) -> None:
    typer.echo(json.dumps(resp.json(), indent=2, ensure_ascii=False))


@app.command()
def run(
    entry_id: Optional[str] = typer.Option(None, "--id", help="Force analysis of one entry"),
    batch_size: Optional[int] = typer.Option(None, "--batch-size", help="Entries to take in auto mode"),
    reanalyze: bool = typer.Option(False, "--reanalyze", help="Re-run a processed entry"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Trigger the analysis pipeline."""
    body: dict[str, object] = {"reanalyze": reanalyze}
    if entry_id:
        body["entry_id"] = entry_id
    if batch_size:
        body["batch_size"] = batch_size
    _echo(_request("POST", "/pipeline/run", host=host, json=body))


@app.command()
def confirm(
    entry_id: str = typer.Argument(..., help="Queue entry id"),
    feedback: str = typer.Option("", "--feedback", help="Reviewer feedback"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Confirm an analysis and add it to the knowledge base."""
    _echo(_request("POST", f"/review/{entry_id}/confirm", host=host, json={"user_feedback": feedback}))


@app.command()
def train(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Document to analyze"),
    doc_type: str = typer.Option(..., "--doc-type", help="Document type"),
    mime_type: str = typer.Option("application/pdf", "--mime-type"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Run the comparative manual-training analysis on a local file."""
    payload = {
        "file_base64": base64.b64encode(path.read_bytes()).decode("ascii"),
        "mime_type": mime_type,
        "doc_type": doc_type,
        "file_name": path.name,
    }
    _echo(_request("POST", "/train/analyze", host=host, json=payload))


@app.command()
def poll(
    interval: float = typer.Option(60.0, "--interval", help="Seconds between scans"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Periodically queue new inbox files and analyze one entry per tick."""
    while True:
        _request("POST", "/queue/scan", host=host)
        resp = _request("POST", "/pipeline/run", host=host, json={})
        for outcome in resp.json().get("processed", []):
            typer.echo(f"{outcome['filename']}: {outcome['status']}")
        time.sleep(interval)


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Bind address"),
    port: int = typer.Option(8000, "--port", help="Bind port"),
) -> None:
    """Run the review service."""
    uvicorn.run("legal_review.app:app", host=host, port=port)


@queue_app.command("list")
def list_queue(
    status: Optional[List[str]] = typer.Option(None, "--status", help="Status filter (repeatable)"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """List queue entries."""
    _echo(_request("GET", "/queue", host=host, params={"status": status or []}))


@queue_app.command("count")
def count_queue(
    status: Optional[List[str]] = typer.Option(None, "--status", help="Status filter (repeatable)"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Count queue entries."""
    _echo(_request("GET", "/queue/count", host=host, params={"status": status or []}))


@queue_app.command("scan")
def scan_queue(host: Optional[str] = typer.Option(None, "--host", help="Override backend host")) -> None:
    """Queue files found in the inbox."""
    _echo(_request("POST", "/queue/scan", host=host))


@queue_app.command("upload")
def upload_document(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="PDF to store in the inbox"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Upload a document and queue it for analysis."""
    payload = {"filename": path.name, "file_base64": base64.b64encode(path.read_bytes()).decode("ascii")}
    _echo(_request("POST", "/queue/upload", host=host, json=payload))


@cases_app.command("list")
def list_cases(host: Optional[str] = typer.Option(None, "--host", help="Override backend host")) -> None:
    """List confirmed cases."""
    _echo(_request("GET", "/cases", host=host))


@cases_app.command("show")
def show_case(
    entry_id: str = typer.Argument(..., help="Case id"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Show a case from the knowledge base."""
    _echo(_request("GET", f"/cases/{entry_id}", host=host))


@cases_app.command("delete")
def delete_case(
    entry_id: str = typer.Argument(..., help="Case id"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Remove a case from the knowledge base and soft-delete its entry."""
    _echo(_request("DELETE", f"/cases/{entry_id}", host=host))


@cases_app.command("audit")
def audit_cases(
    repair: bool = typer.Option(False, "--repair", help="Fix ledger index flags"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Compare ledger index flags with the semantic store."""
    _echo(_request("POST", "/cases/audit", host=host, json={"repair": repair}))


@rules_app.command("reload")
def reload_rules(host: Optional[str] = typer.Option(None, "--host", help="Override backend host")) -> None:
    """Drop the cached rule documents and fetch them again."""
    _echo(_request("POST", "/admin/rules/reload", host=host))


if __name__ == "__main__":
    app()
