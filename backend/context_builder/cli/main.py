"""CLI entrypoint for Context Builder."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Optional

import requests
import typer

from context_builder.cache.store import ExpiringCache
from context_builder.core.config import Settings
from context_builder.core.logging import configure_from_settings
from context_builder.ingest.embeddings import build_gateway
from context_builder.models.dto import DocumentIn
from context_builder.retrieval import ContextAssembler

app = typer.Typer(name="ctxb", help="Context Builder command-line interface")

DEFAULT_HOST = "http://127.0.0.1:5180"


def _resolve_host(override: Optional[str]) -> str:
    if override:
        return override.rstrip('/')
    env_host = os.environ.get("CTXB_HOST")
    if env_host:
        return env_host.rstrip('/')
    return DEFAULT_HOST


def _request(method: str, path: str, host: Optional[str] = None, **kwargs) -> requests.Response:
    base = _resolve_host(host)
    url = f"{base}{path}"
    resp = requests.request(method, url, timeout=60, **kwargs)
    if not resp.ok:
        try:
            detail = resp.json()
        except ValueError:
            detail = resp.text
        typer.echo(f"Request failed ({resp.status_code}): {detail}", err=True)
        raise typer.Exit(code=1)
    return resp


def _load_documents(path: Path) -> list[dict[str, Any]]:
    """Read a JSON array of documents, validating each entry."""
    raw = json.loads(path.expanduser().read_text(encoding="utf-8"))
    if not isinstance(raw, list):
        typer.echo("Documents file must contain a JSON array", err=True)
        raise typer.Exit(code=1)
    return [DocumentIn.model_validate(item).model_dump(mode="json") for item in raw]


@app.command()
def context(
    query: str = typer.Argument(..., help="User query"),
    docs: Path = typer.Option(..., "--docs", help="JSON file with candidate documents"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Ask the server to build a context."""
    payload = {"query": query, "documents": _load_documents(docs)}
    resp = _request("POST", "/context", host=host, json=payload)
    typer.echo(json.dumps(resp.json(), indent=2, ensure_ascii=False))


@app.command()
def local(
    query: str = typer.Argument(..., help="User query"),
    docs: Path = typer.Option(..., "--docs", help="JSON file with candidate documents"),
    config: Optional[Path] = typer.Option(None, "--config", help="YAML settings file"),
) -> None:
    """Build a context in-process, without a server."""
    settings = Settings.from_yaml(config)
    configure_from_settings(settings)
    assembler = ContextAssembler(
        embeddings=build_gateway(settings),
        store=ExpiringCache(),
        settings=settings.context_settings(),
    )
    documents = [DocumentIn.model_validate(item).to_entity() for item in _load_documents(docs)]
    result = assembler.build(documents, query)
    typer.echo(result.text)


@app.command()
def compact(
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Evict every entry from the server cache."""
    resp = _request("POST", "/cache/compact", host=host)
    typer.echo(json.dumps(resp.json(), indent=2))


if __name__ == "__main__":
    app()
