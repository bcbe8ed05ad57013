"""CLI entry point for pain-pattern-server."""

import json
from pathlib import Path
from typing import Any

import typer
import uvicorn

from pain_pattern_server import __version__
from pain_pattern_server.core.config import settings
from pain_pattern_server.core.logging import configure_logging
from pain_pattern_server.schemas.base import CamelModel
from pain_pattern_server.services.cleaning import clean_entries
from pain_pattern_server.services.clinical import ClinicalInsightsService
from pain_pattern_server.services.pattern import PatternAnalyzer

app = typer.Typer(
    name="pain-pattern-server",
    help="Offline pattern recognition and clinical insights for pain-tracking data",
    no_args_is_help=True,
)


def _read_json(path: Path, param_hint: str) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise typer.BadParameter(f"Cannot read {path}: {e.strerror}", param_hint=param_hint) from e
    except json.JSONDecodeError as e:
        raise typer.BadParameter(f"{path} is not valid JSON: {e.msg}", param_hint=param_hint) from e


def load_entries(path: Path) -> list[Any]:
    """Load entries from a JSON array or an ``{"entries": [...]}`` object.

    Raises:
        typer.BadParameter: If the file is unreadable or has another shape
    """
    data = _read_json(path, "FILE")
    if isinstance(data, dict):
        data = data.get("entries")
    if not isinstance(data, list):
        raise typer.BadParameter(
            f"{path} must contain a JSON array of entries or an object with 'entries'",
            param_hint="FILE",
        )
    return data


def load_config(path: Path | None) -> dict[str, Any] | None:
    """Load AnalysisConfig overrides from a JSON object file."""
    if path is None:
        return None
    data = _read_json(path, "--config")
    if not isinstance(data, dict):
        raise typer.BadParameter(f"{path} must contain a JSON object", param_hint="--config")
    return data


def _emit(model: CamelModel, output: Path | None) -> None:
    text = json.dumps(model.to_wire(), indent=2, ensure_ascii=False)
    if output is None:
        typer.echo(text)
    else:
        output.write_text(text + "\n", encoding="utf-8")
        typer.echo(f"Wrote {output}", err=True)


@app.command()
def serve(
    host: str = typer.Option(None, help="Host to bind to (overrides config)"),
    port: int = typer.Option(None, help="Port to bind to (overrides config)"),
    reload: bool = typer.Option(False, help="Enable auto-reload for development"),
) -> None:
    """Start the API server.

    Example:
        pain-pattern-server serve
        pain-pattern-server serve --host 0.0.0.0 --port 8080 --reload
    """
    uvicorn.run(
        "pain_pattern_server.app:app",
        host=host or settings.api_host,
        port=port or settings.api_port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


@app.command()
def analyze(
    file: Path = typer.Argument(..., help="JSON file with pain entries"),
    config: Path = typer.Option(None, "--config", help="JSON file with analysis options"),
    output: Path = typer.Option(None, "--output", "-o", help="Write the result here"),
) -> None:
    """Run the full pattern analysis on a file of entries.

    Example:
        pain-pattern-server analyze entries.json
        pain-pattern-server analyze entries.json --config options.json -o result.json
    """
    configure_logging()
    entries = load_entries(file)
    result = PatternAnalyzer(load_config(config)).analyze(entries)
    _emit(result, output)


@app.command()
def brief(
    file: Path = typer.Argument(..., help="JSON file with pain entries"),
    output: Path = typer.Option(None, "--output", "-o", help="Write the brief here"),
) -> None:
    """Generate the weekly clinical brief for a file of entries."""
    configure_logging()
    entries = clean_entries(load_entries(file), settings.get_timezone())
    _emit(ClinicalInsightsService().generate_weekly_clinical_brief(entries), output)


@app.command()
def version() -> None:
    """Show version information."""
    typer.echo(f"pain-pattern-server v{__version__}")


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
