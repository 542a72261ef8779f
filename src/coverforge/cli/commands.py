"""CLI commands for coverforge."""

from __future__ import annotations

import json
import logging
import sys
import warnings
from pathlib import Path
from typing import Any, NoReturn

import click
import yaml
from pydantic import ValidationError

from coverforge.config import GenerationSettings, load_settings
from coverforge.coverage import CoverageStats, measure_coverage
from coverforge.engines import DEFAULT_STRENGTH, GenerationResult, create_engine
from coverforge.errors import (
    ConfigurationError,
    CoverForgeError,
    ErrorCode,
    ErrorContext,
    PartialCoverageWarning,
)
from coverforge.model import Model, load_model

EXIT_SUCCESS = 0
EXIT_CONFIG_ERROR = 2
EXIT_PARTIAL_COVERAGE = 3


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity level."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option("--config", "-c", type=click.Path(exists=True), help="Path to settings file")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, config: str | None) -> None:
    """coverforge - constrained covering array generator."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config
    ctx.obj["verbose"] = verbose

    setup_logging(verbose)


def _fail_config(error: CoverForgeError) -> NoReturn:
    click.echo(error.format_verbose(), err=True)
    sys.exit(EXIT_CONFIG_ERROR)


def _resolve_settings(ctx: click.Context, model: Model, **overrides: Any) -> GenerationSettings:
    """Merge settings: CLI options > model ``settings:`` > env > settings file."""
    try:
        base = load_settings(ctx.obj.get("config_path"))
        data = base.model_dump()
        data.update(model.settings)
        data.update({k: v for k, v in overrides.items() if v is not None})
        if ctx.obj.get("verbose"):
            data["verbose"] = True
        return GenerationSettings(**data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid settings: {e}", cause=e) from e


@cli.command()
@click.argument("model_path", type=click.Path(exists=True))
@click.option("--engine", "-e", type=click.Choice(["aetg", "ipo"]), default=None, help="Engine")
@click.option("--strength", "-t", type=int, default=None, help="Interaction strength")
@click.option("--seed", "-s", type=int, default=None, help="Random seed")
@click.option("--trials", "trial_budget", type=int, default=None, help="AETG candidates per row")
@click.option("--shuffle", "shuffle_remaining", is_flag=True, help="Shuffle fill order after the seed")
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(["table", "json", "yaml"]),
    default="table",
    help="Output format",
)
@click.option("--strict", is_flag=True, help="Exit 3 when coverage is partial")
@click.pass_context
def generate(
    ctx: click.Context,
    model_path: str,
    engine: str | None,
    strength: int | None,
    seed: int | None,
    trial_budget: int | None,
    shuffle_remaining: bool,
    output_format: str,
    strict: bool,
) -> None:
    """Generate a covering test suite for MODEL_PATH."""
    try:
        model = load_model(model_path)
        settings = _resolve_settings(
            ctx,
            model,
            engine=engine,
            strength=strength,
            seed=seed,
            trial_budget=trial_budget,
            shuffle_remaining=shuffle_remaining or None,
            strict=strict or None,
        )
        generator = create_engine(model.space, model.constraints, settings)
    except ConfigurationError as e:
        _fail_config(e)

    with warnings.catch_warnings():
        warnings.simplefilter("ignore", PartialCoverageWarning)
        result = generator.generate()

    if output_format == "json":
        click.echo(json.dumps(result.to_dict(), indent=2, default=str))
    elif output_format == "yaml":
        click.echo(yaml.safe_dump(result.to_dict(), sort_keys=False))
    else:
        _print_result(result, settings)

    if settings.strict and not result.complete:
        sys.exit(EXIT_PARTIAL_COVERAGE)
    sys.exit(EXIT_SUCCESS)


def _print_result(result: GenerationResult, settings: GenerationSettings) -> None:
    """Print the suite as a rich table followed by a coverage summary."""
    from rich.console import Console
    from rich.table import Table

    console = Console()

    table = Table(title=f"{settings.strength}-wise suite ({result.engine})")
    table.add_column("#", justify="right", style="dim")
    for name in result.suite.factor_names:
        table.add_column(name, style="cyan")
    for i, row in enumerate(result.suite, 1):
        table.add_row(str(i), *(str(row[name]) for name in result.suite.factor_names))
    console.print(table)

    covered = result.initial_frontier_size - result.uncovered_count
    console.print(
        f"{len(result.suite)} rows, {covered}/{result.initial_frontier_size} target tuples covered"
        f" ({result.excluded_by_constraints} excluded by constraints)"
    )
    if result.complete:
        console.print("[green]Coverage complete[/green]")
    else:
        console.print(f"[yellow]Partial coverage: {result.uncovered_count} tuple(s) uncovered[/yellow]")
        for t in result.residue:
            console.print(f"  - {t.description}")


def _load_rows(path: Path) -> list[dict[str, Any]]:
    """Load suite rows from a JSON or YAML file.

    Accepts a list of mappings or a generate output with a ``rows`` key.
    """
    with open(path) as f:
        text = f.read()

    try:
        if path.suffix == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Suite file {path} could not be parsed: {e}", cause=e) from e

    if isinstance(data, dict) and "rows" in data:
        data = data["rows"]
    if not isinstance(data, list) or not all(isinstance(r, dict) for r in data):
        raise ConfigurationError(f"Suite file {path} must contain a list of rows")
    return data


@cli.command()
@click.argument("model_path", type=click.Path(exists=True))
@click.argument("suite_path", type=click.Path(exists=True))
@click.option("--strength", "-t", type=int, default=None, help="Interaction strength")
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format",
)
def verify(model_path: str, suite_path: str, strength: int | None, output_format: str) -> None:
    """Measure how well SUITE_PATH covers MODEL_PATH."""
    try:
        model = load_model(model_path)
        rows = _load_rows(Path(suite_path))
        t = strength if strength is not None else model.settings.get("strength", DEFAULT_STRENGTH)
        if isinstance(t, bool) or not isinstance(t, int) or not 1 <= t <= len(model.space):
            raise ConfigurationError(
                f"Strength {t} must be between 1 and the number of factors ({len(model.space)})",
                error_code=ErrorCode.INVALID_STRENGTH,
                context=ErrorContext(strength=t if isinstance(t, int) else None),
            )
        stats = measure_coverage(rows, model.space, t, model.constraints)
    except CoverForgeError as e:
        _fail_config(e)

    if output_format == "json":
        click.echo(json.dumps(_stats_dict(stats), indent=2))
    else:
        click.echo(repr(stats))
        if stats.excluded_by_constraints:
            click.echo(f"{stats.excluded_by_constraints} tuple(s) excluded by constraints")

    sys.exit(EXIT_SUCCESS if stats.complete else EXIT_PARTIAL_COVERAGE)


def _stats_dict(stats: CoverageStats) -> dict[str, Any]:
    return {
        "strength": stats.strength,
        "total_tuples": stats.total_tuples,
        "covered_tuples": stats.covered_tuples,
        "uncovered_tuples": stats.uncovered_tuples,
        "coverage_pct": stats.coverage_pct,
        "test_count": stats.test_count,
        "excluded_by_constraints": stats.excluded_by_constraints,
    }
