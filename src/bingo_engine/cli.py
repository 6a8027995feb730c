from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Any, Dict

import typer

from .config import build_engine_config, compute_params_hash, resolve_parameters
from .errors import BingoError
from .logging_setup import setup_logging
from .serialize import build_match_record, build_run_meta, emit_calls_csv, emit_match_record, load_record
from .simulate import simulate_match, simulate_match_realtime
from .verify import verify_record
from .version import __version__

app = typer.Typer(help="75-ball bingo engine: headless matches and record verification")


@app.callback(invoke_without_command=True)
def common_options(
    version: bool = typer.Option(
        False, "--version", help="Show application version and exit", is_eager=True
    ),
) -> None:
    if version:
        typer.echo(__version__)
        raise typer.Exit(0)


@app.command()
def simulate(
    config: str = typer.Option(None, "--config", help="Path to config file (YAML/JSON)"),
    players: int = typer.Option(None, "--players", help="Number of bot players"),
    seed: int = typer.Option(None, "--seed", help="Seed for cards and calls"),
    rng_engine: str = typer.Option(None, "--rng-engine", help="py_random|numpy_pcg64"),
    cards_per_player: int = typer.Option(None, "--cards-per-player", help="Cards dealt to each player"),
    blackout: bool = typer.Option(False, "--blackout", help="Also accept a full card as a win"),
    realtime: bool = typer.Option(False, "--realtime", help="Run on the wall clock instead of a virtual one"),
    out_record: str = typer.Option(None, "--out-record", help="Match record JSON output path"),
    calls_csv: str = typer.Option(None, "--calls-csv", help="Call log CSV output path"),
    log_file: str = typer.Option(None, "--log-file", help="Log file path"),
    log_level: str = typer.Option(None, "--log-level", help="DEBUG|INFO|WARN|ERROR"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Resolve params and exit"),
    force: bool = typer.Option(False, "--force", help="Overwrite outputs if they exist"),
    no_mkdirs: bool = typer.Option(False, "--no-mkdirs", help="Do not create parent directories"),
) -> None:
    """Play one match between bots and report the outcome."""

    cli_overrides: Dict[str, Any] = {}
    if players is not None:
        cli_overrides["players"] = players
    if seed is not None:
        cli_overrides["seed.value"] = seed
    if rng_engine:
        cli_overrides["seed.engine"] = rng_engine
    if cards_per_player is not None:
        cli_overrides["cards_per_player"] = cards_per_player
    if out_record:
        cli_overrides["out_record"] = out_record
    if calls_csv:
        cli_overrides["calls_csv"] = calls_csv
    if log_file:
        cli_overrides["log_file"] = log_file
    if log_level:
        cli_overrides["log_level"] = log_level

    resolved, params_hash, _cfg_path = resolve_parameters(config_path_str=config, cli_overrides=cli_overrides)
    if blackout and "blackout" not in resolved["win_patterns"]:
        resolved["win_patterns"] = list(resolved["win_patterns"]) + ["blackout"]
        params_hash = compute_params_hash(resolved)

    setup_logging(
        level=str(resolved.get("log_level", "INFO")),
        log_file=resolved.get("log_file"),
        json_format=(str(resolved.get("log_format", "text")) == "json"),
    )

    try:
        engine_config = build_engine_config(resolved)
    except ValueError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=2)

    if dry_run:
        typer.echo(f"Params hash: {params_hash}")
        raise typer.Exit(0)

    n_players = int(resolved.get("players", 2))
    reaction = float(resolved.get("reaction_sec", 0.5))
    try:
        if realtime:
            result = asyncio.run(simulate_match_realtime(engine_config, players=n_players, reaction_sec=reaction))
        else:
            result = simulate_match(engine_config, players=n_players, reaction_sec=reaction)
    except BingoError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=2)

    match = result.match
    if match.winner:
        typer.echo(f"Winner: {match.winner} ({match.win_pattern}) on {match.winning_card}")
    else:
        typer.echo(f"No winner ({match.end_reason})")
    typer.echo(f"Calls: {len(match.drawn)} in {result.elapsed:.1f}s of game time")

    if resolved.get("out_record"):
        run_meta = build_run_meta(
            app_version=__version__,
            params_hash=params_hash,
            seed=engine_config.seed,
            rng_engine=engine_config.rng_engine,
        )
        record = build_match_record(match, run_meta=run_meta)
        emit_match_record(Path(resolved["out_record"]), record=record, mkdirs=(not no_mkdirs), overwrite=force)
        typer.echo(f"Record: {resolved['out_record']}")
    if resolved.get("calls_csv"):
        emit_calls_csv(Path(resolved["calls_csv"]), match=match, mkdirs=(not no_mkdirs), overwrite=force)

    raise typer.Exit(code=0)


@app.command()
def verify(
    record: str = typer.Option(..., "--record", help="Path to a match record JSON"),
    no_replay: bool = typer.Option(False, "--no-replay", help="Skip regenerating cards and calls from the seed"),
) -> None:
    """Re-check a match record: card invariants, hashes, calls and the claimed win."""
    report = verify_record(load_record(Path(record)), replay_seed=not no_replay)
    for err in report["errors"]:  # type: ignore[union-attr]
        typer.echo(f"FAIL {err}", err=True)
    if not report["ok"]:
        raise typer.Exit(code=1)
    typer.echo(f"OK: {report['cards_checked']} cards, {report['calls_checked']} calls")
    raise typer.Exit(code=0)


def main(_argv: list[str] | None = None) -> int:
    try:
        app(standalone_mode=True)
        return 0
    except SystemExit as e:
        return int(e.code) if e.code is not None else 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
