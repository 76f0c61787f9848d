# ABOUTME: Provides a CLI that builds adaptive multiplication sessions from a learner's answer history.
# ABOUTME: Also reports weak numbers and per-session scores so the weighting can be inspected.

import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from src.adaptive.config import DEFAULT_CONFIG, GeneratorConfig, load_generator_config, make_rng
from src.adaptive.frequency import analyze_wrong_answers, rank_weak_operands
from src.adaptive.session import generate_session_problems
from src.common.errors import FlashcardError
from src.common.history import InMemorySessionHistory, load_answer_frame
from src.common.schemas import SessionSettings
from src.common.scoring import (
    aggregate_session_stats,
    completion_rate,
    find_most_missed_problem,
    find_strong_numbers,
    session_stats_frame,
)

console = Console()
app = typer.Typer(help="Adaptive multiplication flash cards driven by recent wrong answers.")


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Show generator diagnostics.")) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def _parse_numbers(raw: str) -> List[int]:
    try:
        return [int(part) for part in raw.split(",") if part.strip()]
    except ValueError as exc:
        raise typer.BadParameter(f"Expected comma-separated integers, got '{raw}'", param_hint="--numbers") from exc


def _load_history(answers_path: Optional[Path]) -> InMemorySessionHistory:
    if answers_path is None:
        return InMemorySessionHistory()
    if not answers_path.exists():
        console.print(f"[red]Missing answers file at {answers_path}[/red]")
        raise typer.Exit(code=1)
    try:
        return InMemorySessionHistory.from_frame(load_answer_frame(answers_path))
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--answers-path") from exc


def _load_config(config_path: Optional[Path], seed: Optional[int]) -> GeneratorConfig:
    config = DEFAULT_CONFIG
    if config_path is not None:
        try:
            config = load_generator_config(config_path)
        except FlashcardError as exc:
            raise typer.BadParameter(str(exc), param_hint="--config") from exc
    if seed is not None:
        config = GeneratorConfig(**{**config.to_dict(), "seed": seed})
    return config


@app.command()
def generate(
    learner_id: str = typer.Option(..., "--learner-id", help="Learner whose history drives the weighting."),
    numbers: str = typer.Option("1,2,3,4,5,6,7,8,9,10,11,12", "--numbers", help="Comma-separated first operands."),
    cards: int = typer.Option(20, "--cards", help="Cards requested for the session."),
    answers_path: Optional[Path] = typer.Option(None, "--answers-path", help="Answer history (.parquet, .csv, .json)."),
    config_path: Optional[Path] = typer.Option(None, "--config", help="Generator config YAML."),
    seed: Optional[int] = typer.Option(None, "--seed", help="Seed for reproducible sessions."),
) -> None:
    """
    Build one session of unique facts biased toward the learner's weak numbers.
    """
    history = _load_history(answers_path)
    config = _load_config(config_path, seed)
    settings = SessionSettings(included_numbers=_parse_numbers(numbers), cards_per_session=cards)

    try:
        problem_set = generate_session_problems(settings, learner_id, history, rng=make_rng(config), config=config)
    except FlashcardError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)

    console.rule(f"[bold blue]Session for {learner_id}[/bold blue]")
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("#")
    table.add_column("Problem")
    table.add_column("Answer")
    for index, fact in enumerate(problem_set, start=1):
        table.add_row(str(index), fact.key, str(fact.correct_answer))
    console.print(table)

    if problem_set.is_complete:
        console.print(f"[green]Generated {problem_set.actual} of {problem_set.requested} cards[/green]")
    else:
        console.print(
            f"[yellow]Generated {problem_set.actual} of {problem_set.requested} cards "
            f"(only {problem_set.max_unique} unique facts available)[/yellow]"
        )


@app.command("weak-numbers")
def weak_numbers(
    learner_id: str = typer.Option(..., "--learner-id", help="Learner to analyze."),
    answers_path: Path = typer.Option(..., "--answers-path", help="Answer history (.parquet, .csv, .json)."),
    window: int = typer.Option(DEFAULT_CONFIG.history_window, "--window", help="Recent sessions to analyze."),
    limit: int = typer.Option(5, "--limit", help="Weak numbers to list."),
) -> None:
    """
    Show wrong-answer frequencies per number over the recent history window.
    """
    history = _load_history(answers_path)
    sessions = history.fetch_recent_sessions(learner_id, window)
    if not sessions:
        console.print(f"[yellow]No sessions for {learner_id}; generation will be uniform.[/yellow]")
        return

    frequencies = analyze_wrong_answers(sessions)
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Number")
    table.add_column("Wrong answers")
    table.add_column("Weight")
    for operand, count in frequencies.items():
        table.add_row(str(operand), str(count), str(count + 1))
    console.print(table)

    ranked = rank_weak_operands(frequencies, limit=limit)
    if ranked:
        console.print("[bold]Weakest:[/] " + ", ".join(f"{operand} ({count})" for operand, count in ranked))
    else:
        console.print("[green]✅ No wrong answers in recent sessions[/green]")


@app.command()
def report(
    learner_id: str = typer.Option(..., "--learner-id", help="Learner to report on."),
    answers_path: Path = typer.Option(..., "--answers-path", help="Answer history (.parquet, .csv, .json)."),
) -> None:
    """
    Per-session scores plus aggregate statistics for a learner.
    """
    history = _load_history(answers_path)
    sessions = history.sessions_for(learner_id)
    if not sessions:
        console.print(f"[yellow]No sessions for {learner_id}[/yellow]")
        raise typer.Exit(code=1)

    frame = session_stats_frame(sessions)
    table = Table(show_header=True, header_style="bold magenta")
    for column in ("session_id", "timestamp", "score", "total_cards", "percentage", "excluded_count"):
        table.add_column(column)
    for _, row in frame.iterrows():
        table.add_row(
            str(row["session_id"]),
            str(row["timestamp"]),
            str(row["score"]),
            str(row["total_cards"]),
            f"{row['percentage']:.1f}",
            str(row["excluded_count"]),
        )
    console.print(table)

    summary = aggregate_session_stats(sessions)
    console.print(
        f"[bold]Sessions:[/] {summary.total_sessions}  [bold]Average:[/] {summary.average_score:.1f}%  "
        f"[bold]Best:[/] {summary.best_score:.1f}%  [bold]Worst:[/] {summary.worst_score:.1f}%"
    )
    console.print(f"[bold]Completed:[/] {completion_rate(sessions):.1f}%")
    strong = find_strong_numbers(sessions)
    if strong:
        console.print("[bold]Strongest:[/] " + ", ".join(str(n) for n in strong))
    most_missed = find_most_missed_problem(sessions)
    if most_missed:
        console.print(f"[bold]Most missed:[/] {most_missed}")


if __name__ == "__main__":
    app()
