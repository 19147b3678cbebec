"""
Typer CLI for the algolab quiz algorithms.

Commands:
    algolab list                 - List algorithms by family
    algolab run NAME --input ... - Run one algorithm with JSON keyword arguments
    algolab quiz                 - Take a quiz driven by the selected algorithms

Usage:
    algolab --help
    algolab list --family rewardSystem
    algolab run Knapsack --input '{"weights": [1, 2, 3], "values": [6, 10, 12], "capacity": 5}'
    algolab run UCB --input '{"rewards": [1, 0], "counts": [1, 1], "total_count": 2}' --json
    algolab quiz --selection Knapsack --tracing HMM --auto --seed 7
"""

from __future__ import annotations

import inspect
import json
import random
import sys
from pathlib import Path
from typing import Optional

import typer
from loguru import logger
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import IntPrompt
from rich.table import Table

from config import Settings, get_settings
from algolab.algorithms import (
    AlgorithmFamily,
    AlgorithmName,
    InvalidInputError,
    explain,
    get_algorithm,
    list_algorithms,
    run_algorithm,
)
from algolab.session import (
    AlgorithmSelection,
    QuestionBankError,
    QuizSession,
    StudentProgress,
    load_question_bank,
)

app = typer.Typer(
    name="algolab",
    help="algolab: algorithm simulators behind an educational quiz",
    no_args_is_help=True,
)
console = Console()


# =============================================================================
# Styling
# =============================================================================

FAMILY_STYLES = {
    AlgorithmFamily.REVIEW_SCHEDULING: "cyan",
    AlgorithmFamily.QUESTION_SELECTION: "magenta",
    AlgorithmFamily.REWARD_SYSTEM: "yellow",
    AlgorithmFamily.KNOWLEDGE_TRACING: "green",
}


def style_family(family: AlgorithmFamily) -> str:
    color = FAMILY_STYLES.get(family, "white")
    return f"[{color}]{family.value}[/{color}]"


# =============================================================================
# Logging
# =============================================================================


def configure_logging(settings: Settings) -> None:
    """Route loguru to stderr (and an optional rotating file) at the configured level."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.log_level,
        format="<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | {message}",
    )
    if settings.log_file:
        logger.add(settings.log_file, level=settings.log_level, rotation="10 MB")


# =============================================================================
# Commands
# =============================================================================


@app.command("list")
def list_command(
    family: Optional[str] = typer.Option(
        None,
        "--family", "-f",
        help="Only show one family (reviewScheduling, questionSelection, rewardSystem, knowledgeTracing)",
    ),
) -> None:
    """List the available algorithms."""
    selected: AlgorithmFamily | None = None
    if family:
        try:
            selected = AlgorithmFamily(family)
        except ValueError:
            console.print(f"[red]Unknown family: {family}[/red]")
            raise typer.Exit(code=1)

    table = Table(title="Algorithms")
    table.add_column("Name", style="bold")
    table.add_column("Family")
    table.add_column("Parameters")
    table.add_column("Summary")

    for info in list_algorithms(selected):
        table.add_row(
            info.name.value,
            style_family(info.family),
            ", ".join(info.parameters),
            info.summary,
        )

    console.print(table)


@app.command("run")
def run_command(
    name: str = typer.Argument(..., help="Algorithm name, e.g. SM2 or ThompsonSampling"),
    input_json: str = typer.Option(
        "{}",
        "--input", "-i",
        help="Keyword arguments as a JSON object",
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the raw result as JSON"),
    correct: bool = typer.Option(
        True,
        "--correct/--incorrect",
        help="Answer outcome used when wording the explanation",
    ),
) -> None:
    """Run a single algorithm and show its result."""
    try:
        info = get_algorithm(name)
    except KeyError:
        console.print(f"[red]Unknown algorithm: {name}[/red]")
        raise typer.Exit(code=1)

    try:
        kwargs = json.loads(input_json)
    except json.JSONDecodeError as e:
        console.print(f"[red]Invalid --input JSON: {e}[/red]")
        raise typer.Exit(code=1)
    if not isinstance(kwargs, dict):
        console.print("[red]--input must be a JSON object[/red]")
        raise typer.Exit(code=1)
    try:
        inspect.signature(info.function).bind(**kwargs)
    except TypeError as e:
        console.print(f"[red]Invalid arguments for {info.name.value}: {e}[/red]")
        raise typer.Exit(code=1)

    try:
        result = run_algorithm(info.name, **kwargs)
    except InvalidInputError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=1)

    if as_json:
        typer.echo(json.dumps(result.to_dict(), indent=2, default=str))
        return

    data = result.to_dict()
    body = (
        f"{result.description}\n\n"
        f"[bold]Time:[/bold] {result.complexity.time}   "
        f"[bold]Space:[/bold] {result.complexity.space}   "
        f"[bold]Executed in:[/bold] {result.execution_time:.3f} ms\n\n"
        f"{json.dumps(data['result'], indent=2, default=str)}"
    )
    console.print(Panel(body, title=f"[bold]{result.algorithm_name}[/bold]", border_style="cyan"))
    console.print(f"[dim]{explain(info.name, result.result, is_correct=correct)}[/dim]")


@app.command("quiz")
def quiz_command(
    bank: Optional[Path] = typer.Option(None, "--bank", "-b", help="Question bank JSON file"),
    selection: str = typer.Option("QLearning", "--selection", help="Question selection algorithm"),
    scheduler: str = typer.Option("MinHeap", "--scheduler", help="Review scheduling algorithm"),
    reward: str = typer.Option("FenwickTree", "--reward", help="Reward system algorithm"),
    tracing: str = typer.Option("BKT", "--tracing", help="Knowledge tracing algorithm"),
    auto: bool = typer.Option(False, "--auto", help="Answer randomly instead of prompting"),
    review: bool = typer.Option(False, "--review", help="Record as a spaced-repetition review"),
    seed: Optional[int] = typer.Option(None, "--seed", help="Random seed for reproducible runs"),
) -> None:
    """Take a quiz driven by the chosen algorithms."""
    settings = get_settings()

    try:
        questions = load_question_bank(bank or Path(settings.question_bank_path))
    except QuestionBankError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=1)

    chosen = {}
    for field, value in (
        ("question_selection", selection),
        ("review_scheduling", scheduler),
        ("reward_system", reward),
        ("knowledge_tracing", tracing),
    ):
        member = AlgorithmName.coerce(value)
        if member is None:
            console.print(f"[red]Unknown algorithm: {value}[/red]")
            raise typer.Exit(code=1)
        chosen[field] = member

    try:
        algorithms = AlgorithmSelection(**chosen)
    except ValidationError as e:
        console.print(f"[red]Invalid algorithm selection:[/red] {e.errors()[0]['msg']}")
        raise typer.Exit(code=1)

    rng = random.Random(seed if seed is not None else settings.random_seed)
    session = QuizSession(
        questions,
        selection=algorithms,
        settings=settings,
        review_mode=review,
        rng=rng,
    )
    session.generate_test()

    console.print(f"\n[bold cyan]algolab quiz[/bold cyan] - {len(session.test_questions)} questions")
    console.print("=" * 40)

    while not session.finished:
        question = session.current_question
        number = session.current_index + 1
        options = "\n".join(f"  {i + 1}. {opt}" for i, opt in enumerate(question.options))
        console.print(Panel(
            f"[bold]{question.title}[/bold]\n{question.description}\n\n{options}",
            title=f"Question {number}/{len(session.test_questions)}  |  {question.topic.value}  |  {question.difficulty.value}",
            title_align="left",
            border_style="cyan",
        ))

        if auto:
            choice = rng.randrange(len(question.options))
            console.print(f"[dim]Auto answer: {choice + 1}[/dim]")
        else:
            choice = IntPrompt.ask("Your answer", choices=["1", "2", "3", "4"]) - 1

        feedback = session.answer(choice)
        icon = "[green]✓ Correct[/green]" if feedback.is_correct else "[red]✗ Incorrect[/red]"
        insights = feedback.insights
        console.print(Panel(
            f"{icon}  {feedback.explanation}\n\n"
            f"[magenta]Selection:[/magenta] {insights.question_selection}\n"
            f"[cyan]Review:[/cyan] {insights.review_scheduler}\n"
            f"[yellow]Reward:[/yellow] {insights.reward_system}\n"
            f"[green]Tracing:[/green] {insights.knowledge_tracing}",
            border_style="green" if feedback.is_correct else "red",
        ))

    attempt = session.complete()
    progress = StudentProgress(student_id="local")
    progress.apply(attempt)

    table = Table(title="Algorithm execution times")
    table.add_column("Algorithm", style="bold")
    table.add_column("Time (ms)", justify="right")
    for algorithm_name, elapsed in attempt.execution_times.items():
        table.add_row(algorithm_name, f"{elapsed:.3f}")
    console.print(table)

    console.print(
        f"\n[bold]Score:[/bold] {attempt.score}/{len(attempt.questions)} "
        f"({attempt.accuracy:.0%}) in {attempt.time_spent:.1f}s  {escape('[' + attempt.test_type.value + ']')}"
    )
    if progress.achievements:
        console.print(f"[bold yellow]Achievements:[/bold yellow] {', '.join(progress.achievements)}")


# =============================================================================
# Entry Point
# =============================================================================


def main() -> None:
    """CLI entry point."""
    configure_logging(get_settings())
    app()


if __name__ == "__main__":
    main()
