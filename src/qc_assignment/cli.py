from __future__ import annotations

import logging
import random
from typing import Mapping

import typer
from rich import print
from rich.logging import RichHandler
from rich.table import Table

from .config import DEFAULT_TAB, TEAM_VERTICALS, load_engine_options
from .engine import Target
from .parsing import format_target, parse_names, parse_targets
from .reports import build_balance_summary, build_weight_breakdown
from .service import InputError, assign_tab, save_lists
from .store import StorageError, fetch_tab, init_schema

app = typer.Typer(help="QC reviewer assignment CLI.")


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging.")) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(show_path=False)],
    )


def _fail(message: str) -> None:
    print(f"[red]{message}[/red]")
    raise typer.Exit(code=1)


def _assignment_table(assignment: Mapping[str, list[Target]]) -> Table:
    table = Table(title="Assignments")
    table.add_column("QCer")
    table.add_column("Count", justify="right")
    table.add_column("QC Targets")
    for reviewer, targets in assignment.items():
        table.add_row(
            reviewer,
            str(len(targets)),
            ", ".join(format_target(target) for target in targets) or "-",
        )
    return table


def _breakdown_table(assignment: Mapping[str, list[Target]], role_weights: Mapping[str, int]) -> Table:
    table = Table(title="Weighted Load")
    table.add_column("QCer")
    table.add_column("Total", justify="right")
    table.add_column("Targets", justify="right")
    table.add_column("By Role")
    for item in build_weight_breakdown(assignment, role_weights):
        table.add_row(
            item.reviewer,
            str(item.total),
            str(item.target_count),
            ", ".join(f"{share.role}: {share.count} ({share.weight})" for share in item.roles) or "-",
        )
    return table


@app.command("init-db")
def init_db() -> None:
    """Create schema and tables."""
    try:
        init_schema()
    except (StorageError, RuntimeError) as exc:
        _fail(str(exc))
    print("[green]Database initialized.[/green]")


@app.command("tabs")
def tabs() -> None:
    """List the team verticals."""
    table = Table(title="Team Verticals")
    table.add_column("Tab")
    for vertical in TEAM_VERTICALS:
        table.add_row(vertical)
    print(table)


@app.command("show")
def show(tab: str = typer.Option(DEFAULT_TAB, help="Team vertical to show.")) -> None:
    """Show the stored lists and assignment for a tab."""
    try:
        state = fetch_tab(tab)
    except (StorageError, RuntimeError) as exc:
        _fail(str(exc))

    print(f"[bold]{tab}[/bold]")
    print(f"[bold]QCers:[/bold] {', '.join(state.reviewers) or 'No QCers listed'}")
    print(
        "[bold]QC Targets:[/bold] "
        f"{', '.join(format_target(target) for target in state.targets) or 'No QC Targets listed'}"
    )
    if not state.assignment:
        print("[yellow]No assignment yet.[/yellow]")
        return
    if state.last_assigned:
        print(f"[bold]Last assigned:[/bold] {state.last_assigned:%Y-%m-%d %H:%M %Z}")
    print(_assignment_table(state.assignment))


@app.command("save")
def save(
    tab: str = typer.Option(DEFAULT_TAB, help="Team vertical to save."),
    reviewers: str | None = typer.Option(None, help="QCers, separated by commas or newlines."),
    targets: str | None = typer.Option(None, help="QC Targets as 'Name (Role)' or 'Name'."),
) -> None:
    """Save QCer and QC Target lists without assigning."""
    try:
        state = save_lists(
            tab,
            parse_names(reviewers) if reviewers is not None else None,
            parse_targets(targets) if targets is not None else None,
        )
    except (StorageError, RuntimeError) as exc:
        _fail(str(exc))
    print(
        f"[green]Lists saved![/green] {len(state.reviewers)} QCers, "
        f"{len(state.targets)} QC Targets."
    )


@app.command("assign")
def assign(
    tab: str = typer.Option(DEFAULT_TAB, help="Team vertical to assign."),
    reviewers: str | None = typer.Option(None, help="QCers; defaults to the stored list."),
    targets: str | None = typer.Option(None, help="QC Targets; defaults to the stored list."),
    trials: int | None = typer.Option(None, min=1, help="Randomized trials to run."),
    seed: int | None = typer.Option(None, help="Seed for a reproducible assignment."),
    dry_run: bool = typer.Option(False, help="Do not persist the assignment."),
    allow_more_reviewers: bool = typer.Option(False, help="Allow more QCers than QC Targets."),
) -> None:
    """Assign QCers to QC Targets with balanced weighted load."""
    try:
        options = load_engine_options(trials)
        reviewer_list = parse_names(reviewers) if reviewers is not None else None
        target_list = parse_targets(targets) if targets is not None else None
        if reviewer_list is None or target_list is None:
            state = fetch_tab(tab)
            reviewer_list = state.reviewers if reviewer_list is None else reviewer_list
            target_list = state.targets if target_list is None else target_list
        outcome = assign_tab(
            tab,
            reviewer_list,
            target_list,
            options=options,
            rng=random.Random(seed),
            persist=not dry_run,
            enforce_ratio=not allow_more_reviewers,
        )
    except (InputError, StorageError, RuntimeError, ValueError) as exc:
        _fail(str(exc))

    result = outcome.result
    print(_assignment_table(result.assignment))
    print(_breakdown_table(result.assignment, options.role_weights))

    summary = build_balance_summary(result.assignment, result.skipped, options.role_weights)
    print(
        f"[bold]Trials:[/bold] {result.trials} | "
        f"[bold]Spread:[/bold] {summary.spread} | "
        f"[bold]Peak:[/bold] {summary.max_load} | "
        f"[bold]Total Weight:[/bold] {summary.total_weight}"
    )
    if outcome.warning:
        print(f"[yellow]{outcome.warning}[/yellow]")
    if dry_run:
        print("[yellow]Dry run: assignment not saved.[/yellow]")
    else:
        print(f"[green]Assignment saved for {tab}.[/green]")


@app.command("breakdown")
def breakdown(tab: str = typer.Option(DEFAULT_TAB, help="Team vertical to report on.")) -> None:
    """Show the weighted load of the stored assignment."""
    try:
        state = fetch_tab(tab)
        role_weights = load_engine_options().role_weights
    except (StorageError, RuntimeError, ValueError) as exc:
        _fail(str(exc))

    if not state.assignment:
        print("[yellow]No assignment yet.[/yellow]")
        return
    print(_breakdown_table(state.assignment, role_weights))


if __name__ == "__main__":
    app()
