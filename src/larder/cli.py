"""Command-line interface for Larder."""

from __future__ import annotations

import json
from datetime import date, datetime
from typing import Optional

import typer

from larder.config import get_settings
from larder.db import grocery_list, grouped_views
from larder.logging_utils import configure_logging
from larder.models.grocery import GroupedListView

app = typer.Typer(help="Larder grocery list and pantry commands.")

_DATE_FORMATS = ["%Y-%m-%d"]


@app.callback()
def _setup() -> None:
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_format, [settings.api_token or ""])


def _as_date(value: Optional[datetime]) -> Optional[date]:
    return value.date() if value is not None else None


def _fail(exc: ValueError) -> None:
    typer.secho(f"Error: {exc}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


def _print_view(view: GroupedListView, done_marker: str) -> None:
    for row in view.rows:
        done = row.in_pantry if done_marker == "pantry" else row.is_checked
        box = "[x]" if done else "[ ]"
        typer.echo(f"{box} {row.display_name} ({row.quantity_text})  #{row.representative.id}")
    typer.echo(f"{view.completed}/{view.total} done")


@app.command()
def generate(
    period_id: int = typer.Argument(..., help="Week plan to regenerate."),
    pretty: bool = typer.Option(False, "--pretty", help="Pretty-print output JSON."),
) -> None:
    """
    Regenerate the grocery list of a week plan from its scheduled meals.
    """
    try:
        result = grocery_list.generate_list_for_period(period_id)
    except ValueError as exc:
        _fail(exc)
        return
    payload = result.model_dump(mode="json")
    typer.echo(json.dumps(payload, indent=2 if pretty else None, sort_keys=pretty))


@app.command()
def cleanup() -> None:
    """Delete derived entries that no longer belong to a week plan."""

    removed = grocery_list.cleanup_orphaned_entries()
    typer.echo(f"Removed {removed} orphaned entr{'y' if removed == 1 else 'ies'}.")


@app.command("pantry-check")
def pantry_check(
    start: Optional[datetime] = typer.Option(None, "--start", formats=_DATE_FORMATS),
    end: Optional[datetime] = typer.Option(None, "--end", formats=_DATE_FORMATS),
) -> None:
    """Show the combined pantry check for week plans starting within the range."""

    start_date, end_date = _as_date(start), _as_date(end)
    grouped_views.generate_for_new_periods(start_date, end_date)
    _print_view(grouped_views.pantry_check_view(start_date, end_date), "pantry")


@app.command("shopping-list")
def shopping_list(
    start: Optional[datetime] = typer.Option(None, "--start", formats=_DATE_FORMATS),
    end: Optional[datetime] = typer.Option(None, "--end", formats=_DATE_FORMATS),
    share: bool = typer.Option(True, "--share/--rows", help="Print shareable text or checkbox rows."),
) -> None:
    """Print the combined shopping list for week plans starting within the range."""

    view = grouped_views.shopping_view(_as_date(start), _as_date(end))
    if share:
        typer.echo(view.share_text(), nl=False)
    else:
        _print_view(view, "checked")


@app.command("mark-needed")
def mark_needed(
    period_id: int = typer.Argument(..., help="Week plan whose pantry check to finish."),
) -> None:
    """Put every entry not yet pantry-checked on the shopping list."""

    try:
        count = grocery_list.mark_all_remaining_as_needed(period_id)
    except ValueError as exc:
        _fail(exc)
        return
    typer.echo(f"Marked {count} item(s) as needed.")


def main(argv: Optional[list[str]] = None) -> None:
    """Entry point for `python -m larder`."""
    app(prog_name="larder", args=argv)


if __name__ == "__main__":
    main()
