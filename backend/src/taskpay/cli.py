"""Command-line interface for taskpay."""

from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from taskpay.admin.service import admin_service
from taskpay.errors import TaskpayError
from taskpay.logging_config import configure_logging, get_logger
from taskpay.platform_settings import platform_settings
from taskpay.storage.db import db
from taskpay.tasks.allocation import allocation_engine
from taskpay.tasks.seed import seed_catalog

# Configure logging
configure_logging()
logger = get_logger(__name__)

# Create Typer app
app = typer.Typer(
    name="taskpay",
    help="taskpay - daily micro-task rewards platform",
    no_args_is_help=True,
)

# Rich console for pretty output
console = Console()


@app.command("init")
def init_database() -> None:
    """Initialize the database, create tables and seed default settings."""
    console.print("[bold blue]Initializing database...[/bold blue]")
    db.create_tables()
    platform_settings.seed_defaults()
    console.print("[bold green]✓[/bold green] Database initialized successfully")


@app.command("seed-tasks")
def seed_tasks(
    count: Annotated[int, typer.Option("--count", "-n", help="Number of tasks to generate")] = 2500,
    seed: Annotated[int | None, typer.Option("--seed", help="Random seed for reproducible catalogs")] = None,
) -> None:
    """Fill an empty task catalog with generated tasks."""
    db.create_tables()
    created = seed_catalog(count=count, seed=seed)
    if created == 0:
        console.print("[yellow]Catalog already has tasks, nothing seeded[/yellow]")
        return
    console.print(f"[bold green]✓[/bold green] Seeded [bold]{created}[/bold] tasks")


@app.command("settings")
def show_settings() -> None:
    """Show the runtime platform settings."""
    table = Table(title="Platform settings")
    table.add_column("Key", style="cyan")
    table.add_column("Value", justify="right", style="green")
    table.add_column("Default", justify="right")

    defaults = platform_settings.defaults
    for key, value in platform_settings.all().items():
        table.add_row(key, str(value), str(defaults[key]))

    console.print(table)


@app.command("set-setting")
def set_setting(
    key: Annotated[str, typer.Argument(help="Setting key")],
    value: Annotated[int, typer.Argument(help="New integer value")],
) -> None:
    """Change one platform setting."""
    try:
        platform_settings.update({key: value})
    except TaskpayError as e:
        console.print(f"[bold red]✗[/bold red] {e.message}")
        raise typer.Exit(1) from e
    console.print(f"[bold green]✓[/bold green] {key} = {value}")


@app.command("make-admin")
def make_admin(
    email: Annotated[str, typer.Argument(help="Email of an existing account")],
) -> None:
    """Grant admin rights to an existing account."""
    try:
        user = admin_service.grant_admin(email)
    except TaskpayError as e:
        console.print(f"[bold red]✗[/bold red] {e.message}")
        raise typer.Exit(1) from e
    console.print(f"[bold green]✓[/bold green] {user.username} is now an admin")


@app.command("today")
def show_today(
    user_id: Annotated[int, typer.Argument(help="User ID")],
) -> None:
    """Show (and allocate if needed) a user's tasks for today."""
    today = allocation_engine.get_today_tasks(user_id)

    if not today.tasks:
        console.print(f"[yellow]No tasks for user {user_id} on {today.day_key}[/yellow]")
        return

    table = Table(title=f"Tasks for user {user_id} on {today.day_key}")
    table.add_column("ID", style="cyan")
    table.add_column("Category")
    table.add_column("Type", style="green")
    table.add_column("Reward", justify="right")
    table.add_column("Done")

    for task in today.tasks:
        table.add_row(
            str(task.id),
            task.category,
            task.type,
            str(task.reward),
            "✓" if task.completed else "",
        )

    console.print(table)
    console.print(f"Remaining: [bold]{today.remaining}[/bold]")


if __name__ == "__main__":
    app()
