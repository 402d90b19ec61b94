"""Init command implementation"""

from rich.console import Console
from rich.panel import Panel

from form_builder.db.sqlite import get_db_path, init_db
from form_builder.utils.config import get_settings

console = Console()


def init_command():
    """Create the template and submission tables"""
    console.print(Panel.fit(
        "[bold blue]Initializing Booking Form Builder[/bold blue]",
        border_style="blue"
    ))

    settings = get_settings()
    console.print(f"\n[yellow]Store mode: {settings.store_mode}[/yellow]")
    if settings.store_mode != "sqlite":
        console.print("[green]   [OK] Nothing to initialize for the in-memory store[/green]")
        return True

    console.print("\n[yellow]Initializing SQLite database...[/yellow]")
    try:
        init_db()
        console.print(f"[green]   [OK] SQLite database ready at {get_db_path()}[/green]")
    except Exception as e:
        console.print(f"[red]   [FAIL] Failed to initialize SQLite: {e}[/red]")
        return False

    console.print(Panel.fit(
        "[bold green][OK] Initialization complete![/bold green]\n\n"
        "Next steps:\n"
        "1. Import a template: [cyan]python -m form_builder import template.json[/cyan]\n"
        "2. Fill it in: [cyan]python -m form_builder fill <template-id>[/cyan]",
        border_style="green"
    ))
    return True
