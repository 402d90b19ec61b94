"""Main CLI application"""

import json
import logging
from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.prompt import Confirm
from rich.table import Table

from form_builder.cli.fill_cmd import fill_command
from form_builder.cli.init_cmd import init_command
from form_builder.db import get_store
from form_builder.db.base import TemplateFilters, TemplateNotFoundError
from form_builder.services.ordering import SchemaInvariantViolation
from form_builder.services.serialization import (
    EXPORT_FORMATS,
    export_template,
    import_template,
    template_from_dict,
    template_to_dict,
)
from form_builder.services.validation import publish_problems
from form_builder.utils.config import get_settings

app = typer.Typer(
    name="form-builder",
    help="Booking form builder: author, check and fill form templates",
    add_completion=False,
)

console = Console(force_terminal=True)


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output")):
    """Configure logging before any command runs"""
    level = "DEBUG" if verbose else get_settings().log_level.upper()
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _load_json(file: Path) -> dict | None:
    try:
        return json.loads(file.read_text(encoding="utf-8"))
    except FileNotFoundError:
        console.print(f"[red]File not found: {file}[/red]")
    except json.JSONDecodeError as e:
        console.print(f"[red]Invalid JSON in {file}: {e}[/red]")
    return None


@app.command("init")
def init():
    """Initialize the template database"""
    if not init_command():
        raise typer.Exit(code=1)


@app.command("templates")
def templates(
    search: str = typer.Option(None, "--search", "-s", help="Match name or description"),
    status: str = typer.Option(None, "--status", help="draft, active or archived"),
    category: str = typer.Option(None, "--category", "-c", help="booking, inquiry, registration, survey, custom"),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
):
    """List form templates"""
    filters = TemplateFilters(search=search, status=status, category=category)
    template_list = get_store().list(filters)

    if json_output:
        print(json.dumps([template_to_dict(t) for t in template_list], ensure_ascii=False, indent=2))
        return

    if not template_list:
        console.print("[yellow]No templates found[/yellow]")
        return

    table = Table(title="Form Templates")
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("Category")
    table.add_column("Status")
    table.add_column("Fields", justify="right")
    table.add_column("Updated")

    for template in template_list:
        table.add_row(
            template.id,
            template.name,
            template.category.value,
            template.status.value,
            f"{template.field_count} ({template.required_field_count} required)",
            template.updated_at.strftime("%Y-%m-%d %H:%M") if template.updated_at else "",
        )

    console.print(table)
    console.print("\nUse [cyan]python -m form_builder template <id>[/cyan] to see the fields")


@app.command("template")
def template_detail(
    template_id: str = typer.Argument(..., help="Template ID"),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
):
    """Show template details and its fields"""
    try:
        template = get_store().get(template_id)
    except TemplateNotFoundError:
        console.print(f"[red]Template '{template_id}' not found[/red]")
        raise typer.Exit(code=1)

    if json_output:
        print(json.dumps(template_to_dict(template), ensure_ascii=False, indent=2))
        return

    published = "published" if template.is_published else "not published"
    console.print(Panel(
        f"[bold]{template.name}[/bold]\n\n{template.description}\n\n"
        f"[dim]{template.category.value} | {template.status.value} | {published}[/dim]",
        title=f"Template: {template.id}",
        border_style="blue",
    ))

    table = Table(title="Fields")
    table.add_column("#", justify="right")
    table.add_column("ID", style="cyan")
    table.add_column("Label", style="green")
    table.add_column("Type")
    table.add_column("Required")
    table.add_column("Shown when")

    for field in template.ordered_fields():
        condition = ""
        if field.conditional:
            rule = field.conditional
            condition = f"{rule.field_id} {rule.operator} {rule.value!r}"
        table.add_row(
            str(field.order),
            field.id,
            field.label,
            field.type.value,
            "Yes" if field.required else "No",
            condition,
        )

    console.print(table)


@app.command("import")
def import_cmd(
    file: Path = typer.Argument(..., help="Exported template JSON file"),
    overwrite: bool = typer.Option(False, "--overwrite", help="Replace the template with the same ID"),
):
    """Import a template from a JSON export"""
    payload = _load_json(file)
    if payload is None:
        raise typer.Exit(code=1)

    try:
        template = import_template(payload, get_store(), overwrite=overwrite)
    except (ValidationError, SchemaInvariantViolation) as e:
        console.print(f"[red]Invalid template: {e}[/red]")
        raise typer.Exit(code=1)

    console.print(f"[green][OK] Imported '{template.name}' as {template.id}[/green]")


@app.command("export")
def export_cmd(
    template_id: str = typer.Argument(..., help="Template ID"),
    fmt: str = typer.Option("json", "--format", "-f", help="json or csv"),
    output: Path = typer.Option(None, "--output", "-o", help="Output file (stdout when omitted)"),
):
    """Export a template as JSON or a CSV field listing"""
    if fmt not in EXPORT_FORMATS:
        console.print(f"[red]Unsupported format '{fmt}'. Use one of: {', '.join(EXPORT_FORMATS)}[/red]")
        raise typer.Exit(code=1)

    try:
        template = get_store().get(template_id)
    except TemplateNotFoundError:
        console.print(f"[red]Template '{template_id}' not found[/red]")
        raise typer.Exit(code=1)

    content = export_template(template, fmt)
    if output is None:
        print(content)
        return

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(content, encoding="utf-8")
    console.print(f"[green][OK] Exported '{template.name}' to {output}[/green]")


@app.command("duplicate")
def duplicate(
    template_id: str = typer.Argument(..., help="Template ID"),
    name: str = typer.Option(None, "--name", "-n", help="Name of the copy"),
):
    """Copy a template as a new draft"""
    store = get_store()
    try:
        original = store.get(template_id)
    except TemplateNotFoundError:
        console.print(f"[red]Template '{template_id}' not found[/red]")
        raise typer.Exit(code=1)

    copy = store.duplicate(template_id, name or f"{original.name} (Copy)")
    console.print(f"[green][OK] Created '{copy.name}' as {copy.id}[/green]")


@app.command("delete")
def delete(
    template_id: str = typer.Argument(..., help="Template ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
):
    """Delete a template"""
    store = get_store()
    try:
        template = store.get(template_id)
    except TemplateNotFoundError:
        console.print(f"[red]Template '{template_id}' not found[/red]")
        raise typer.Exit(code=1)

    if not yes and not Confirm.ask(f"Delete '{template.name}'?", console=console):
        console.print("[yellow]Cancelled[/yellow]")
        return

    store.delete(template_id)
    console.print(f"[green][OK] Deleted '{template.name}'[/green]")


@app.command("check")
def check(
    file: Path = typer.Argument(..., help="Template JSON file"),
):
    """Check whether a template file is ready to publish"""
    payload = _load_json(file)
    if payload is None:
        raise typer.Exit(code=1)

    try:
        template = template_from_dict(payload)
    except ValidationError as e:
        console.print(f"[red]Invalid template: {e}[/red]")
        raise typer.Exit(code=1)

    problems = publish_problems(template)
    if not problems:
        console.print(f"[green][OK] '{template.name}' is ready to publish ({template.field_count} fields)[/green]")
        return

    console.print(f"[yellow]'{template.name or file.name}' has {len(problems)} problem(s):[/yellow]")
    for problem in problems:
        console.print(f"  - {problem}")
    raise typer.Exit(code=1)


@app.command("fill")
def fill(
    template_id: str = typer.Argument(..., help="Template ID"),
    json_output: bool = typer.Option(False, "--json", "-j", help="Print the submission result as JSON"),
    no_save: bool = typer.Option(False, "--no-save", help="Do not record the submission"),
):
    """Fill in a template interactively"""
    if not fill_command(template_id, json_output, save=not no_save):
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
