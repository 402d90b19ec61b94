"""Fill command implementation: run a template in the terminal"""

import json
import mimetypes
from pathlib import Path
from typing import Any, Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Confirm, Prompt

from form_builder.db import get_store, get_submission_sink
from form_builder.db.base import TemplateNotFoundError
from form_builder.models.submission import UploadedFile
from form_builder.models.template import FieldType, FormField
from form_builder.services.renderer import FormRenderer
from form_builder.services.widgets import WidgetRegistry

console = Console(force_terminal=True)

MAX_ATTEMPTS = 3


def _label(field: FormField) -> str:
    label = f"[bold]{escape(field.label)}[/bold]"
    if field.required:
        label += " [red]*[/red]"
    return label


def _hint(field: FormField):
    if field.help_text:
        console.print(f"  [dim]{escape(field.help_text)}[/dim]")


def prompt_text(field: FormField, current: Any) -> str:
    _hint(field)
    return Prompt.ask(_label(field), default=str(current or ""), show_default=bool(current), console=console)


def prompt_number(field: FormField, current: Any) -> Any:
    raw = prompt_text(field, current)
    try:
        number = float(raw)
    except ValueError:
        # Leave non-numeric text for the validation rules to report
        return raw
    return int(number) if number.is_integer() else number


def prompt_choice(field: FormField, current: Any) -> str:
    _hint(field)
    for number, option in enumerate(field.options, start=1):
        console.print(f"  {number}. {escape(option.label)} [dim]({escape(option.value)})[/dim]")
    raw = Prompt.ask(_label(field), default=str(current or ""), show_default=bool(current), console=console)
    return _resolve_option(field, raw)


def _resolve_option(field: FormField, raw: str) -> str:
    raw = raw.strip()
    if raw.isdigit() and 1 <= int(raw) <= len(field.options):
        return field.options[int(raw) - 1].value
    return raw


def prompt_checkbox(field: FormField, current: Any) -> Any:
    if len(field.options) <= 1:
        _hint(field)
        return Confirm.ask(_label(field), default=bool(current), console=console)

    _hint(field)
    for number, option in enumerate(field.options, start=1):
        console.print(f"  {number}. {escape(option.label)} [dim]({escape(option.value)})[/dim]")
    default = ",".join(current) if isinstance(current, list) else ""
    raw = Prompt.ask(
        f"{_label(field)} [dim](comma separated)[/dim]",
        default=default,
        show_default=bool(default),
        console=console,
    )
    return [_resolve_option(field, part) for part in raw.split(",") if part.strip()]


def prompt_file(field: FormField, current: Any) -> Optional[UploadedFile]:
    _hint(field)
    raw = Prompt.ask(f"{_label(field)} [dim](path)[/dim]", default="", show_default=False, console=console)
    if not raw.strip():
        return None
    path = Path(raw.strip()).expanduser()
    if not path.is_file():
        console.print(f"  [yellow]File not found: {escape(str(path))}[/yellow]")
        return None
    content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
    return UploadedFile(filename=path.name, content_type=content_type, size=path.stat().st_size)


def show_divider(field: FormField, current: Any) -> None:
    console.rule()


def show_html(field: FormField, current: Any) -> None:
    console.print(escape(field.placeholder))


def build_prompt_registry() -> WidgetRegistry:
    """Terminal widgets for every field type"""
    registry = WidgetRegistry(fallback=prompt_text)
    registry.register(
        [FieldType.TEXT, FieldType.EMAIL, FieldType.TEL, FieldType.TEXTAREA,
         FieldType.DATE, FieldType.TIME, FieldType.DATETIME],
        prompt_text,
    )
    registry.register(FieldType.NUMBER, prompt_number)
    registry.register([FieldType.SELECT, FieldType.RADIO], prompt_choice)
    registry.register(FieldType.CHECKBOX, prompt_checkbox)
    registry.register(FieldType.FILE, prompt_file)
    registry.register(FieldType.DIVIDER, show_divider)
    registry.register(FieldType.HTML, show_html)
    return registry


def _ask(renderer: FormRenderer, field: FormField) -> None:
    widget = renderer.widgets.widget_for(field.type)
    value = widget(field, renderer.values.get(field.id))
    if not field.is_input:
        return
    if value is None or value == "":
        renderer.clear_value(field.id)
    else:
        renderer.set_value(field.id, value)


def _print_progress(renderer: FormRenderer):
    progress = renderer.progress()
    if progress is not None:
        console.print(f"[dim]Progress: {progress}%[/dim]")


def fill_command(template_id: str, json_output: bool = False, save: bool = True):
    """Prompt for every visible field in order, then submit"""
    try:
        template = get_store().get(template_id)
    except TemplateNotFoundError:
        console.print(f"[red]Template '{escape(template_id)}' not found[/red]")
        return False

    renderer = FormRenderer(template, widgets=build_prompt_registry())

    console.print(Panel(
        f"[bold]{escape(template.name)}[/bold]"
        + (f"\n\n{escape(template.description)}" if template.description else ""),
        border_style="blue",
    ))

    # Visibility can change after every answer, so pick the next unasked field each time
    asked: set[str] = set()
    while True:
        pending = [f for f in renderer.visible_fields() if f.id not in asked]
        if not pending:
            break
        field = pending[0]
        asked.add(field.id)
        _ask(renderer, field)
        _print_progress(renderer)

    sink = get_submission_sink() if save else None
    result = renderer.submit(sink)
    attempts = 1
    while not result.accepted and attempts < MAX_ATTEMPTS:
        console.print("\n[red]Please correct the following:[/red]")
        for message in result.errors.values():
            console.print(f"  - {escape(message)}")
        console.print()
        for field in renderer.visible_fields():
            if field.id in result.errors:
                _ask(renderer, field)
        result = renderer.submit(sink)
        attempts += 1

    if json_output:
        print(json.dumps(result.model_dump(mode="json"), ensure_ascii=False, indent=2))
        return result.accepted

    if result.accepted:
        console.print(f"\n[green][OK] {escape(template.settings.success_message)}[/green]")
        if result.submission_id:
            console.print(f"[dim]Submission: {result.submission_id}[/dim]")
    else:
        console.print(f"\n[red]{escape(template.settings.error_message)}[/red]")
        for message in result.errors.values():
            console.print(f"  - {escape(message)}")
    return result.accepted
