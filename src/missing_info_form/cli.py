"""CLI commands using Typer."""

import asyncio
import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from missing_info_form.client import SubmissionClient
from missing_info_form.config import get_settings
from missing_info_form.errors import AttachmentRejected, FormError, display_message
from missing_info_form.form import (
    AttachmentRef,
    FormLaunchParams,
    SubmissionFormController,
    SubmissionOutcome,
    file_kind,
    format_file_size,
    validate_attachment,
)
from missing_info_form.notifications import Notification, NotificationLevel

app = typer.Typer(
    name="missing-info-form",
    help="Complete and submit missing client information",
    add_completion=False,
)

console = Console()

_STYLES = {
    NotificationLevel.INFO: "cyan",
    NotificationLevel.SUCCESS: "green",
    NotificationLevel.ERROR: "red",
    NotificationLevel.LOADING: "dim",
}


class ConsoleNotifier:
    """Prints notifications to the terminal."""

    def __init__(self, console: Console):
        self.console = console

    def notify(self, notification: Notification) -> None:
        style = _STYLES[notification.level]
        line = f"[{style}]{notification.title}[/{style}]"
        if notification.description:
            line = f"{line} {notification.description}"
        self.console.print(line)


def show_confirmation(path: str) -> None:
    """Render the confirmation view shown after a successful submission."""
    console.print(
        Panel(
            "[bold green]Vielen Dank![/bold green]\n"
            "Ihre Informationen wurden erfolgreich übermittelt.\n\n"
            "[dim]Wir haben Ihre Daten erhalten und werden uns in Kürze bei Ihnen melden.[/dim]",
            title=path,
        )
    )


def _print_field_errors(outcome: SubmissionOutcome) -> None:
    table = Table(title="Ungültige Eingaben", show_header=True)
    table.add_column("Feld")
    table.add_column("Fehler", style="red")
    for name, message in outcome.field_errors.items():
        table.add_row(name, message)
    console.print(table)


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging")] = False,
):
    """Configure logging for all commands."""
    level = logging.DEBUG if verbose else get_settings().log_level.upper()
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


@app.command()
def submit(
    first_name: Annotated[str, typer.Option("--first-name", help="First name")] = "",
    last_name: Annotated[str, typer.Option("--last-name", help="Last name")] = "",
    email: Annotated[str | None, typer.Option("--email", "-e", help="Email address")] = None,
    phone: Annotated[str, typer.Option("--phone", "-p", help="Phone number")] = "",
    address: Annotated[str, typer.Option("--address", "-a", help="Postal address")] = "",
    document: Annotated[
        Path | None, typer.Option("--document", "-d", help="Optional document to upload")
    ] = None,
    link: Annotated[
        str | None, typer.Option("--link", help="Form link carrying email and token")
    ] = None,
    token: Annotated[str | None, typer.Option("--token", help="Access token of the form link")] = None,
    missing_field: Annotated[
        list[str] | None, typer.Option("--missing-field", "-m", help="Field flagged as missing")
    ] = None,
    api_url: Annotated[
        str | None, typer.Option("--api-url", envvar="API_URL", help="Submission endpoint base URL")
    ] = None,
    lang: Annotated[str | None, typer.Option("--lang", "-l", help="Message language (de, en)")] = None,
):
    """
    Submit the missing-info form.

    Example:
        missing-info-form submit --link "https://forms.example.com/form?email=max@example.com&token=abc" \\
            --first-name Max --last-name Muster --phone 0301234567 --address "Hauptstr. 1, Berlin"
    """
    updates = {}
    if api_url:
        updates["api_url"] = api_url
    if lang:
        updates["locale"] = lang
    settings = get_settings().model_copy(update=updates)

    params = FormLaunchParams.from_url(link) if link else FormLaunchParams(missing_fields=[])
    if token:
        params.token = token
    if missing_field:
        params.missing_fields = list(missing_field)

    values = {
        "firstName": first_name,
        "lastName": last_name,
        "phone": phone,
        "address": address,
    }
    if email is not None:
        values["email"] = email

    controller = SubmissionFormController.from_launch_params(
        params,
        notifier=ConsoleNotifier(console),
        navigator=show_confirmation,
        settings=settings,
    )

    if document is not None:
        if not document.exists():
            console.print(f"[red]Error:[/red] Document not found: {document}")
            raise typer.Exit(1)
        try:
            controller.select_attachment(AttachmentRef.from_path(document))
        except AttachmentRejected:
            raise typer.Exit(1)

    async def run_submission() -> SubmissionOutcome:
        result = await controller.submit(values)
        if result.succeeded:
            await controller.wait_for_redirect()
        return result

    try:
        outcome = asyncio.run(run_submission())
    except FormError as e:
        console.print(f"[red]{e.title}:[/red] {display_message(e)}")
        raise typer.Exit(1)

    if not outcome.succeeded:
        if outcome.field_errors:
            _print_field_errors(outcome)
        raise typer.Exit(1)


@app.command()
def check_file(
    path: Annotated[Path, typer.Argument(help="File to check")],
):
    """Check whether a file can be attached to the form."""
    if not path.exists():
        console.print(f"[red]Error:[/red] File not found: {path}")
        raise typer.Exit(1)

    attachment = AttachmentRef.from_path(path)
    try:
        validate_attachment(attachment, get_settings().max_attachment_bytes)
    except AttachmentRejected as e:
        console.print(f"[red]{e.title}:[/red] {e.message}")
        raise typer.Exit(1)

    console.print(
        f"[green]OK[/green] {attachment.name} "
        f"[dim]({file_kind(attachment.name)}, {format_file_size(attachment.size)}, "
        f"{attachment.content_type})[/dim]"
    )


@app.command()
def ping(
    api_url: Annotated[
        str | None, typer.Option("--api-url", envvar="API_URL", help="Submission endpoint base URL")
    ] = None,
):
    """Check whether the submission endpoint is reachable."""
    url = api_url or get_settings().api_url
    if asyncio.run(SubmissionClient.is_service_available(url)):
        console.print(f"[green]Reachable:[/green] {url}")
    else:
        console.print(f"[red]Unreachable:[/red] {url}")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
