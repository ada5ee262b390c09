"""
cvcraft command line.

Commands:
    render   - Render a record file to standalone HTML
    export   - Render and export a record file to a single-page PDF
    create   - Validate and store a record (optionally exporting it)
    history  - List, show or delete stored resumes
    whoami   - Show the signed-in user
    sign-out - End the current session

Examples:\n

    cvcraft render jane.json --template classic --out jane.html

    cvcraft export jane.yaml --out-dir out/ --mode vector

    cvcraft create jane.json --export

    cvcraft history list
"""

from pathlib import Path
from typing import Optional

import typer
import yaml
from pydantic import ValidationError as PydanticValidationError
from typing_extensions import Annotated

from cvcraft.config import ConfigStore, config_from_env, load_config
from cvcraft.exceptions import CvcraftError
from cvcraft.export import DocumentExporter, ExportConfig
from cvcraft.form import ResumeForm
from cvcraft.logger import setup_logger
from cvcraft.notify import Notification, Notifier
from cvcraft.pages import CreateResumePage, HistoryPage
from cvcraft.render import render_resume
from cvcraft.tools import load_record, mk_session, mk_store
from cvcraft.util import validation_friendly_errors_string

app = typer.Typer(
    help="Build, store and export resumes in the modern or classic layout",
    add_completion=False,
    invoke_without_command=True,
)
history_app = typer.Typer(help="Stored resumes of the signed-in user")
app.add_typer(history_app, name="history")


class _State:
    config: ConfigStore


state = _State()


def _echo_notification(note: Notification) -> None:
    color = typer.colors.RED if note.is_error else typer.colors.GREEN
    text = f"{note.title}: {note.description}" if note.description else note.title
    typer.secho(text, fg=color, err=note.is_error)


def _fail(message: str) -> None:
    typer.secho(f"Error: {message}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


def _error_message(e: Exception) -> str:
    if isinstance(e, PydanticValidationError):
        return validation_friendly_errors_string(e)
    return str(e)


def _exporter(mode: Optional[str] = None) -> DocumentExporter:
    config = state.config
    return DocumentExporter(
        ExportConfig(
            mode=mode or config['export_mode'], scale=float(config['export_scale'])
        )
    )


@app.callback()
def main(
    ctx: typer.Context,
    config_path: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="JSON or YAML config file", exists=True),
    ] = None,
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Show debug logging")
    ] = False,
):
    """Show help by default when no command is provided."""
    try:
        base = load_config(str(config_path)) if config_path else None
        state.config = config_from_env(base)
    except (TypeError, ValueError, yaml.YAMLError) as e:
        _fail(f"Invalid configuration: {e}")
    setup_logger("DEBUG" if verbose else state.config['log_level'])
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


@app.command("render")
def render_command(
    record_path: Annotated[Path, typer.Argument(help="Record file (.json/.yaml)", exists=True)],
    template: Annotated[
        Optional[str], typer.Option("--template", "-t", help="modern or classic")
    ] = None,
    out: Annotated[
        Optional[Path], typer.Option("--out", "-o", help="Write HTML here instead of stdout")
    ] = None,
):
    """Render a record to standalone HTML."""
    try:
        view = render_resume(load_record(record_path), template=template)
    except (CvcraftError, TypeError, ValueError) as e:
        _fail(_error_message(e))
    if out:
        out.write_text(view.html, encoding="utf-8")
        typer.secho(f"Wrote {out}", fg=typer.colors.GREEN)
    else:
        typer.echo(view.html)


@app.command("export")
def export_command(
    record_path: Annotated[Path, typer.Argument(help="Record file (.json/.yaml)", exists=True)],
    out_dir: Annotated[
        Optional[Path], typer.Option("--out-dir", "-d", help="Output directory")
    ] = None,
    template: Annotated[
        Optional[str], typer.Option("--template", "-t", help="modern or classic")
    ] = None,
    mode: Annotated[
        Optional[str], typer.Option("--mode", "-m", help="raster or vector")
    ] = None,
):
    """Export a record to a single-page A4 PDF."""
    try:
        view = render_resume(load_record(record_path), template=template)
        result = _exporter(mode).export(view, out_dir or state.config['output_dir'])
    except (CvcraftError, TypeError, ValueError) as e:
        _fail(_error_message(e))
    typer.secho(f"Saved {result.path}", fg=typer.colors.GREEN)


@app.command("create")
def create_command(
    record_path: Annotated[Path, typer.Argument(help="Record file (.json/.yaml)", exists=True)],
    export: Annotated[
        bool, typer.Option("--export", "-e", help="Also export the stored resume")
    ] = False,
    out_dir: Annotated[
        Optional[Path], typer.Option("--out-dir", "-d", help="Output directory")
    ] = None,
):
    """Validate a record and store it for the signed-in user."""
    notifier = Notifier(sink=_echo_notification)
    try:
        record = load_record(record_path)
    except (TypeError, ValueError) as e:
        _fail(_error_message(e))
    form = ResumeForm.from_record(
        record, notifier=notifier, max_image_bytes=int(state.config['max_image_bytes'])
    )
    try:
        page = CreateResumePage(
            mk_session(state.config),
            mk_store(state.config),
            notifier=notifier,
            exporter=_exporter(),
        )
    except (CvcraftError, ValueError) as e:
        _fail(_error_message(e))
    try:
        stored_id = page.submit(form)
    except CvcraftError:
        # already reported through the notifier
        raise typer.Exit(code=1)
    if stored_id is None:
        raise typer.Exit(code=1)
    typer.echo(stored_id)
    if export:
        try:
            result = page.download(out_dir or state.config['output_dir'])
        except CvcraftError:
            raise typer.Exit(code=1)
        typer.secho(f"Saved {result.path}", fg=typer.colors.GREEN)


def _history_page(notifier: Notifier) -> HistoryPage:
    try:
        return HistoryPage(
            mk_session(state.config), mk_store(state.config), notifier=notifier
        )
    except CvcraftError as e:
        _fail(_error_message(e))


@history_app.command("list")
def history_list():
    """List stored resumes, newest first."""
    page = _history_page(Notifier(sink=_echo_notification))
    page.refresh()
    if page.error is not None:
        raise typer.Exit(code=1)
    if page.is_empty:
        typer.echo("No resumes yet. Create your first resume to get started!")
        return
    for item in page.items:
        typer.echo(
            f"{item.id}  {item.created:<13} {item.full_name:<24} "
            f"{item.template:<8} {item.experience_count} experiences"
        )


@history_app.command("show")
def history_show(
    stored_id: Annotated[str, typer.Argument(help="Stored resume id")],
    out_dir: Annotated[
        Optional[Path],
        typer.Option("--out-dir", "-d", help="Export to this directory instead of printing HTML"),
    ] = None,
):
    """Render a stored resume (or export it with --out-dir)."""
    page = _history_page(Notifier(sink=_echo_notification))
    try:
        view = page.preview(stored_id)
        if out_dir is None:
            typer.echo(view.html)
            return
        result = _exporter().export(view, out_dir)
    except KeyError:
        _fail(f"No stored resume with id {stored_id}")
    except (CvcraftError, ValueError) as e:
        _fail(_error_message(e))
    typer.secho(f"Saved {result.path}", fg=typer.colors.GREEN)


@history_app.command("delete")
def history_delete(stored_id: Annotated[str, typer.Argument(help="Stored resume id")]):
    """Delete a stored resume."""
    page = _history_page(Notifier(sink=_echo_notification))
    if not page.delete(stored_id):
        raise typer.Exit(code=1)


@app.command("whoami")
def whoami_command():
    """Show the signed-in user."""
    user = mk_session(state.config).current_user()
    if user is None:
        typer.echo("Not signed in")
        raise typer.Exit(code=1)
    typer.echo(f"{user.id} {user.email or ''}".strip())


@app.command("sign-out")
def sign_out_command():
    """End the current session."""
    mk_session(state.config).sign_out()
    typer.echo("Signed out")


if __name__ == "__main__":
    app()
