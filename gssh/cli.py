from __future__ import annotations

import logging
import subprocess
import sys
from pathlib import Path

import typer

from . import gcloud, picker
from .config import Settings, load_dotenv, resolve_user
from .gcloud import GcloudError, Instance
from .selection import FilterError, FilterSpec, SelectionError, apply_filter, select_instance
from .state import ENV_STATE_FILE, load_previous, resolve_state_path, save_previous
from .util import format_cmd, split_remote_command


logger = logging.getLogger(__name__)

app = typer.Typer(
    help=(
        "SSH into a GCE VM via `gcloud compute ssh`, picking it from a filtered list. "
        "Arguments after `--` are run on the VM instead of opening a shell."
    ),
    add_completion=False,
)


def _die(message: str, code: int = 1) -> None:
    typer.echo(message, err=True)
    raise typer.Exit(code)


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _remember(settings: Settings, instance: Instance) -> None:
    try:
        save_previous(settings.state_path, instance)
    except (OSError, TypeError, ValueError) as e:
        logger.debug("Could not remember selection: %s", e)


@app.command()
def gssh(
    ctx: typer.Context,
    pattern: str | None = typer.Argument(
        None,
        metavar="[FILTER]",
        help="Only offer VMs whose name starts with FILTER. An exact name is selected directly.",
    ),
    host: str | None = typer.Option(None, "--host", "-H", help="Exact VM name (cannot be combined with FILTER)."),
    regex: bool = typer.Option(False, "--regex", "-r", help="Treat FILTER as a regular expression (re.search)."),
    user: str | None = typer.Option(
        None,
        "--user",
        "-u",
        help="SSH username. Default: env GSSH_USER. Pass '' to use gcloud's default user.",
    ),
    previous: bool = typer.Option(False, "--previous", "-p", help="Reuse the previously selected VM without listing."),
    state_file: Path | None = typer.Option(
        None,
        "--state-file",
        envvar=ENV_STATE_FILE,
        help="Path to the JSON file remembering the last VM. Default: ~/.gssh/state.json",
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Print the gcloud command and exit."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Pick a VM and SSH into it."""
    _setup_logging(verbose)
    obj = ctx.obj if isinstance(ctx.obj, dict) else {}
    remote_command = list(obj.get("remote_command") or [])
    chooser = obj.get("chooser") or picker.choose

    try:
        spec = FilterSpec.build(host=host, pattern=pattern, regex=regex)
    except FilterError as e:
        _die(f"Invalid arguments: {e}")

    state_path = resolve_state_path(state_file)
    lookup = load_previous(state_path)
    if lookup.error:
        logger.debug("No previous selection: %s", lookup.error)

    try:
        if previous and lookup.instance is None:
            detail = f" ({lookup.error})" if lookup.error else ""
            raise SelectionError(f"cannot use previous selection: none recorded{detail}")

        project = gcloud.get_config("project")
        if not project:
            _die("Fatal error: no active gcloud project. Set it via: gcloud config set project ...")
        settings = Settings(
            user=resolve_user(user),
            project=project,
            state_path=state_path,
            dry_run=dry_run,
        )
        typer.echo(f"Using config: project={settings.project!r}, user={settings.user!r}")

        if previous:
            candidates = [lookup.instance]
        else:
            candidates = gcloud.list_instances()
        matched = apply_filter(candidates, spec)
        selected = select_instance(matched, chooser, preferred=lookup.instance)
    except (GcloudError, SelectionError) as e:
        _die(f"Fatal error: {e}")

    typer.echo(f"Selected VM: {selected.name} ({selected.short_zone})")
    cmd = gcloud.ssh_command(selected, settings.user, remote_command)

    if settings.dry_run:
        typer.echo(format_cmd(cmd))
        raise typer.Exit(0)

    _remember(settings, selected)
    typer.echo(f"Executing: {format_cmd(cmd)}\n")
    try:
        code = subprocess.call(cmd)
    except OSError as e:
        _die(f"Fatal error: {format_cmd(cmd)} failed: {e}")
    raise typer.Exit(code)


def main(argv: list[str] | None = None) -> None:
    """Console entry point: everything after the first `--` is the remote command."""
    load_dotenv()
    args, remote_command = split_remote_command(sys.argv[1:] if argv is None else argv)
    app(args=args, prog_name="gssh", obj={"remote_command": remote_command})
