from collections.abc import Iterator
from contextlib import contextmanager
from importlib.metadata import version
from pathlib import Path

import typer
from rich.console import Console

from dev_service.app_config import load_app_config
from dev_service.app_logging import setup_logging, verbosity_level
from dev_service.app_state import AppState, create_app_state
from dev_service.libs.errors import DevServiceError
from dev_service.libs.functions.check import check_other_services, check_used_ports
from dev_service.libs.functions.compose import run_compose, with_service
from dev_service.libs.functions.compose_dir import ensure_volumes_dir
from dev_service.libs.functions.install import install as install_services
from dev_service.libs.functions.options import VolumeFlags, load_options
from dev_service.libs.schemas.options import VolumeMode

app = typer.Typer(
    no_args_is_help=True,
    help="Install and run the development services declared in the project manifest.",
)
console = Console(stderr=True)

SERVICE_ARGUMENT = typer.Argument(None, help="Limit the command to one installed service.")


@contextmanager
def _errors() -> Iterator[None]:
    try:
        yield
    except DevServiceError as e:
        console.print(
            f"ERROR: {e}", style="red", markup=False, highlight=False, soft_wrap=True
        )
        raise typer.Exit(code=e.code) from e


def _version_callback(value: bool):
    if value:
        typer.echo(version("dev-service"))
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    config_paths: list[Path] = typer.Option(
        [
            Path("./.dev-service.yaml"),
            Path("./.dev-service.yml"),
        ],
        "--config",
        "-c",
        help="Path to the application configuration file.",
    ),
    root: Path | None = typer.Option(
        None,
        "--root",
        help="Project root. Defaults to the current working directory.",
    ),
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Show progress (-v) or debug output (-vv).",
    ),
    show_version: bool = typer.Option(
        False,  # noqa: FBT003
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and exit.",
    ),
):
    overrides = {"root": root} if root is not None else {}
    app_config = load_app_config(tuple(config_paths), **overrides)
    setup_logging(verbosity_level(verbose, app_config.log_level))

    ctx.obj = create_app_state(app_config)


def _compose(app_state: AppState, *args: str) -> None:
    run_compose(
        *args,
        paths=app_state.paths,
        project_name=app_state.project_name,
        docker=app_state.docker,
    )


@app.command()
def install(
    ctx: typer.Context,
    *,
    enable_classic_volumes: bool = typer.Option(
        False,  # noqa: FBT003
        "--enable-classic-volumes",
        help="Name volumes after the project (default).",
    ),
    enable_volumes_id: bool = typer.Option(
        False,  # noqa: FBT003
        "--enable-volumes-id",
        help="Name volumes after a random id that survives project renames.",
    ),
    enable_mapped_volumes: bool = typer.Option(
        False,  # noqa: FBT003
        "--enable-mapped-volumes",
        help="Bind-mount service data into services/volumes instead of named volumes.",
    ),
):
    """Install all services declared in the manifest."""
    app_state: AppState = ctx.obj

    with _errors():
        result = install_services(
            paths=app_state.paths,
            manifest=app_state.manifest,
            docker=app_state.docker,
            flags=VolumeFlags(
                enable_classic_volumes=enable_classic_volumes,
                enable_volumes_id=enable_volumes_id,
                enable_mapped_volumes=enable_mapped_volumes,
            ),
        )

    typer.echo(f"Done ({len(result.services)} services installed).")


@app.command()
def check(ctx: typer.Context, service: str | None = SERVICE_ARGUMENT):
    """Check availability of the ports of all or the given service."""
    app_state: AppState = ctx.obj

    with _errors():
        check_other_services(paths=app_state.paths, docker=app_state.docker)
        check_used_ports(
            paths=app_state.paths,
            project_name=app_state.project_name,
            docker=app_state.docker,
            inspector=app_state.inspector,
            service=service,
        )

    console.print("[green]All required ports are available.[/green]")


@app.command()
def start(ctx: typer.Context, service: str | None = SERVICE_ARGUMENT):
    """Start all or the given installed service."""
    app_state: AppState = ctx.obj

    with _errors():
        check_other_services(paths=app_state.paths, docker=app_state.docker)
        check_used_ports(
            paths=app_state.paths,
            project_name=app_state.project_name,
            docker=app_state.docker,
            inspector=app_state.inspector,
            service=service,
        )

        if load_options(app_state.paths).volume_mode is VolumeMode.MAPPED_VOLUMES:
            ensure_volumes_dir(app_state.paths.volumes_dir)

        _compose(app_state, *with_service(["up", "-d"], service))


@app.command()
def stop(ctx: typer.Context, service: str | None = SERVICE_ARGUMENT):
    """Stop and remove all or the given running service."""
    app_state: AppState = ctx.obj

    with _errors():
        _compose(app_state, *with_service(["stop"], service))
        _compose(app_state, *with_service(["rm", "-fv"], service))


@app.command()
def restart(ctx: typer.Context, service: str | None = SERVICE_ARGUMENT):
    """Restart all or the given installed service."""
    app_state: AppState = ctx.obj

    with _errors():
        _compose(app_state, *with_service(["restart"], service))


@app.command("list")
def list_services(ctx: typer.Context):
    """List all running services."""
    app_state: AppState = ctx.obj

    with _errors():
        _compose(app_state, "ps")


@app.command()
def logs(ctx: typer.Context, service: str | None = SERVICE_ARGUMENT):
    """Follow the logs of all or the given running service."""
    app_state: AppState = ctx.obj

    with _errors():
        _compose(app_state, *with_service(["logs", "-f"], service))


@app.command()
def pull(ctx: typer.Context, service: str | None = SERVICE_ARGUMENT):
    """Pull the images of all or the given installed service."""
    app_state: AppState = ctx.obj

    with _errors():
        _compose(app_state, *with_service(["pull"], service))
