import json
import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Annotated, Any

import typer

from bitbucket_server_provider.config import AppConfig
from bitbucket_server_provider.errors import ProviderError
from bitbucket_server_provider.log import configure_logging
from bitbucket_server_provider.models.repository import RepositoryConfig
from bitbucket_server_provider.resources.repository import ReadResult, RepositoryResource
from bitbucket_server_provider.services.bitbucket_client import BitbucketClient

app = typer.Typer(help="Bitbucket Server repository provider", no_args_is_help=True)
auth_app = typer.Typer(help="Authentication commands")
repo_app = typer.Typer(help="Repository lifecycle commands")

app.add_typer(auth_app, name="auth")
app.add_typer(repo_app, name="repo")

StateOption = Annotated[Path, typer.Option("--state", help="JSON file holding the resource state")]


def build_client(config: AppConfig) -> BitbucketClient:
    return BitbucketClient.from_config(config)


@contextmanager
def _resource() -> Iterator[RepositoryResource]:
    with build_client(_run(AppConfig.from_env)) as client:
        yield RepositoryResource(client)


def _run(action: Callable[[], Any]) -> Any:
    try:
        return action()
    except ProviderError as e:
        typer.secho(f"Error: {e.message}", err=True, fg=typer.colors.RED)
        raise typer.Exit(code=1) from e


def _load_state(path: Path) -> RepositoryConfig:
    try:
        data = json.loads(path.read_text())
    except (OSError, ValueError) as e:
        typer.secho(f"Error: cannot load state from {path}: {e}", err=True, fg=typer.colors.RED)
        raise typer.Exit(code=1) from e
    return _run(lambda: RepositoryConfig.from_state(data))


def _save_state(path: Path, config: RepositoryConfig) -> None:
    text = json.dumps(config.to_state(), indent=2)
    path.write_text(text + "\n")
    typer.echo(text)


@app.callback()
def main(verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging")] = False) -> None:
    if verbose:
        configure_logging(level=logging.DEBUG)


@auth_app.command("status")
def auth_status() -> None:
    config = _run(AppConfig.from_env)
    typer.echo(
        f"Target Bitbucket: {config.bitbucket_url} (expected version {config.bitbucket_version_target})"
    )


@repo_app.command("create")
def repo_create(
    state: StateOption,
    name: Annotated[str, typer.Option(help="Repository name")],
    project_key: Annotated[str | None, typer.Option(help="Project key (default: BITBUCKET_PROJECT_KEY)")] = None,
    slug: Annotated[str, typer.Option(help="Repository slug, derived from the name when omitted")] = "",
    description: Annotated[str, typer.Option()] = "",
    public: Annotated[bool, typer.Option("--public/--private")] = True,
    forkable: Annotated[bool, typer.Option("--forkable/--no-forkable")] = False,
    scm_id: Annotated[str, typer.Option("--scm-id")] = "git",
) -> None:
    if project_key is None:
        project_key = _run(AppConfig.from_env).project_key
    config = RepositoryConfig(
        name=name,
        project_key=project_key,
        slug=slug,
        description=description,
        public=public,
        forkable=forkable,
        scm_id=scm_id,
    )
    with _resource() as resource:
        try:
            _run(lambda: resource.create(config))
        finally:
            # The identity is recorded even when the read-back fails
            if config.id:
                _save_state(state, config)


@repo_app.command("read")
def repo_read(state: StateOption) -> None:
    config = _load_state(state)
    with _resource() as resource:
        result = _run(lambda: resource.read(config))
    if result is ReadResult.NOT_FOUND:
        typer.secho(f"Repository {config.id or config.name} not found", err=True, fg=typer.colors.YELLOW)
        raise typer.Exit(code=2)
    _save_state(state, config)


@repo_app.command("update")
def repo_update(
    state: StateOption,
    description: Annotated[str | None, typer.Option()] = None,
    public: Annotated[bool | None, typer.Option("--public/--private")] = None,
    forkable: Annotated[bool | None, typer.Option("--forkable/--no-forkable")] = None,
) -> None:
    config = _load_state(state)
    if description is not None:
        config.description = description
    if public is not None:
        config.public = public
    if forkable is not None:
        config.forkable = forkable
    with _resource() as resource:
        _run(lambda: resource.update(config))
    _save_state(state, config)


@repo_app.command("delete")
def repo_delete(state: StateOption) -> None:
    config = _load_state(state)
    with _resource() as resource:
        _run(lambda: resource.delete(config))
    state.unlink()
    typer.echo(f"Deleted {config.project_key}/{config.slug or config.name}")


@repo_app.command("import")
def repo_import(
    identity: Annotated[str, typer.Argument(help="Repository identity as project_key/slug")],
    state: StateOption,
) -> None:
    with _resource() as resource:
        config = _run(lambda: resource.import_state(identity))
    _save_state(state, config)


if __name__ == "__main__":
    app()
