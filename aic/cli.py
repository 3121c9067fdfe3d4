import logging
from contextlib import contextmanager
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from aic import __version__
import aic.tui as tui
from aic.config import ConfigStore, normalize_key
from aic.constants import SECRET_KEYS
from aic.core import GitRepository
from aic.editor import MessageEditor
from aic.engine import CommitEngine
from aic.errors import AicError
from aic.providers import CompletionClient
from aic.schemas import Configuration
from aic.utils import mask_token, setup_logging

logger = logging.getLogger(__name__)

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    name="aic",
    help="AI-powered commit message generator.",
    add_completion=False,
)
config_app = typer.Typer(help="Manage configuration settings.", no_args_is_help=True)
app.add_typer(config_app, name="config")


@contextmanager
def handle_errors():
    """Turns aic errors into a red message and exit code 1."""
    try:
        yield
    except AicError as e:
        err_console.print(f"❌ {escape(str(e))}", style="bold red")
        logger.error(f"Command failed: {e}", exc_info=True)
        raise typer.Exit(code=1)


def _load_config(
    prompt: Optional[str] = None,
    model: Optional[str] = None,
    api_base: Optional[str] = None,
) -> Configuration:
    """Loads the merged configuration and applies command-line overrides."""
    config = ConfigStore().load()
    overrides = {"system_prompt": prompt, "model": model, "api_base_url": api_base}
    return config.model_copy(
        update={key: value for key, value in overrides.items() if value is not None}
    )


def _display(key: str, value: str) -> str:
    return mask_token(value) if normalize_key(key) in SECRET_KEYS else value


def _truncate(value: str, width: int = 60) -> str:
    flat = " ".join(value.split())
    return flat if len(flat) <= width else flat[: width - 3] + "..."


def _generate(
    add_all: bool,
    execute: bool,
    push: bool,
    prompt: Optional[str],
    model: Optional[str],
    api_base: Optional[str],
):
    console.print(Panel.fit("AI Commit Message Generator", style="bright_blue"))
    with handle_errors():
        config = _load_config(prompt=prompt, model=model, api_base=api_base)
        engine = CommitEngine(
            console,
            config,
            GitRepository(),
            CompletionClient(config),
            tui,
            MessageEditor(),
        )
        result = engine.run(add_all=add_all, execute=execute, push=push)

    logger.info(f"Finished with status '{result.status}'")
    if result.push_error:
        # The commit exists; the failed push still makes the run unsuccessful.
        raise typer.Exit(code=1)


def _version_callback(value: bool):
    if value:
        console.print(f"aic {__version__}")
        raise typer.Exit()


# --- Generate ---


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    add_all: bool = typer.Option(
        False, "--add-all", "-a", help="Stage all changes before generating a message."
    ),
    execute: bool = typer.Option(
        False, "--execute", "-c", help="Commit without asking for confirmation."
    ),
    push: bool = typer.Option(False, "--push", "-p", help="Push after committing."),
    prompt: Optional[str] = typer.Option(
        None, "--prompt", help="Override the system prompt."
    ),
    model: Optional[str] = typer.Option(None, "--model", help="Override the model."),
    api_base: Optional[str] = typer.Option(
        None, "--api-base", help="Override the API base URL."
    ),
    debug: bool = typer.Option(False, "--debug", help="Echo log records to stderr."),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the version.",
    ),
):
    """Generate a commit message from staged changes (default command)."""
    setup_logging(debug=debug)
    if ctx.invoked_subcommand is None:
        _generate(add_all, execute, push, prompt, model, api_base)


@app.command()
def generate(
    add_all: bool = typer.Option(
        False, "--add-all", "-a", help="Stage all changes before generating a message."
    ),
    execute: bool = typer.Option(
        False, "--execute", "-c", help="Commit without asking for confirmation."
    ),
    push: bool = typer.Option(False, "--push", "-p", help="Push after committing."),
    prompt: Optional[str] = typer.Option(
        None, "--prompt", help="Override the system prompt."
    ),
    model: Optional[str] = typer.Option(None, "--model", help="Override the model."),
    api_base: Optional[str] = typer.Option(
        None, "--api-base", help="Override the API base URL."
    ),
):
    """Analyze staged changes and generate a commit message."""
    _generate(add_all, execute, push, prompt, model, api_base)


@app.command()
def ping(
    model: Optional[str] = typer.Option(None, "--model", help="Override the model."),
    api_base: Optional[str] = typer.Option(
        None, "--api-base", help="Override the API base URL."
    ),
):
    """Test the API connection and credentials."""
    with handle_errors():
        config = _load_config(model=model, api_base=api_base)
        client = CompletionClient(config)
        console.print(
            f"🔌 Pinging [bright_blue]{escape(client.base_url)}[/] "
            f"with model [bright_blue]{escape(client.model)}[/]...",
            style="blue",
        )
        reply = client.ping()

    console.print("✅ API connection successful!", style="bold green")
    if reply:
        console.print(f"   Reply: {escape(_truncate(reply))}", style="dim")


# --- Config ---


@config_app.command("get")
def config_get(key: str = typer.Argument(..., help="Configuration key to read.")):
    """Get a configuration value."""
    with handle_errors():
        value = ConfigStore().get(key)

    shown = "[dim]<not set>[/]" if value is None else escape(value)
    console.print(f"[bright_blue]{escape(key)}[/]: {shown}")


@config_app.command("set")
def config_set(
    key: str = typer.Argument(..., help="Configuration key to set."),
    value: Optional[str] = typer.Argument(None, help="Value to set (omit to unset)."),
    project: bool = typer.Option(
        False, "--project", help="Write to the project .aic.toml."
    ),
):
    """Set a configuration value."""
    scope = "project" if project else "global"
    with handle_errors():
        path = ConfigStore().set(key, value, scope=scope)

    if value is None:
        console.print(f"✓ Unset [bright_blue]{escape(key)}[/]")
    else:
        shown = escape(_display(key, value))
        console.print(f"✓ Set [bright_blue]{escape(key)}[/] to: {shown}")
    console.print(f"   📁 {escape(str(path))}", style="dim")


@config_app.command("setup")
def config_setup(
    api_token: Optional[str] = typer.Option(
        None, "--api-token", help="API token for authentication."
    ),
    api_base_url: Optional[str] = typer.Option(
        None, "--api-base-url", help="Base URL for the OpenAI-compatible API."
    ),
    model: Optional[str] = typer.Option(
        None, "--model", help="Model used to generate messages."
    ),
    system_prompt: Optional[str] = typer.Option(
        None,
        "--system-prompt",
        "--default-prompt",
        help="System prompt for message generation.",
    ),
    user_prompt: Optional[str] = typer.Option(
        None,
        "--user-prompt",
        help="User prompt template; {diff} marks where the diff goes.",
    ),
    project: bool = typer.Option(
        False, "--project", help="Write to the project .aic.toml."
    ),
):
    """Set multiple configuration values at once."""
    provided = {
        "api_token": api_token,
        "api_base_url": api_base_url,
        "model": model,
        "system_prompt": system_prompt,
        "user_prompt": user_prompt,
    }
    values = {key: value for key, value in provided.items() if value is not None}

    if not values:
        console.print(
            "⚠️  No configuration values were provided to set.", style="yellow"
        )
        console.print("Usage examples:", style="bright_blue")
        console.print("  aic config setup --api-token <TOKEN> --api-base-url <URL>")
        console.print(
            "  aic config setup --model gpt-4-turbo "
            "--api-base-url https://api.openai.com/v1"
        )
        return

    console.print("⚙️  Updating configuration...", style="blue")
    with handle_errors():
        path = ConfigStore().update(values, scope="project" if project else "global")

    for key, value in values.items():
        shown = escape(_truncate(_display(key, value)))
        console.print(f"✓ Set [bright_blue]{key}[/] to: {shown}")
    console.print(f"   📁 {escape(str(path))}", style="dim")
    console.print("🎉 Configuration updated successfully!", style="bold green")


@config_app.command("list")
def config_list():
    """List all configuration values (the API token is masked)."""
    with handle_errors():
        store = ConfigStore()
        values = store.list()
        project_path = store.project_path

    console.print("⚙️  Current Configuration:", style="bold green")
    table = Table(show_header=False)
    table.add_column("Key", style="bright_blue")
    table.add_column("Value")
    for key, value in values.items():
        table.add_row(key, escape(_truncate(value)))
    console.print(table)

    console.print("\n📁 Configuration file location:", style="blue")
    console.print(f"   global:  {escape(str(store.global_path))}")
    if project_path:
        console.print(f"   project: {escape(str(project_path))}")


@config_app.command("show")
def config_show():
    """Show the merged configuration and where each value comes from."""
    with handle_errors():
        entries = ConfigStore().show()

    table = Table(title="Resolved Configuration")
    table.add_column("Key", style="bright_blue")
    table.add_column("Value")
    table.add_column("Source", style="dim")
    for entry in entries:
        source = f"{entry.source} ({entry.path})" if entry.path else entry.source
        table.add_row(entry.key, escape(_truncate(entry.value)), escape(source))
    console.print(table)


def run_app():
    """Console script entry point."""
    app()


if __name__ == "__main__":
    run_app()
