import asyncio
from pathlib import Path

import rich
import typer
from rich.markup import escape

from bou_responder.__about__ import __version__
from bou_responder.cli.options import (
    AppCaFileOption,
    AppConfigOption,
    AppLogLevelOption,
    AppLogSerializeOption,
    AppVersionOption,
    CLIContext,
)
from bou_responder.cli.runner import AppConfiguration, ApplicationRunner
from bou_responder.cli.utils import LogLevels, get_exit_code, get_log_level
from bou_responder.composer import compose
from bou_responder.datastructures import ConnectionConfig
from bou_responder.exceptions import BrokerError, ConfigError
from bou_responder.logger import logger, setup_logger
from bou_responder.occupancy import fetch_count

app = typer.Typer(
    name="bou-responder",
    help="Answer room status slash commands delivered through a Beebotte MQTT channel.",
    pretty_exceptions_short=True,
    invoke_without_command=True,
    rich_markup_mode="markdown",
)


@app.callback()
def main(
    ctx: CLIContext,
    version: AppVersionOption = False,
) -> None:
    """
    Display helpful tips when the main command is run without any subcommands.
    """
    if version:
        import platform

        typer.echo(
            f"Running bou-responder {__version__} with {platform.python_implementation()} "
            f"{platform.python_version()} on {platform.system()}",
        )

        raise typer.Exit

    if ctx.invoked_subcommand is None:
        rich.print("\n[bold]Welcome to the bou-responder CLI![/bold]")
        rich.print("\n[bold]Usage[/bold]: [cyan]bou-responder [COMMAND] [ARGS]...[/cyan]")
        rich.print("\n[bold]Common Commands:[/bold]")
        rich.print("  [green]run[/green]      Listen for status requests and answer them.")
        rich.print("  [green]check[/green]    Validate the configuration file.")
        rich.print("  [green]status[/green]   Query the room once and print the reply.")
        rich.print("  [green]help[/green]     Get detailed help for a command.")


@app.command()
def run(
    config: AppConfigOption = None,
    ca_file: AppCaFileOption = None,
    log_level: AppLogLevelOption = LogLevels.INFO,
    log_serialize: AppLogSerializeOption = False,
) -> None:
    """
    Subscribe to the configured channel and answer every status request.
    """
    app_configuration = AppConfiguration(
        config_path=config,
        ca_file=ca_file,
        log_level=get_log_level(log_level),
        log_serialize=log_serialize,
    )

    application_runner = ApplicationRunner()
    try:
        application_runner.run(app_configuration)
    except ConfigError as e:
        logger.error(f"Error occurred while reading config file: {e}")
        raise typer.Exit(code=get_exit_code(e)) from e
    except BrokerError as e:
        logger.exception(f"The broker connection failed: {e}")
        raise typer.Exit(code=get_exit_code(e)) from e


@app.command()
def check(config: AppConfigOption = None) -> None:
    """
    Validate the configuration file and show what would be subscribed.
    """
    try:
        connection_config = _load_quietly(config)
    except ConfigError as e:
        rich.print(f"[red]Invalid configuration:[/red] {escape(str(e))}")
        raise typer.Exit(code=get_exit_code(e)) from e

    rich.print("[green]The configuration is valid.[/green]")
    rich.print(f"- topic: [cyan]{connection_config.topic}[/cyan]")
    rich.print(f"- endpoint: [cyan]{connection_config.status_endpoint_base}[/cyan]")


@app.command()
def status(config: AppConfigOption = None) -> None:
    """
    Query the status endpoint once and print the reply that would be sent.
    """
    try:
        connection_config = _load_quietly(config)
    except ConfigError as e:
        rich.print(f"[red]Invalid configuration:[/red] {escape(str(e))}")
        raise typer.Exit(code=get_exit_code(e)) from e

    result = asyncio.run(fetch_count(connection_config.status_endpoint_base))
    reply = compose(result)
    typer.echo(reply.headline)
    typer.echo(reply.footer)


def _load_quietly(config: Path | None) -> ConnectionConfig:
    app_configuration = AppConfiguration(
        config_path=config,
        ca_file=None,
        log_level=get_log_level(LogLevels.WARNING),
        log_serialize=False,
    )
    setup_logger(level=app_configuration.log_level, serialize=app_configuration.log_serialize)
    return ApplicationRunner().load(app_configuration)


@app.command(name="help")
def show_help(ctx: typer.Context) -> None:
    """
    Show this message and exit.
    """
    if ctx.parent:
        rich.print(ctx.parent.get_help())


def execute_app() -> None:
    app()


if __name__ == "__main__":
    execute_app()
