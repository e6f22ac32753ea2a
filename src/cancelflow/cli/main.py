"""Main CLI application entry point."""

import asyncio
import logging
from pathlib import Path

import typer
from rich.console import Console

from cancelflow import __version__
from cancelflow.cli.output import OutputFormatter
from cancelflow.cli.prompts import EXIT, WizardPrompter, is_interactive
from cancelflow.core.engine import WizardEngine
from cancelflow.core.protocols import WizardResult
from cancelflow.db.seed import MOCK_USER_ID, SAMPLE_SUBSCRIPTIONS
from cancelflow.security.sanitize import is_valid_uuid
from cancelflow.services.api_client import CancellationApiClient
from cancelflow.utils.config import ConfigLoader
from cancelflow.utils.exceptions import ConfigurationError, UserAborted
from cancelflow.utils.session import SessionLogger

console = Console()

app = typer.Typer(
    name="cancelflow",
    help="Subscription cancellation wizard and the API behind it.",
    no_args_is_help=True,
)

MOCK_SUBSCRIPTION_ID = SAMPLE_SUBSCRIPTIONS[0][0]


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"CancelFlow v{__version__}")
        raise typer.Exit()


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """CancelFlow - subscription cancellation wizard."""
    pass


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind"),
    port: int = typer.Option(8000, "--port", "-p", help="Port to listen on"),
) -> None:
    """Run the cancellation API."""
    import uvicorn

    from cancelflow.api.app import create_app

    try:
        config = ConfigLoader.load()
    except ConfigurationError as e:
        console.print(f"[red]Configuration error: {e}[/red]")
        raise typer.Exit(code=4)

    configure_logging(config.log_level)
    uvicorn.run(create_app(config), host=host, port=port, log_level=config.log_level.lower())


@app.command("init-db")
def init_db_command(
    seed: bool = typer.Option(
        False, "--seed", help="Insert sample users and subscriptions"
    ),
) -> None:
    """Create the database tables."""
    from cancelflow.db.database import create_db_engine, create_session_factory, init_db
    from cancelflow.db.seed import seed_sample_data

    try:
        config = ConfigLoader.load()
    except ConfigurationError as e:
        console.print(f"[red]Configuration error: {e}[/red]")
        raise typer.Exit(code=4)

    configure_logging(config.log_level)
    engine = create_db_engine(config.database_url)
    init_db(engine)
    console.print(f"Tables created in {config.database_url}")
    if seed:
        with create_session_factory(engine)() as db:
            inserted = seed_sample_data(db)
        console.print(f"Inserted {inserted} sample rows")


async def run_wizard(
    engine: WizardEngine, prompter: WizardPrompter, formatter: OutputFormatter
) -> WizardResult:
    """Drive the wizard until a completion screen or until the user leaves.

    Raises:
        UserAborted: If the user pressed Ctrl+C on a screen.
    """
    with formatter.waiting("Contacting the cancellation API..."):
        await engine.load()
    while not engine.session.is_terminal:
        formatter.show_step(engine.session)
        event = await prompter.ask(engine)
        if event is None:
            engine.abort()
        if event == EXIT:
            break
        await engine.dispatch(event)
    return engine.result()


@app.command(
    epilog="Note: run 'cancelflow serve' first, or point --api-url at a running API."
)
def cancel(
    user_id: str = typer.Option(
        MOCK_USER_ID, "--user-id", "-u", help="User going through the flow"
    ),
    subscription_id: str = typer.Option(
        MOCK_SUBSCRIPTION_ID,
        "--subscription-id",
        "-s",
        help="Subscription being cancelled",
    ),
    monthly_price: int = typer.Option(
        2500, "--monthly-price", help="Current monthly price in cents"
    ),
    api_url: str | None = typer.Option(
        None, "--api-url", help="Cancellation API root (default: CANCELFLOW_API_URL)"
    ),
    output_dir: Path | None = typer.Option(
        None,
        "--output-dir",
        "-o",
        help="Directory for session logs",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-V",
        help="Show every step transition",
    ),
    no_input: bool = typer.Option(
        False,
        "--no-input",
        help="Disable all interactive prompts",
    ),
    plain: bool = typer.Option(
        False,
        "--plain",
        help="Disable colors",
    ),
) -> None:
    """Walk through the subscription cancellation wizard."""
    if not is_valid_uuid(user_id) or not is_valid_uuid(subscription_id):
        typer.echo("Error: --user-id and --subscription-id must be UUIDs.")
        raise typer.Exit(code=3)

    if not is_interactive(no_input):
        typer.echo("Error: the cancellation wizard needs an interactive terminal.")
        raise typer.Exit(code=3)

    try:
        config = ConfigLoader.load()
    except ConfigurationError as e:
        console.print(f"[red]Configuration error: {e}[/red]")
        raise typer.Exit(code=4)
    if output_dir:
        config.output_dir = output_dir
    if api_url:
        config.api_url = api_url

    formatter = OutputFormatter(verbose=verbose, plain=plain)
    session_log = SessionLogger(
        output_dir=config.output_dir, user_id=user_id, api_url=config.api_url
    )
    engine = WizardEngine(
        api=CancellationApiClient(config.api_url),
        session_log=session_log,
        user_id=user_id,
        subscription_id=subscription_id,
        monthly_price=monthly_price,
        output_callback=formatter.show_progress,
    )

    try:
        result = asyncio.run(run_wizard(engine, WizardPrompter(plain=plain), formatter))
    except UserAborted:
        typer.echo("\nCancellation flow closed.")
        raise typer.Exit(code=2)

    if result.completed or result.accepted_downsell:
        formatter.show_success(result)
        raise typer.Exit(code=0)
    formatter.show_failure(result)
    raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
