"""Haven CLI application using Typer.

Operator commands for the bank connection and sync engine: checking the
GoCardless setup, linking a bank from the terminal, running syncs and
preparing the database.
"""

import asyncio
import contextlib
import secrets
import signal
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional
from uuid import UUID

import typer
from rich.console import Console
from rich.table import Table
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from haven.application.commands import (
    AccountSyncCommand,
    CompleteConnectionCommand,
    DailySyncCommand,
    InitiateConnectionCommand,
)
from haven.application.context import UserContext
from haven.application.dtos.banking import ConnectionCompleted
from haven.application.queries import ListInstitutionsQuery
from haven.application.services import (
    ConnectionCompletionWatcher,
    WatchOutcome,
)
from haven.domain.banking.exceptions import ConnectionNotLinkedError
from haven.domain.banking.ports import AggregatorPort
from haven.domain.shared.exceptions import DomainException
from haven.infrastructure.integration.gocardless import GoCardlessClient
from haven.infrastructure.persistence.sqlalchemy.engine import create_engine
from haven.infrastructure.persistence.sqlalchemy.init_db import (
    create_tables,
    display_database_url,
)
from haven.infrastructure.persistence.sqlalchemy.repositories import (
    SQLAlchemyRepositoryFactory,
)
from haven.presentation.api.config import callback_url
from haven_auth import JWTService
from haven_config.settings import Settings, get_settings

app = typer.Typer(
    name="haven",
    help="Haven - bank connections and sync through GoCardless",
    no_args_is_help=True,
)
console = Console()

secrets_app = typer.Typer(
    name="secrets",
    help="Secret generation utilities",
    no_args_is_help=True,
)
app.add_typer(secrets_app)

auth_app = typer.Typer(
    name="auth",
    help="Token utilities for local development",
    no_args_is_help=True,
)
app.add_typer(auth_app)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class _Runtime:
    """Engine and GoCardless client shared by one CLI invocation."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self._engine = create_engine(settings.database_url, pool_pre_ping=True)
        self._session_maker = async_sessionmaker(
            self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        self._aggregator: Optional[GoCardlessClient] = None

    def aggregator(self) -> AggregatorPort:
        if self._aggregator is None:
            self._aggregator = GoCardlessClient.from_settings(self.settings)
        return self._aggregator

    @asynccontextmanager
    async def unit_of_work(
        self,
        user_id: Optional[UUID] = None,
    ) -> AsyncIterator[SQLAlchemyRepositoryFactory]:
        """Yield a repository factory; commit on success, roll back on error."""
        async with self._session_maker() as session:
            factory = SQLAlchemyRepositoryFactory(
                session=session,
                user_context=UserContext.from_values(user_id) if user_id else None,
                aggregator_provider=self.aggregator,
                settings=self.settings,
            )
            try:
                yield factory
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def close(self) -> None:
        if self._aggregator is not None:
            await self._aggregator.close()
        await self._engine.dispose()


def _run(coro):
    """Run a coroutine, turning domain errors into a clean exit code."""
    try:
        return asyncio.run(coro)
    except DomainException as e:
        console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(code=1) from e


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command("validate-config")
def validate_config() -> None:
    """Check that the GoCardless credentials are accepted."""
    settings = get_settings()
    if not settings.gocardless_configured:
        console.print(
            "[red]GOCARDLESS_SECRET_ID and GOCARDLESS_SECRET_KEY are not set.[/red]",
        )
        raise typer.Exit(code=1)

    async def _validate() -> bool:
        client = GoCardlessClient.from_settings(settings)
        try:
            return await client.validate_credentials()
        finally:
            await client.close()

    if not _run(_validate()):
        console.print("[red]GoCardless rejected the credentials.[/red]")
        raise typer.Exit(code=1)
    console.print(
        "[green]GoCardless credentials valid[/green] "
        f"({settings.gocardless_base_url})",
    )


@app.command("institutions")
def list_institutions(
    country: str = typer.Option("GB", "--country", "-c", help="ISO country code"),
) -> None:
    """List the banks available in a country."""

    async def _list() -> None:
        runtime = _Runtime(get_settings())
        try:
            query = ListInstitutionsQuery(runtime.aggregator())
            institutions = await query.execute(country)
        finally:
            await runtime.close()

        table = Table(title=f"Institutions ({country.upper()})")
        table.add_column("ID", style="cyan")
        table.add_column("Name")
        table.add_column("BIC", style="dim")
        table.add_column("History (days)", justify="right")
        for institution in institutions:
            table.add_row(
                institution.id,
                institution.name,
                institution.bic or "",
                str(institution.transaction_total_days or ""),
            )
        console.print(table)

    _run(_list())


@app.command("connect")
def connect(
    user_id: UUID = typer.Option(..., "--user-id", help="User to link the bank for"),
    institution_id: str = typer.Option(..., "--institution-id"),
    institution_name: str = typer.Option("", "--institution-name"),
    country: str = typer.Option("GB", "--country", "-c"),
    wait: bool = typer.Option(True, "--wait/--no-wait", help="Watch for completion"),
) -> None:
    """Start linking a bank and wait until the user has authorized it."""
    settings = get_settings()

    async def _connect() -> WatchOutcome:
        runtime = _Runtime(settings)
        try:
            async with runtime.unit_of_work(user_id) as factory:
                initiated = await InitiateConnectionCommand.from_factory(
                    factory,
                ).execute(
                    institution_id=institution_id,
                    institution_name=institution_name,
                    country_code=country,
                    redirect_url=callback_url(settings),
                )

            console.print(
                f"\nOpen this link to authorize [bold]{initiated.institution_name}"
                f"[/bold]:\n\n  [link]{initiated.auth_url}[/link]\n",
            )
            console.print(f"[dim]Requisition: {initiated.requisition_id}[/dim]")
            if not wait:
                return WatchOutcome.PENDING

            async def _complete(requisition_id: str) -> ConnectionCompleted:
                async with runtime.unit_of_work() as factory:
                    command = CompleteConnectionCommand.from_factory(factory)
                    try:
                        return await command.execute(requisition_id)
                    except ConnectionNotLinkedError:
                        # Keep the recorded failure state
                        await factory.session.commit()
                        raise

            watcher = ConnectionCompletionWatcher(
                aggregator=runtime.aggregator(),
                complete=_complete,
                poll_interval=settings.connection_watch_poll_seconds,
                max_attempts=settings.connection_watch_max_attempts,
                timeout_seconds=settings.connection_watch_timeout_seconds,
            )
            cancel = asyncio.Event()
            loop = asyncio.get_running_loop()
            with contextlib.suppress(NotImplementedError):
                loop.add_signal_handler(signal.SIGINT, cancel.set)

            with console.status("Waiting for authorization at the bank..."):
                result = await watcher.watch(initiated.requisition_id, cancel)
        finally:
            await runtime.close()

        if result.is_linked and result.completed is not None:
            console.print(
                f"[green]Linked {len(result.completed.accounts)} account(s)[/green]",
            )
            for account in result.completed.accounts:
                console.print(f"  - {account.name} ({account.account_type})")
            if result.completed.failed_account_ids:
                console.print(
                    "[yellow]Could not link: "
                    f"{', '.join(result.completed.failed_account_ids)}[/yellow]",
                )
        elif result.outcome == WatchOutcome.FAILED:
            console.print(f"[red]Authorization failed:[/red] {result.error}")
        else:
            console.print(
                f"[yellow]Not linked yet ({result.outcome.value} after "
                f"{result.attempts} check(s)).[/yellow] The callback will still "
                "complete the connection.",
            )
        return result.outcome

    if _run(_connect()) == WatchOutcome.FAILED:
        raise typer.Exit(code=1)


@app.command("sync")
def sync(
    user_id: UUID = typer.Option(..., "--user-id"),
    account_id: Optional[UUID] = typer.Option(None, "--account-id"),
) -> None:
    """Sync one user's linked accounts. Exits with 1 if any account failed."""

    async def _sync() -> None:
        runtime = _Runtime(get_settings())
        try:
            async with runtime.unit_of_work(user_id) as factory:
                result = await AccountSyncCommand.from_factory(factory).execute(
                    account_id=account_id,
                )
        finally:
            await runtime.close()

        console.print(
            f"Accounts: {result.accounts_synced}  "
            f"Transactions: {result.transactions_synced}  "
            f"Balances: {result.balances_synced}",
        )
        for error in result.errors:
            console.print(f"[red]  - {error}[/red]")
        result.raise_for_errors()
        console.print(f"[green]{result.message}[/green]")

    _run(_sync())


@app.command("sync-daily")
def sync_daily() -> None:
    """Run the scheduled sync for every user with a linked connection."""

    async def _sync_daily() -> None:
        runtime = _Runtime(get_settings())
        try:
            async with runtime.unit_of_work() as factory:
                result = await DailySyncCommand.from_factory(factory).execute()
        finally:
            await runtime.close()

        console.print(
            f"Users: {result.users_processed}  "
            f"OK: {result.successful_syncs}  Failed: {result.failed_syncs}  "
            f"Expired connections: {result.connections_expired}",
        )
        for error in result.errors:
            console.print(f"[red]  - {error}[/red]")

    _run(_sync_daily())


@app.command("db-init")
def db_init() -> None:
    """Create missing database tables."""
    settings = get_settings()
    console.print(f"Database: {display_database_url(settings.database_url)}")
    asyncio.run(create_tables())
    console.print("[green]Database schema is up to date[/green]")


@secrets_app.command("generate")
def generate_secrets() -> None:
    """Generate secure secrets for Haven configuration.

    Copy the output to your .env file.
    """
    console.print("\n[bold green]Haven Secret Generation[/bold green]")
    console.print("=" * 60)
    console.print(f"[cyan]JWT_SECRET_KEY[/cyan]={secrets.token_urlsafe(64)}")
    console.print(f"[cyan]POSTGRES_PASSWORD[/cyan]={secrets.token_urlsafe(32)}")
    console.print(f"[cyan]CRON_SECRET[/cyan]={secrets.token_urlsafe(32)}")
    console.print("=" * 60)
    console.print(
        "[yellow]Keep these secrets secure and never commit them "
        "to version control![/yellow]\n",
    )


@auth_app.command("token")
def issue_token(
    user_id: UUID = typer.Option(..., "--user-id"),
    email: Optional[str] = typer.Option(None, "--email"),
) -> None:
    """Print an access token for a user (development only)."""
    settings = get_settings()
    jwt_service = JWTService(
        secret_key=settings.jwt_secret_key.get_secret_value(),
        access_token_expire_hours=settings.jwt_access_token_expire_hours,
    )
    typer.echo(jwt_service.create_access_token(user_id, email=email))


def cli() -> None:
    """Entry point for the CLI application."""
    app()


if __name__ == "__main__":
    cli()
