"""
adapters.cli.main - CLI adapter for the CareScan assistant.

Mirrors src/adapters/rest/ but for terminal use. Uses the same
ServiceFactory, AuthenticationService, SessionIssuer and
ConsultationService as the REST API so all behaviour is identical.

Commands
--------
  register        Create a new account
  login           Sign in with username, email or phone (~/.carescan/session.json)
  logout          Clear stored credentials
  whoami          Show the currently logged-in user
  profile         Display your profile and what the assistant knows about you
  update-profile  Set age and medical history
  history         List your stored medication records
  ask             One-shot medication question
  chat            Interactive consultation session

Usage
-----
  python src/adapters/cli/main.py login
  python src/adapters/cli/main.py ask "Can I take ibuprofen with Metformin?"
  python src/adapters/cli/main.py chat
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Optional

# ── Ensure src/ is on the path ──
_SRC = Path(__file__).resolve().parent.parent.parent
sys.path.insert(0, str(_SRC))

import typer
from rich import box
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table

from adapters.cli.session import Session, clear_session, load_session, save_session
from application.dto import LoginRequest, RegisterRequest
from domain.exceptions import (
    AuthenticationError,
    DuplicateIdentifierError,
    InferenceUnavailable,
    MissingCredentials,
    MissingMessage,
    SessionError,
)
from domain.models import ConversationTurn, IdentityProjection
from factory import ServiceFactory
from infrastructure.config import ConfigurationError, Settings

__version__ = "0.1.0"

console = Console()
app = typer.Typer(
    help="CareScan Assistant CLI",
    add_completion=False,
    no_args_is_help=True,
)


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------

def _require_session() -> Session:
    """Return the stored session or exit with a user-friendly error."""
    session = load_session()
    if session is None:
        console.print(
            "[bold red]Not logged in.[/bold red] "
            "Run [bold]login[/bold] (or [bold]register[/bold]) first."
        )
        raise typer.Exit(code=1)
    return session


async def _make_factory() -> ServiceFactory:
    """Create and initialize a ServiceFactory (runs DB migrations)."""
    try:
        config = Settings.from_env()
    except ConfigurationError as exc:
        console.print(f"[bold red]Configuration error:[/bold red] {exc}")
        raise typer.Exit(code=2)
    factory = ServiceFactory(config)
    await factory.initialize()
    return factory


def _verify(session: Session, factory: ServiceFactory) -> IdentityProjection:
    """Verify the stored token; expired/invalid sessions are cleared."""
    try:
        return factory.create_session_issuer().verify(session.access_token)
    except SessionError as exc:
        clear_session()
        console.print(
            f"[bold red]Session no longer valid[/bold red] ({type(exc).__name__}). "
            "Please [bold]login[/bold] again."
        )
        raise typer.Exit(code=1)


def _store(factory: ServiceFactory, identity: IdentityProjection) -> None:
    token = factory.create_session_issuer().issue(identity)
    save_session(Session(
        user_id=token.user_id,
        access_token=token.access_token,
        display_name=token.display_name,
    ))


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"carescan v{__version__}")
        raise typer.Exit()


# ---------------------------------------------------------------------------
# Commands: Auth
# ---------------------------------------------------------------------------

@app.command()
def register() -> None:
    """Create a new account."""
    console.print(Panel("[bold]Create Account[/bold]", border_style="blue"))

    username = Prompt.ask("[bold]Username[/bold]  (min 3 chars)")
    password = Prompt.ask("[bold]Password[/bold]  (min 6 chars)", password=True)
    email    = Prompt.ask("[bold]Email[/bold]    (optional)", default="")
    phone    = Prompt.ask("[bold]Phone[/bold]    (optional)", default="")

    async def _run() -> None:
        factory  = await _make_factory()
        auth_svc = factory.create_authentication_service()
        try:
            identity = await auth_svc.register(RegisterRequest(
                username=username,
                password=password,
                email=email,
                phone_number=phone,
            ))
        except (DuplicateIdentifierError, MissingCredentials, ValueError) as exc:
            console.print(f"[bold red]{exc}[/bold red]")
            raise typer.Exit(code=1)

        _store(factory, identity)
        console.print(Panel(
            f"[bold green]Account created and logged in![/bold green]\n"
            f"Welcome, [bold]{identity.display_name}[/bold].\n"
            "Run [bold]update-profile[/bold] so answers can take your health into account.",
            border_style="green",
        ))

    asyncio.run(_run())


@app.command()
def login() -> None:
    """Sign in with your username, email or phone number."""
    identifier = Prompt.ask("[bold]Username, email or phone[/bold]")
    password   = Prompt.ask("[bold]Password[/bold]", password=True)

    async def _run() -> None:
        factory  = await _make_factory()
        auth_svc = factory.create_authentication_service()
        try:
            identity = await auth_svc.login(LoginRequest(
                identifier=identifier, password=password,
            ))
        except AuthenticationError:
            console.print(
                "[bold red]Login failed.[/bold red] "
                "Check your credentials."
            )
            raise typer.Exit(code=1)

        _store(factory, identity)
        console.print(Panel(
            f"[bold green]Logged in![/bold green] "
            f"Welcome back, [bold]{identity.display_name}[/bold].",
            border_style="green",
        ))

    asyncio.run(_run())


@app.command()
def logout() -> None:
    """Sign out and clear stored credentials."""
    session = load_session()
    if session is None:
        console.print("[dim]Not currently logged in.[/dim]")
        return
    label = session.display_name or f"user #{session.user_id}"
    if Confirm.ask(f"Sign out [bold]{label}[/bold]?"):
        clear_session()
        console.print("[green]Logged out.[/green]")


@app.command()
def whoami() -> None:
    """Show the currently logged-in user."""
    session = _require_session()

    async def _run() -> None:
        factory  = await _make_factory()
        identity = _verify(session, factory)
        console.print(
            f"Logged in as [bold]{identity.display_name}[/bold] "
            f"(user_id={identity.user_id})"
        )

    asyncio.run(_run())


# ---------------------------------------------------------------------------
# Commands: Profile and history
# ---------------------------------------------------------------------------

@app.command()
def profile() -> None:
    """Show your profile and the context the assistant will see."""
    session = _require_session()

    async def _run() -> None:
        factory  = await _make_factory()
        identity = _verify(session, factory)
        user     = await factory.create_profile_service().get_profile(identity.user_id)
        if user is None:
            console.print("[bold red]Profile not found.[/bold red]")
            raise typer.Exit(code=1)

        t = Table(box=box.SIMPLE, show_header=False, padding=(0, 2))
        t.add_column("Field", style="bold")
        t.add_column("Value")
        t.add_row("Username", user.username)
        t.add_row("Email",    user.email or "[dim]-[/dim]")
        t.add_row("Phone",    user.phone_number or "[dim]-[/dim]")
        t.add_row("Age",      str(user.age) if user.age else "[dim]-[/dim]")
        t.add_row("Medical history", user.medical_history or "[dim]none[/dim]")
        console.print(Panel(t, title="Your Profile", border_style="blue"))

        block = await factory.create_personalization_service().assemble(identity.user_id)
        console.print(Panel(block.text, title="Assistant Context", border_style="yellow"))

    asyncio.run(_run())


@app.command("update-profile")
def update_profile(
    age: Optional[int] = typer.Option(None, "--age", help="Your age in years."),
    medical_history: Optional[str] = typer.Option(
        None, "--medical-history", help="Conditions, allergies, ongoing treatments.",
    ),
) -> None:
    """Set your age and medical history."""
    session = _require_session()

    async def _run() -> None:
        factory  = await _make_factory()
        identity = _verify(session, factory)
        try:
            await factory.create_profile_service().update_profile(
                identity.user_id, age, medical_history,
            )
        except ValueError as exc:
            console.print(f"[bold red]{exc}[/bold red]")
            raise typer.Exit(code=1)
        console.print("[green]Profile updated.[/green] The assistant will use your latest details.")

    asyncio.run(_run())


@app.command()
def history() -> None:
    """List your stored medication records (newest first)."""
    session = _require_session()

    async def _run() -> None:
        factory  = await _make_factory()
        identity = _verify(session, factory)
        records  = await factory.create_medication_history_service().list_history(
            identity.user_id,
        )
        if not records:
            console.print("[dim]No medication history found.[/dim]")
            return

        t = Table(box=box.SIMPLE)
        t.add_column("Date", style="bold")
        t.add_column("Medicines")
        for record in records:
            names = ", ".join(
                str(m.get("name", "?")) if isinstance(m, dict) else str(m)
                for m in record.medicines
            )
            t.add_row(record.created_at[:16].replace("T", " "), names)
        console.print(Panel(t, title="Medical History", border_style="blue"))

    asyncio.run(_run())


# ---------------------------------------------------------------------------
# Commands: Consultation
# ---------------------------------------------------------------------------

async def _consult(
    factory: ServiceFactory,
    user_id: int,
    message: str,
    turns: list[ConversationTurn],
) -> Optional[str]:
    block = await factory.create_personalization_service().assemble(user_id)
    try:
        service = factory.create_consultation_service()
        with console.status("[bold cyan]Thinking…", spinner="dots"):
            return await service.consult(message, turns, block)
    except MissingMessage:
        return None
    except InferenceUnavailable as exc:
        console.print(
            "[bold red]The assistant is unavailable right now.[/bold red] "
            f"[dim]({exc.detail})[/dim]"
        )
        return None


@app.command()
def ask(
    message: str = typer.Argument(..., help="Your medication question."),
) -> None:
    """Ask a one-shot medication question (requires login)."""
    session = _require_session()

    async def _run() -> None:
        factory  = await _make_factory()
        identity = _verify(session, factory)
        reply    = await _consult(factory, identity.user_id, message, [])
        if reply is None:
            raise typer.Exit(code=1)
        console.print(Panel(Markdown(reply), title="CareScan AI", border_style="green"))

    asyncio.run(_run())


@app.command()
def chat() -> None:
    """Start an interactive consultation (requires login).

    The conversation is kept in memory only and passed along with each
    message; nothing is stored server-side.
    """
    session = _require_session()

    async def _run() -> None:
        factory  = await _make_factory()
        identity = _verify(session, factory)
        turns: list[ConversationTurn] = []

        console.print(Panel(
            f"[bold]CareScan AI Chat[/bold]\n"
            f"Logged in as [bold]{identity.display_name}[/bold]\n"
            "Type your question, or [bold]exit[/bold] / [bold]quit[/bold] to stop.",
            border_style="cyan",
        ))

        while True:
            try:
                user_input = Prompt.ask("\n[bold cyan]You[/bold cyan]")
            except (KeyboardInterrupt, EOFError):
                console.print("\n[dim]Goodbye![/dim]")
                break

            if user_input.strip().lower() in ("exit", "quit", "q", "bye"):
                console.print("[dim]Goodbye![/dim]")
                break

            if not user_input.strip():
                continue

            reply = await _consult(factory, identity.user_id, user_input, turns)
            if reply is None:
                continue

            turns.append(ConversationTurn(role="user", content=user_input))
            turns.append(ConversationTurn(role="assistant", content=reply))

            console.print()
            console.print(Panel(Markdown(reply), title="CareScan AI", border_style="green"))

    asyncio.run(_run())


# ---------------------------------------------------------------------------
# Global version option
# ---------------------------------------------------------------------------

@app.callback()
def _callback(
    version: bool = typer.Option(
        False, "--version", "-v",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """CareScan Assistant CLI"""


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    app()
