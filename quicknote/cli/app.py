"""
QuickNote CLI Client.

Create and open one-time encrypted notes from the terminal.
Built with Typer for type-safe commands and Rich for formatted output.
Encryption and decryption happen here; the server only sees ciphertext.

Usage:
    quicknote create "the launch code is 0000"          # link-key mode
    quicknote create --password --expire 10 --unit minutes
    echo "secret" | quicknote create --once
    quicknote read "http://127.0.0.1:8000/n/abc123#key"
    quicknote health

Options:
    --verbose, -v     Enable verbose output
    --debug           Enable debug mode (detailed logging)
    --help            Show help message
"""

import asyncio
import sys

import httpx
import typer
from rich.console import Console
from rich.panel import Panel

from quicknote.backend.core.config import validate_project_root
from quicknote.backend.core.exceptions import ApplicationError, DecryptionError
from quicknote.backend.services.lifecycle import ExpiryUnit
from quicknote.cli.client import APIClient
from quicknote.cli.notes import PASSWORD_ATTEMPTS, create_note, open_note

app = typer.Typer(
    name="quicknote",
    help="QuickNote - one-time encrypted notes.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()
err_console = Console(stderr=True)


def _fail(message: str) -> None:
    err_console.print(f"[red]Error: {message}[/red]")
    raise typer.Exit(1)


def _read_text(text: str | None) -> str:
    if text is None or text == "-":
        if sys.stdin.isatty():
            return typer.prompt("Note")
        return sys.stdin.read().rstrip("\n")
    return text


@app.command()
def create(
    text: str = typer.Argument(None, help="Note content. Reads stdin when omitted or '-'."),
    password: bool = typer.Option(
        False, "--password", "-p", help="Protect with a password instead of a link key",
    ),
    expire: int = typer.Option(None, "--expire", "-e", min=1, help="Expire after this many units"),
    unit: ExpiryUnit = typer.Option(ExpiryUnit.HOURS, "--unit", "-u", help="Unit for --expire"),
    max_views: int = typer.Option(None, "--max-views", "-m", min=1, help="Allowed number of views"),
    once: bool = typer.Option(False, "--once", help="Delete after the first view"),
    server: str = typer.Option(None, "--server", "-s", help="Backend URL (default: application.yaml)"),
) -> None:
    """
    Encrypt a note locally and print its share link.

    Examples:
        quicknote create "hello"
        quicknote create "secret" -p -e 1 -u minutes
    """
    content = _read_text(text)
    secret = None
    if password:
        secret = typer.prompt("Password", hide_input=True, confirmation_prompt=True)

    link = asyncio.run(_create(content, secret, expire, unit, max_views, once, server))

    console.print(Panel(link, title="Share link", border_style="green"))
    if not password:
        console.print("[dim]The key is in the link. Anyone with the full link can read the note.[/dim]")


async def _create(
    content: str,
    secret: str | None,
    expire: int | None,
    unit: ExpiryUnit,
    max_views: int | None,
    once: bool,
    server: str | None,
) -> str:
    """Async implementation of create command."""
    client = APIClient(base_url=server)
    try:
        return await create_note(
            client,
            content,
            password=secret,
            expire_value=expire,
            expire_unit=unit,
            max_views=max_views,
            delete_after_first_view=once,
            base_url=server,
        )
    except httpx.HTTPError:
        _fail("Cannot connect to backend")
    except ApplicationError as e:
        _fail(e.message)
    finally:
        await client.close()


@app.command()
def read(
    link: str = typer.Argument(..., help="Share link or note id"),
    server: str = typer.Option(None, "--server", "-s", help="Backend URL (default: application.yaml)"),
) -> None:
    """
    Open a note. Counts one view once the content is shown.

    Examples:
        quicknote read "http://127.0.0.1:8000/n/abc123#key"
    """
    plaintext = asyncio.run(_read(link, server))
    console.print(Panel(plaintext, title="Note", border_style="cyan"))


async def _read(link: str, server: str | None) -> str:
    """Async implementation of read command."""
    client = APIClient(base_url=server)

    def prompt() -> str:
        return typer.prompt("Password", hide_input=True)

    try:
        return await open_note(client, link, prompt, attempts=PASSWORD_ATTEMPTS)
    except httpx.HTTPError:
        _fail("Cannot connect to backend")
    except DecryptionError:
        _fail("Could not decrypt the note. Wrong password or damaged link.")
    except ApplicationError as e:
        _fail(e.message)
    finally:
        await client.close()


@app.command()
def health(
    server: str = typer.Option(None, "--server", "-s", help="Backend URL (default: application.yaml)"),
) -> None:
    """Check that the backend and its note store are reachable."""
    asyncio.run(_health(server))


async def _health(server: str | None) -> None:
    """Async implementation of health command."""
    client = APIClient(base_url=server)
    try:
        response = await client.health()
    except httpx.HTTPError:
        _fail("Cannot connect to backend")
    finally:
        await client.close()

    status = "healthy" if response.status_code == 200 else "unhealthy"
    color = "green" if status == "healthy" else "red"
    console.print(Panel(f"[{color}]{status.upper()}[/{color}]", title="Backend Status"))
    if status != "healthy":
        raise typer.Exit(1)


@app.callback()
def main(
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose output (INFO level logging)",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        "-d",
        help="Enable debug mode (DEBUG level logging)",
    ),
) -> None:
    """
    QuickNote client.

    Notes are encrypted before they leave this machine.
    """
    validate_project_root()

    from quicknote.backend.core.logging import setup_logging

    if debug:
        setup_logging(level="DEBUG", format_type="console", enable_file_logging=False)
        err_console.print("[dim]Debug mode enabled[/dim]")
    elif verbose:
        setup_logging(level="INFO", format_type="console", enable_file_logging=False)
    else:
        setup_logging(level="WARNING", format_type="console", enable_file_logging=False)


if __name__ == "__main__":
    app()
