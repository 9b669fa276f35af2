"""CLI: snowboard-doctor login|status|logout"""

from typing import Optional

import click
from rich.console import Console

from snowboard_doctor.auth import ConfigFileSessionStore
from snowboard_doctor.client import AsyncSnowboardDoctor
from snowboard_doctor.identity import SessionContext

console = Console()


def _get_client() -> AsyncSnowboardDoctor:
    from snowboard_doctor.cli.main import _get_client
    return _get_client()


def _run(coro):
    from snowboard_doctor.cli.main import _run
    return _run(coro)


async def google_sign_in(client: AsyncSnowboardDoctor) -> Optional[SessionContext]:
    """Walk the visitor through the redirect flow. None if it failed or was abandoned."""
    url = await client.identity.begin_federated_sign_in()
    if url is None:
        console.print("[red]Google sign-in is unavailable. Check the identity provider settings.[/red]")
        return None
    console.print("Open this URL to sign in with Google:")
    console.print(f"[link={url}]{url}[/link]")
    click.launch(url)
    callback = click.prompt(
        "Paste the URL you were redirected to (blank to go back)", default="", show_default=False,
    )
    if not callback.strip():
        client.identity.cancel()
        return None
    with console.status("Signing in..."):
        context = await client.identity.complete_federated_sign_in(callback.strip())
    if context is None:
        console.print("[red]Sign-in failed. Please try again.[/red]")
    return context


@click.command("login")
def login():
    """Sign in with Google."""

    async def _login():
        client = _get_client()
        try:
            context = await client.start()
            if context is None:
                context = await google_sign_in(client)
            if context is not None:
                console.print(f"[green]Signed in as {context.identity.email}[/green]")
        finally:
            await client.close()

    _run(_login())


@click.command("status")
def status():
    """Show the stored account."""
    session = ConfigFileSessionStore().load()
    if session and session.email:
        console.print(f"[green]Signed in[/green] as {session.email}")
    else:
        console.print("[yellow]Not signed in. Run `snowboard-doctor login` or chat as a guest.[/yellow]")


@click.command("logout")
def logout():
    """Sign out and forget the stored account."""

    async def _logout():
        client = _get_client()
        try:
            if await client.start() is not None:
                await client.sign_out()
        finally:
            await client.close()
        if client.context is not None:
            console.print("[red]Sign-out failed. Please try again.[/red]")
            return
        ConfigFileSessionStore().clear()
        console.print("[green]Signed out.[/green]")

    _run(_logout())
