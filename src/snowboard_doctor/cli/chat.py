"""CLI: snowboard-doctor chat, snowboard-doctor send"""

import json
from typing import Optional

import click
from rich.console import Console

from snowboard_doctor.cli.auth import google_sign_in
from snowboard_doctor.client import AsyncSnowboardDoctor
from snowboard_doctor.identity import SessionContext
from snowboard_doctor.models.message import Message, Notification

console = Console()


def _get_client() -> AsyncSnowboardDoctor:
    from snowboard_doctor.cli.main import _get_client
    return _get_client()


def _run(coro):
    from snowboard_doctor.cli.main import _run
    return _run(coro)


def render_message(message: Message) -> None:
    stamp = message.created_at.strftime("%H:%M")
    if message.is_user:
        console.print(f"[cyan]You[/cyan] [dim]{stamp}[/dim]")
    else:
        console.print(f"[green]Snowboard Doctor[/green] [dim]{stamp}[/dim]")
    console.print(message.content, markup=False, highlight=False)
    console.print()


def render_notification(notification: Notification) -> None:
    style = "red" if notification.variant == "destructive" else "yellow"
    console.print(f"[{style}]{notification.title}:[/{style}] {notification.description}")


async def _guest_sign_in(client: AsyncSnowboardDoctor) -> Optional[SessionContext]:
    client.identity.begin_guest_entry()
    email = click.prompt("Email (blank to go back)", default="", show_default=False)
    if not email.strip():
        client.identity.cancel()
        return None
    name = click.prompt("Name (optional)", default="", show_default=False)
    return await client.sign_in_as_guest(email, name)


async def _sign_in(client: AsyncSnowboardDoctor) -> Optional[SessionContext]:
    """Sign-in options loop. None means the visitor chose to quit."""
    console.print("[bold]Snowboard Doctor[/bold]")
    console.print("Sign in to start chatting with your AI snowboard assistant\n")
    while True:
        choice = click.prompt(
            "[1] Sign in with Google  [2] Quick Sign In  [q] Quit",
            type=click.Choice(["1", "2", "q"]),
            show_choices=False,
        )
        if choice == "q":
            return None
        context = await (google_sign_in(client) if choice == "1" else _guest_sign_in(client))
        if context is not None:
            return context


async def _converse(client: AsyncSnowboardDoctor) -> bool:
    """Chat until /quit (False) or /signout (True)."""
    channel = client.channel()
    remove_message = channel.add_listener(render_message)
    remove_notice = channel.add_notification_listener(render_notification)
    identity = client.context.identity  # type: ignore[union-attr]
    console.print(f"[dim]Signed in as {identity.display_name or identity.email}. "
                  f"Session ID: {channel.session_token[:8]}...[/dim]")
    console.print("[cyan]Type your message (/signout to switch account, /quit to exit)[/cyan]\n")
    try:
        if not channel.messages:
            console.print("[dim]Start a conversation! Ask me anything...[/dim]\n")
        while True:
            channel.input_buffer = click.prompt("You", prompt_suffix=": ", default="", show_default=False)
            command = channel.input_buffer.strip().lower()
            if command in ("/quit", "/exit"):
                return False
            if command == "/signout":
                await client.sign_out()
                if client.context is None:
                    return True
                console.print("[red]Sign-out failed. Please try again.[/red]")
                continue
            with console.status("Snowboard Doctor is thinking..."):
                await channel.submit()
    except (KeyboardInterrupt, EOFError, click.Abort):
        return False
    finally:
        remove_message()
        remove_notice()


@click.command("chat")
def chat_cmd():
    """Interactive chat with Snowboard Doctor."""

    async def _chat():
        client = _get_client()
        try:
            with console.status("Loading..."):
                await client.start()
            while True:
                if client.context is None and await _sign_in(client) is None:
                    break
                if not await _converse(client):
                    break
        except (KeyboardInterrupt, EOFError, click.Abort):
            pass
        finally:
            await client.close()

    _run(_chat())


@click.command("send")
@click.argument("message")
@click.option("--email", default=None, help="Chat as a guest with this email if not signed in")
@click.option("--name", default=None, help="Guest display name")
@click.option("--json-output", "--json", is_flag=True)
def send_cmd(message: str, email: Optional[str], name: Optional[str], json_output: bool):
    """Send a one-shot message."""

    async def _send():
        client = _get_client()
        try:
            context = await client.start()
            if context is None and email:
                context = await client.sign_in_as_guest(email, name)
            if context is None:
                console.print("[red]Not signed in. Run `snowboard-doctor login` or pass --email.[/red]")
                return 1
            channel = client.channel()
            if not json_output:
                channel.add_notification_listener(render_notification)
            reply = await channel.submit(message)
            if reply is None:
                console.print("[yellow]Nothing to send.[/yellow]")
                return 1
            if json_output:
                click.echo(json.dumps({
                    "session_id": channel.session_token,
                    "messages": [m.model_dump(mode="json") for m in channel.messages],
                }))
            else:
                console.print("[green]Snowboard Doctor:[/green]", end=" ")
                console.print(reply.content, markup=False, highlight=False)
            return 0
        finally:
            await client.close()

    code = _run(_send())
    if code:
        raise SystemExit(code)
