"""
Snowboard Doctor CLI — `snowboard-doctor` command.

Commands:
  snowboard-doctor login            Google sign-in via the identity provider
  snowboard-doctor status           Show the stored account
  snowboard-doctor logout           Sign out and forget the stored account
  snowboard-doctor chat             Interactive chat (Google or guest identity)
  snowboard-doctor send <message>   One-shot message
"""

import asyncio
import logging

try:
    import click
    from rich.console import Console
    from rich.logging import RichHandler
except ImportError:
    raise SystemExit("CLI requires extras: pip install snowboard-doctor[cli]")

from snowboard_doctor._version import __version__
from snowboard_doctor.client import AsyncSnowboardDoctor
from snowboard_doctor.errors import ConfigError

console = Console()
err_console = Console(stderr=True)


def _get_client() -> AsyncSnowboardDoctor:
    try:
        return AsyncSnowboardDoctor()
    except ConfigError as e:
        console.print(f"[red]{e}[/red]")
        raise SystemExit(1)


def _run(coro):
    return asyncio.run(coro)


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
    )


@click.group()
@click.version_option(__version__)
@click.option("-v", "--verbose", is_flag=True, help="Debug logging")
def main(verbose: bool):
    """Snowboard Doctor CLI — chat with your AI snowboard assistant."""
    _setup_logging(verbose)


# Register subcommands from separate modules
from snowboard_doctor.cli.auth import login, status, logout
from snowboard_doctor.cli.chat import chat_cmd, send_cmd

main.add_command(login)
main.add_command(status)
main.add_command(logout)
main.add_command(chat_cmd)
main.add_command(send_cmd)


if __name__ == "__main__":
    main()
