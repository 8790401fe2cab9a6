"""Command line entry point that starts the interactive shell."""

from __future__ import annotations

import code
import logging
from dataclasses import replace
from pathlib import Path

import click
from dotenv import load_dotenv

from . import __version__
from .config import ShellSettings
from .session import ShellSession

BANNER = """ethshell {version}
Provider: {url}
Accounts: {accounts}   (type help_commands() for the command list)"""


@click.command()
@click.option(
    "--home",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory holding wallets.json and config.json",
)
@click.option("--rpc-url", default=None, help="Use this JSON-RPC endpoint for the session")
@click.option(
    "--log-level",
    default="INFO",
    show_default=True,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
)
@click.version_option(__version__)
def main(home: Path | None, rpc_url: str | None, log_level: str) -> None:
    """Start the ethshell interactive console."""

    load_dotenv()
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    settings = ShellSettings.from_env()
    if home is not None:
        settings = replace(settings, data_dir=home)

    with ShellSession(settings) as session:
        if rpc_url:
            session.network.set_endpoint(rpc_url)

        namespace = session.namespace()
        namespace["help_commands"] = lambda: sorted(
            key for key, value in namespace.items() if callable(value) and key != "help_commands"
        )
        console = code.InteractiveConsole(locals=namespace)
        console.interact(
            banner=BANNER.format(
                version=__version__, url=session.network.url, accounts=len(session.registry)
            ),
            exitmsg="bye",
        )


if __name__ == "__main__":  # pragma: no cover
    main()
