"""CLI entry point using typer."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from remote_terminal.app import run_client
from remote_terminal.config import AppConfig, ensure_config_dir, load_config
from remote_terminal.terminal.console import Terminal

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="remote-terminal",
    help="Interactive client for a remote command-execution server.",
    add_completion=False,
)
console = Console(highlight=False)


def setup_logging(config: AppConfig) -> None:
    """Log to file only; stream output would break the prompt."""
    ensure_config_dir()
    log_path = Path(config.logging.file).expanduser().resolve()
    log_path.parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        level=getattr(logging, config.logging.level.upper(), logging.WARNING),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[logging.FileHandler(str(log_path))],
    )


@app.command()
def main() -> None:
    """Connect to a remote command server and open an interactive prompt."""
    config = load_config()
    setup_logging(config)

    terminal = Terminal(prompt=config.terminal.prompt, console=console)
    if config.terminal.banner:
        terminal.banner()

    url = typer.prompt(
        typer.style("🌐 Server base URL (e.g. http://localhost:3000)", fg=typer.colors.CYAN),
        default=config.server.url,
        show_default=bool(config.server.url),
    )
    token = typer.prompt(
        typer.style("🔑 Token", fg=typer.colors.CYAN),
        default=config.server.token,
        show_default=False,
        hide_input=True,
    )

    try:
        code = asyncio.run(run_client(config, url.strip(), token.strip(), terminal))
    except Exception as e:
        logger.exception("Fatal error")
        console.print(f"[red]❌ Unexpected error: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    raise typer.Exit(code)


if __name__ == "__main__":
    app()
