"""Reactinator Discord Bot - Entry point."""

import logging
import os
from pathlib import Path

from reactinator.app import create_app

TOKEN_FILE = Path("discord.token")


def load_token(token_file: Path = TOKEN_FILE) -> str:
    """Read the bot token from DISCORD_TOKEN, falling back to a token file."""
    token = os.environ.get("DISCORD_TOKEN")
    if token:
        return token.strip()

    if token_file.exists():
        token = token_file.read_text().strip()
        if token:
            return token

    raise ValueError(
        f"DISCORD_TOKEN environment variable or ./{token_file} file containing the token required"
    )


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main() -> None:
    """Run the Reactinator Discord bot."""
    setup_logging(os.environ.get("LOG_LEVEL", "INFO"))

    token = load_token()
    bot = create_app()
    bot.run(token)


if __name__ == "__main__":
    main()
