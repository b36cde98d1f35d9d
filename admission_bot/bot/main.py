"""Bot entry point."""

import logging

from admission_bot.config import settings

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=getattr(logging, settings.log_level),
)
logger = logging.getLogger(__name__)


def main() -> None:
    """Start the bot with long polling."""
    from admission_bot.bot.app import create_app

    if not settings.anthropic_api_key:
        logger.warning("ANTHROPIC_API_KEY is empty, every reply will be the apology message")

    logger.info("Starting bot on Telegram with model %s...", settings.claude_model)
    app = create_app()
    app.run_polling()


if __name__ == "__main__":
    main()
