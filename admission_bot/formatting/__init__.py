"""Model output post-processing into Telegram Markdown."""

from admission_bot.formatting.markup import format_response, strip_markup
from admission_bot.formatting.repair import repair_delimiters
from admission_bot.formatting.tables import wrap_tables

__all__ = ["format_response", "repair_delimiters", "strip_markup", "wrap_tables"]
