"""Context enrichment: supplementary content fetched for a user message."""

from admission_bot.enrichment.base import Enrichment, FetchResult
from admission_bot.enrichment.classifier import ContextEnricher

__all__ = ["ContextEnricher", "Enrichment", "FetchResult"]
