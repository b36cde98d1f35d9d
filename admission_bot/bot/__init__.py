"""Telegram glue: handlers, orchestration and delivery."""
