"""Telegram assistant for university applicant chats."""
