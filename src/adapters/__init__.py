"""Adapters that connect the core pipeline to Telegram and the LLM oracle."""
