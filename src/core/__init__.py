"""Core domain package for tgreserve.

Core contains extraction, criteria, composition, and dispatch logic without
any Telegram or OpenAI-specific code, keeping the business logic portable.
"""
