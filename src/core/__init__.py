"""Core domain package for botfly.

Core contains the bot registry, rule matching, and per-bot log buffers without
any Telegram or HTTP-specific code, keeping the runtime logic portable.
"""
