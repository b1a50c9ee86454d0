"""Adapters connecting the botfly core to Telegram and HTTP."""
