"""
Chat delivery adapters
"""

from .telegram_adapter import TelegramAdapter

__all__ = ['TelegramAdapter']
