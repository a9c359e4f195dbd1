"""
Daily SaaS statistics reporting bot
"""

__version__ = "1.0.0"
