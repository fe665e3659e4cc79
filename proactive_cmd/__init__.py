"""
Proactive message command for Microsoft Teams.

Sends bot-initiated messages to user conversations and channel threads, and
creates channel threads, through a retry / circuit-breaker policy that rides
out Bot Connector rate limiting.
"""

__version__ = "1.0.0"
