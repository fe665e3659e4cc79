"""Proactive messaging models package."""
from .messages import (
    ProactiveMessage,
    build_activity,
    channel_thread_parameters,
    text_message,
)

__all__ = [
    "ProactiveMessage",
    "build_activity",
    "channel_thread_parameters",
    "text_message",
]
