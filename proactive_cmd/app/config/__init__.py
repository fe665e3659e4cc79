"""
Configuration modules for the proactive messaging command.
"""
from .settings import Settings

__all__ = ['Settings']
