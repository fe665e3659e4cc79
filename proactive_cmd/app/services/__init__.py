"""Proactive messaging services package."""
