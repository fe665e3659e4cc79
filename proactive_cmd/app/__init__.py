"""
Proactive messaging application.

Provides:
- Bot Connector client with app credentials and service URL trust
- Resilience policy (transient retry, circuit breaker, outer retry)
- Message dispatcher for user conversations, channel threads and new threads
- Command line entry point
"""
