"""
Application layer - use cases and application services.

Orchestrates the domain state machine over the persistence, storage and
notification ports.
"""
