"""Presentation layer: HTTP API and middleware."""
