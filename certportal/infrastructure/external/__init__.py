"""Adapters for services outside the process."""
