"""
Infrastructure layer - frameworks and drivers.

Database access, blob storage, caching, messaging and security adapters.
"""
