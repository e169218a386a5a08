"""Domain layer — identities, events, lists, and membership rules.

This layer depends only on stdlib and pydantic.
It must never import from services, infrastructure, plugins, or config.
"""
