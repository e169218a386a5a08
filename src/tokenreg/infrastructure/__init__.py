"""Infrastructure layer — SQLite persistence via SQLAlchemy Core.

This layer depends on stdlib and third-party libs (SQLAlchemy).
It must never import from services, plugins, or config.
The service layer bridges between domain models and infrastructure.
"""
