"""Service layer — registry operations returning ServiceResult.

Services may import from domain and infrastructure layers.
They must never import from the Registry facade or plugins.
"""
