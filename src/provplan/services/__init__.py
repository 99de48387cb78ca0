"""Service layer — planning operations returning ServiceResult.

Services may import from domain, resolution and infrastructure.
They must never import from commands or output.
"""
