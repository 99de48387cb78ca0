"""Domain layer — installable units, capabilities, versions, plans.

This layer depends only on stdlib and pydantic.
It must never import from resolution, services, infrastructure, commands, or config.
"""
