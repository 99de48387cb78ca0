"""Infrastructure layer — repository loaders, documents, the provisioning agent.

This layer depends on stdlib, third-party libs (pydantic) and the domain
and resolution layers. It must never import from services, commands, or
output.
"""
