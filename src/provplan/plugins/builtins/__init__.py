"""Built-in plugins registered directly by the provisioning agent."""
