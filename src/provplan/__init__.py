"""provplan — dependency resolution and provisioning plans for installable units."""

__version__ = "0.3.0"
