"""Resolution layer — the planning core.

Gathers a universe of units, expands closures, orders states, diffs them
into operands and sorts those operands into a plan.

This layer may import from domain only. Repository loading is reached
through the :class:`~provplan.resolution.gatherer.RepositorySource`
protocol, never through infrastructure directly.
"""
