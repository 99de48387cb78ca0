"""Shared service-layer helper functions."""

from __future__ import annotations

from typing import Any

from provplan.domain.units import InstallableUnit
from provplan.domain.versions import Version, VersionRange


def parse_unit_ref(ref: str) -> tuple[str, VersionRange]:
    """Split a unit reference into ``(id, range)``.

    ``id@version`` names one version exactly, ``id@[1.0,2.0)`` a range,
    and a bare ``id`` any version. Raises ValueError when malformed.

    Examples:
        >>> unit_id, rng = parse_unit_ref("core@1.2")
        >>> unit_id, str(rng)
        ('core', '[1.2.0,1.2.0]')
        >>> parse_unit_ref("core")[1] is VersionRange.ANY
        True
    """
    unit_id, sep, spec = ref.strip().partition("@")
    if not unit_id:
        msg = f"Unit reference has no id: {ref!r}"
        raise ValueError(msg)
    if not sep:
        return unit_id, VersionRange.ANY
    spec = spec.strip()
    if not spec:
        msg = f"Unit reference has an empty version: {ref!r}"
        raise ValueError(msg)
    if spec[0] in "[(":
        return unit_id, VersionRange.parse(spec)
    return unit_id, VersionRange.exact(Version.parse(spec))


def unit_summary(unit: InstallableUnit) -> dict[str, Any]:
    """Compact JSON-ready description of *unit*."""
    return {"id": unit.id, "version": str(unit.version)}
