"""Installable units, capabilities, and the installed-profile record.

An installable unit (IU) is identified by ``(id, version)``. Everything
else it carries (capabilities, touchpoint type, properties) is payload and
takes no part in equality or hashing.

INVARIANT: Units are immutable once constructed.
INVARIANT: A Profile never holds two units with the same identity.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from provplan.domain.versions import Version, VersionRange

# Namespace of the capability every unit provides about itself.
IU_NAMESPACE = "provplan.iu"

# Marks a unit that describes a whole profile (the target of become/revert).
PROP_PROFILE_UNIT = "provplan.type.profile"

# Marks a placeholder unit that a real unit of the same identity may replace.
PROP_MOCK = "iu.mock"

type UnitKey = tuple[str, Version]


def _flag(properties: Mapping[str, str], key: str) -> bool:
    return str(properties.get(key, "")).strip().lower() == "true"


@dataclass(frozen=True, slots=True)
class ProvidedCapability:
    """Something a unit offers: ``namespace/name/version``."""

    namespace: str
    name: str
    version: Version = Version.EMPTY

    def satisfies(self, requirement: RequiredCapability) -> bool:
        """Whether this capability fulfils *requirement*."""
        return (
            self.namespace == requirement.namespace
            and self.name == requirement.name
            and requirement.range.includes(self.version)
        )

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}/{self.version}"


@dataclass(frozen=True, slots=True)
class RequiredCapability:
    """Something a unit needs.

    Attributes:
        optional: When no provider exists the requirement is silently dropped.
        greedy: Every matching provider is retained, not just the best one.
    """

    namespace: str
    name: str
    range: VersionRange = VersionRange.ANY
    optional: bool = False
    greedy: bool = False

    @classmethod
    def unit(
        cls,
        unit_id: str,
        version_range: VersionRange | str | None = None,
        **kwargs: Any,
    ) -> RequiredCapability:
        """Require another unit by id (via its implicit self-capability)."""
        return cls(IU_NAMESPACE, unit_id, VersionRange.parse(version_range), **kwargs)

    def __str__(self) -> str:
        flags = []
        if self.optional:
            flags.append("optional")
        if self.greedy:
            flags.append("greedy")
        suffix = f" ({', '.join(flags)})" if flags else ""
        return f"{self.namespace}/{self.name}/{self.range}{suffix}"


@dataclass(frozen=True, slots=True)
class InstallableUnit:
    """A versioned package description with provided and required capabilities.

    Only ``id`` and ``version`` participate in equality and hashing.
    """

    id: str
    version: Version = Version.EMPTY
    provides: frozenset[ProvidedCapability] = field(default=frozenset(), compare=False)
    requires: tuple[RequiredCapability, ...] = field(default=(), compare=False)
    touchpoint_type: str = field(default="", compare=False)
    properties: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType({}), compare=False
    )

    def __post_init__(self) -> None:
        if not self.id:
            msg = "InstallableUnit id must be a non-empty string"
            raise ValueError(msg)
        # Normalize caller-supplied collections into immutable forms.
        object.__setattr__(self, "version", Version.parse(self.version))
        self_capability = ProvidedCapability(IU_NAMESPACE, self.id, self.version)
        object.__setattr__(self, "provides", frozenset(self.provides) | {self_capability})
        object.__setattr__(self, "requires", tuple(self.requires))
        object.__setattr__(self, "properties", MappingProxyType(dict(self.properties)))

    @property
    def key(self) -> UnitKey:
        """Identity tuple ``(id, version)``."""
        return (self.id, self.version)

    @property
    def identity(self) -> str:
        """Identity string ``{id}_{version}``, used for deterministic tie-breaks."""
        return f"{self.id}_{self.version}"

    @property
    def is_profile_unit(self) -> bool:
        return _flag(self.properties, PROP_PROFILE_UNIT)

    @property
    def is_mock(self) -> bool:
        return _flag(self.properties, PROP_MOCK)

    def mandatory_requirements(self) -> Iterator[RequiredCapability]:
        """Requirements that are not optional."""
        return (r for r in self.requires if not r.optional)

    def get_property(self, key: str, default: str | None = None) -> str | None:
        return self.properties.get(key, default)

    def __str__(self) -> str:
        return f"{self.id} {self.version}"


class Profile:
    """The record of what is currently installed.

    Read-only to the planner; only an execution layer applying a plan
    produces a new Profile.
    """

    def __init__(
        self,
        profile_id: str,
        units: Iterable[InstallableUnit] = (),
        properties: Mapping[str, str] | None = None,
    ) -> None:
        self.profile_id = profile_id
        self._units: dict[UnitKey, InstallableUnit] = {}
        for unit in units:
            self._units.setdefault(unit.key, unit)
        self.properties: Mapping[str, str] = MappingProxyType(dict(properties or {}))

    def installed(self) -> list[InstallableUnit]:
        """All installed units, in insertion order."""
        return list(self._units.values())

    def contains(self, unit: InstallableUnit) -> bool:
        return unit.key in self._units

    def find(
        self, unit_id: str, version_range: VersionRange | None = None
    ) -> list[InstallableUnit]:
        """Installed units with *unit_id* whose version is inside *version_range*."""
        rng = version_range or VersionRange.ANY
        return [u for u in self._units.values() if u.id == unit_id and rng.includes(u.version)]

    def __contains__(self, unit: object) -> bool:
        return isinstance(unit, InstallableUnit) and self.contains(unit)

    def __iter__(self) -> Iterator[InstallableUnit]:
        return iter(self._units.values())

    def __len__(self) -> int:
        return len(self._units)

    def __repr__(self) -> str:
        return f"Profile({self.profile_id!r}, units={len(self._units)})"
