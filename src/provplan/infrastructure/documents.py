"""JSON documents for units, repositories and profiles.

These are the interchange format of the CLI and the file repository
loader. They are validated with pydantic and converted into frozen domain
objects; nothing here persists planner state.

A repository document::

    {"units": [
        {"id": "A", "version": "1.0",
         "requires": [{"name": "B", "range": "[1.0,2.0)"}]},
        {"id": "B", "version": "1.0"}
    ]}

A profile document adds ``profile_id`` and ``properties``.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, ValidationError, field_validator

from provplan.domain.errors import DocumentError
from provplan.domain.units import (
    IU_NAMESPACE,
    InstallableUnit,
    Profile,
    ProvidedCapability,
    RequiredCapability,
)
from provplan.domain.versions import Version, VersionRange


class CapabilityDocument(BaseModel):
    """One entry of a unit's ``provides`` list."""

    model_config = {"frozen": True, "extra": "forbid"}

    namespace: str
    name: str
    version: str = ""

    @field_validator("version")
    @classmethod
    def _check_version(cls, value: str) -> str:
        Version.parse(value)
        return value

    def to_capability(self) -> ProvidedCapability:
        return ProvidedCapability(self.namespace, self.name, Version.parse(self.version))


class RequirementDocument(BaseModel):
    """One entry of a unit's ``requires`` list. The namespace defaults to unit ids."""

    model_config = {"frozen": True, "extra": "forbid"}

    namespace: str = IU_NAMESPACE
    name: str
    range: str = ""
    optional: bool = False
    greedy: bool = False

    @field_validator("range")
    @classmethod
    def _check_range(cls, value: str) -> str:
        VersionRange.parse(value)
        return value

    def to_requirement(self) -> RequiredCapability:
        return RequiredCapability(
            self.namespace,
            self.name,
            VersionRange.parse(self.range),
            optional=self.optional,
            greedy=self.greedy,
        )


class UnitDocument(BaseModel):
    model_config = {"frozen": True, "extra": "forbid"}

    id: str = Field(min_length=1)
    version: str = ""
    provides: list[CapabilityDocument] = Field(default_factory=list)
    requires: list[RequirementDocument] = Field(default_factory=list)
    touchpoint_type: str = ""
    properties: dict[str, str] = Field(default_factory=dict)

    @field_validator("version")
    @classmethod
    def _check_version(cls, value: str) -> str:
        Version.parse(value)
        return value

    def to_unit(self) -> InstallableUnit:
        return InstallableUnit(
            id=self.id,
            version=Version.parse(self.version),
            provides=frozenset(c.to_capability() for c in self.provides),
            requires=tuple(r.to_requirement() for r in self.requires),
            touchpoint_type=self.touchpoint_type,
            properties=self.properties,
        )


class RepositoryDocument(BaseModel):
    model_config = {"frozen": True, "extra": "forbid"}

    units: list[UnitDocument] = Field(default_factory=list)

    def to_units(self) -> list[InstallableUnit]:
        return [u.to_unit() for u in self.units]


class ProfileDocument(BaseModel):
    model_config = {"frozen": True, "extra": "forbid"}

    profile_id: str = "default"
    units: list[UnitDocument] = Field(default_factory=list)
    properties: dict[str, str] = Field(default_factory=dict)

    def to_profile(self) -> Profile:
        return Profile(self.profile_id, (u.to_unit() for u in self.units), self.properties)


# ── Readers ──────────────────────────────────────────────────────────


def _describe(exc: ValidationError) -> str:
    first = exc.errors()[0]
    where = ".".join(str(part) for part in first["loc"]) or "<root>"
    extra = f" (+{exc.error_count() - 1} more)" if exc.error_count() > 1 else ""
    return f"{where}: {first['msg']}{extra}"


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        msg = f"Cannot read {path}: {exc.strerror or exc}"
        raise DocumentError(msg) from exc
    except UnicodeDecodeError as exc:
        msg = f"Not a UTF-8 document {path}: {exc.reason} at byte {exc.start}"
        raise DocumentError(msg) from exc


def parse_repository(raw: str | bytes, *, source: str = "<string>") -> list[InstallableUnit]:
    """Parse repository JSON into units. Raises DocumentError when malformed."""
    try:
        return RepositoryDocument.model_validate_json(raw).to_units()
    except ValidationError as exc:
        msg = f"Invalid repository document {source}: {_describe(exc)}"
        raise DocumentError(msg) from exc


def parse_profile(raw: str | bytes, *, source: str = "<string>") -> Profile:
    """Parse profile JSON into a Profile. Raises DocumentError when malformed."""
    try:
        return ProfileDocument.model_validate_json(raw).to_profile()
    except ValidationError as exc:
        msg = f"Invalid profile document {source}: {_describe(exc)}"
        raise DocumentError(msg) from exc


def read_repository(path: Path) -> list[InstallableUnit]:
    return parse_repository(_read_text(path), source=str(path))


def read_profile(path: Path) -> Profile:
    return parse_profile(_read_text(path), source=str(path))

