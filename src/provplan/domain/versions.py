"""Versions and version ranges for capabilities and installable units.

Versions have four segments, ``major.minor.micro.qualifier``. The three
numeric segments default to 0 and the qualifier to the empty string, so
``"1.2"`` and ``"1.2.0"`` are the same version.

Ranges use interval notation:

- ``[1.0,2.0)`` — 1.0 inclusive up to 2.0 exclusive
- ``(1.0,2.0]`` — above 1.0 up to 2.0 inclusive
- ``1.0``       — 1.0 or anything newer (no upper bound)

INVARIANT: Malformed version text raises ValueError. Callers never receive
a partially-parsed version.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import total_ordering
from typing import ClassVar, Self

_QUALIFIER_RE = re.compile(r"^[A-Za-z0-9_\-]*$")


@total_ordering
@dataclass(frozen=True, slots=True)
class Version:
    """An immutable, totally ordered four-segment version."""

    major: int = 0
    minor: int = 0
    micro: int = 0
    qualifier: str = ""

    EMPTY: ClassVar[Version]

    def __post_init__(self) -> None:
        for name in ("major", "minor", "micro"):
            value = getattr(self, name)
            if not isinstance(value, int) or value < 0:
                msg = f"Version {name} must be a non-negative integer, got {value!r}"
                raise ValueError(msg)
        if not _QUALIFIER_RE.match(self.qualifier):
            msg = f"Invalid version qualifier: {self.qualifier!r}"
            raise ValueError(msg)

    @classmethod
    def parse(cls, text: str | Version | None) -> Version:
        """Parse *text* into a Version.

        ``None`` and the empty string map to :attr:`Version.EMPTY`.
        """
        if isinstance(text, Version):
            return text
        if text is None:
            return cls.EMPTY
        raw = text.strip()
        if not raw:
            return cls.EMPTY

        parts = raw.split(".")
        if len(parts) > 4:
            msg = f"Too many segments in version: {text!r}"
            raise ValueError(msg)

        numbers: list[int] = []
        for part in parts[:3]:
            if not part.isdigit():
                msg = f"Invalid numeric segment {part!r} in version {text!r}"
                raise ValueError(msg)
            numbers.append(int(part))
        while len(numbers) < 3:
            numbers.append(0)

        qualifier = parts[3] if len(parts) == 4 else ""
        if len(parts) == 4 and not qualifier:
            msg = f"Empty qualifier in version: {text!r}"
            raise ValueError(msg)
        return cls(numbers[0], numbers[1], numbers[2], qualifier)

    def _sort_key(self) -> tuple[int, int, int, str]:
        return (self.major, self.minor, self.micro, self.qualifier)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._sort_key() < other._sort_key()

    def __str__(self) -> str:
        base = f"{self.major}.{self.minor}.{self.micro}"
        return f"{base}.{self.qualifier}" if self.qualifier else base


Version.EMPTY = Version()


@dataclass(frozen=True, slots=True)
class VersionRange:
    """An interval of versions. ``maximum=None`` means unbounded above."""

    minimum: Version = Version.EMPTY
    maximum: Version | None = None
    include_min: bool = True
    include_max: bool = False

    ANY: ClassVar[VersionRange]

    def __post_init__(self) -> None:
        if self.maximum is None:
            return
        if self.maximum < self.minimum:
            msg = f"Range maximum {self.maximum} is below minimum {self.minimum}"
            raise ValueError(msg)
        if self.maximum == self.minimum and not (self.include_min and self.include_max):
            msg = f"Empty range around {self.minimum}"
            raise ValueError(msg)

    @classmethod
    def parse(cls, text: str | VersionRange | None) -> VersionRange:
        """Parse interval notation or a bare minimum version.

        ``None`` and the empty string map to :attr:`VersionRange.ANY`.
        """
        if isinstance(text, VersionRange):
            return text
        if text is None or not text.strip():
            return cls.ANY

        raw = text.strip()
        first, last = raw[0], raw[-1]
        if first not in "[(":
            return cls(minimum=Version.parse(raw))

        if last not in "])":
            msg = f"Unterminated version range: {text!r}"
            raise ValueError(msg)
        body = raw[1:-1]
        if body.count(",") != 1:
            msg = f"Version range needs exactly two bounds: {text!r}"
            raise ValueError(msg)
        low, high = (b.strip() for b in body.split(","))
        return cls(
            minimum=Version.parse(low),
            maximum=Version.parse(high) if high else None,
            include_min=first == "[",
            include_max=last == "]",
        )

    @classmethod
    def exact(cls, version: Version | str) -> Self:
        """Return the range ``[version, version]``."""
        v = Version.parse(version)
        return cls(minimum=v, maximum=v, include_min=True, include_max=True)

    def includes(self, version: Version) -> bool:
        """Return True when *version* falls inside this range."""
        if self.include_min:
            if version < self.minimum:
                return False
        elif version <= self.minimum:
            return False

        if self.maximum is None:
            return True
        if self.include_max:
            return version <= self.maximum
        return version < self.maximum

    def __contains__(self, version: object) -> bool:
        return isinstance(version, Version) and self.includes(version)

    def __str__(self) -> str:
        if self.maximum is None:
            if self.include_min:
                return str(self.minimum)
            return f"({self.minimum},)"
        left = "[" if self.include_min else "("
        right = "]" if self.include_max else ")"
        return f"{left}{self.minimum},{self.maximum}{right}"


VersionRange.ANY = VersionRange()
