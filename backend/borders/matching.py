from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, Sequence

from borders.types import CountryRecord


@dataclass(frozen=True)
class GeometryDescriptor:
    """What the extractor knows about one topology geometry when matching it to a country."""

    index: int
    feature_id: str | None
    name: str | None

    @classmethod
    def from_geometry(cls, index: int, geometry: dict[str, Any]) -> "GeometryDescriptor":
        raw_id = geometry.get("id")
        props = geometry.get("properties") or {}
        name = props.get("name")
        return cls(
            index=index,
            feature_id=str(raw_id) if raw_id is not None else None,
            name=str(name) if name is not None else None,
        )

    @property
    def ref(self) -> str | None:
        return self.feature_id if self.feature_id is not None else self.name


class CountryMatcher(Protocol):
    def match(
        self, descriptor: GeometryDescriptor, countries: Sequence[CountryRecord]
    ) -> CountryRecord | None: ...


class FirstMatchCountryMatcher:
    """
    Lenient matching: the first country whose geometry ref or id equals the feature
    ref (id, else name), or whose display name equals the feature name.

    Features nobody claims (disputed areas, placeholders) return None.
    """

    def match(
        self, descriptor: GeometryDescriptor, countries: Sequence[CountryRecord]
    ) -> CountryRecord | None:
        ref = descriptor.ref
        for c in countries:
            if ref is not None and (c.geometry_ref == ref or c.country_id == ref):
                return c
            if descriptor.name is not None and c.name == descriptor.name:
                return c
        return None


class StrictRefCountryMatcher:
    """Only an exact `geometry_ref == feature id` match counts."""

    def match(
        self, descriptor: GeometryDescriptor, countries: Sequence[CountryRecord]
    ) -> CountryRecord | None:
        if descriptor.feature_id is None:
            return None
        for c in countries:
            if c.geometry_ref == descriptor.feature_id:
                return c
        return None
