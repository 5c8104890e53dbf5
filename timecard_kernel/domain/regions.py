"""
Region catalogue (``timecard_kernel.domain.regions``).

Supported countries and their subdivisions, with a default subdivision per
country and an overall default region.  Pure data; compiled from
``regions.yaml`` by ``timecard_config``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from timecard_kernel.domain.values import Region
from timecard_kernel.exceptions import UnsupportedRegionError


@dataclass(frozen=True)
class CountryInfo:
    """One supported country."""

    code: str
    name: str
    default_subdivision: str
    subdivisions: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.default_subdivision not in self.subdivisions:
            raise UnsupportedRegionError(self.code, self.default_subdivision)

    @property
    def default_region(self) -> Region:
        return Region(self.code, self.default_subdivision)


@dataclass(frozen=True)
class RegionCatalogue:
    """All supported regions."""

    countries: Mapping[str, CountryInfo]
    default_region: Region

    def __post_init__(self) -> None:
        if not self.is_supported(self.default_region):
            raise UnsupportedRegionError(
                self.default_region.country, self.default_region.subdivision
            )

    def is_supported(self, region: Region) -> bool:
        country = self.countries.get(region.country)
        return country is not None and region.subdivision in country.subdivisions

    def require(self, region: Region) -> Region:
        if not self.is_supported(region):
            raise UnsupportedRegionError(region.country, region.subdivision)
        return region

    def display_name(self, region: Region) -> str:
        country = self.countries[region.country]
        return f"{country.subdivisions[region.subdivision]}, {country.name}"

    def resolve(self, country_code: str | None, admin_code: str | None) -> Region:
        """
        Map a detected country + admin code onto a supported region.

        Unknown subdivisions fall back to the country's default; unknown
        countries fall back to the catalogue default.
        """
        country = self.countries.get((country_code or "").strip().upper())
        if country is None:
            return self.default_region
        admin = (admin_code or "").strip().upper()
        if admin.startswith(f"{country.code}-"):
            admin = admin[len(country.code) + 1:]
        if admin in country.subdivisions:
            return Region(country.code, admin)
        return country.default_region
