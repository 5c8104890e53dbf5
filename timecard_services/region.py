"""
Region detection seam (``timecard_services.region``).

The detector itself (geolocation, IP lookup, user prompt) lives outside
this package.  It answers with an ISO country code and an administrative
area code; ``resolve_detected_region`` maps that answer onto a region
the catalogue supports.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from timecard_kernel.domain.regions import RegionCatalogue
from timecard_kernel.domain.values import Region
from timecard_kernel.logging_config import get_logger

logger = get_logger("services.region")


@dataclass(frozen=True)
class DetectedLocation:
    """Raw detector answer, e.g. ``("CA", "BC")`` or ``("US", "US-CA")``."""

    country_code: str | None
    admin_code: str | None = None


class RegionDetector(Protocol):
    def detect(self) -> DetectedLocation:
        ...


def resolve_detected_region(
    catalogue: RegionCatalogue,
    country_code: str | None,
    admin_code: str | None,
) -> Region:
    """Supported region for a detector answer, falling back to defaults."""
    region = catalogue.resolve(country_code, admin_code)
    exact = (
        (country_code or "").strip().upper() == region.country
        and (admin_code or "").strip().upper() in (region.subdivision, region.code)
    )
    log = logger.info if exact else logger.warning
    log(
        "region_detected" if exact else "region_detection_fallback",
        extra={
            "country_code": country_code,
            "admin_code": admin_code,
            "resolved_region": region.code,
        },
    )
    return region
