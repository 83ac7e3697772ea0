"""
catalog.py
----------
Static enumeration of monitored services and regions.

Every monitored unit is addressed by a CellKey = (service, region). The
catalog cross-product defines exactly which cells receive a sample and a
health score on every tick.
"""

from typing import NamedTuple

from errors import StaleReferenceError


# ---------------------------------------------------------------------------
# Default catalog
# ---------------------------------------------------------------------------

SERVICES = ("Facebook", "Instagram", "WhatsApp", "Messenger", "Workplace", "Quest Store")
REGIONS = ("NA-East", "NA-West", "EU-Central", "EU-West", "APAC", "LATAM")


class CellKey(NamedTuple):
    service: str
    region: str

    def __str__(self) -> str:
        return f"{self.service}/{self.region}"


def cell_keys(services=SERVICES, regions=REGIONS) -> list[CellKey]:
    """Cross-product of services x regions, service-major."""
    return [CellKey(s, r) for s in services for r in regions]


def parse_cell_key(text: str) -> CellKey:
    """
    Parse "SERVICE:REGION" (or "SERVICE/REGION") into a CellKey.

    Used by the demo CLI; no catalog membership check is done here.
    """
    for sep in (":", "/"):
        if sep in text:
            service, region = text.split(sep, 1)
            return CellKey(service.strip(), region.strip())
    raise ValueError(f"Expected SERVICE:REGION, got '{text}'")


class Catalog:
    """Immutable set of services and regions known to an engine."""

    def __init__(self, services=SERVICES, regions=REGIONS):
        self.services = tuple(services)
        self.regions = tuple(regions)
        self._keys = cell_keys(self.services, self.regions)
        self._key_set = frozenset(self._keys)

    def keys(self) -> list[CellKey]:
        return list(self._keys)

    def contains(self, key) -> bool:
        return tuple(key) in self._key_set

    def require(self, key) -> CellKey:
        """Return `key` as a CellKey, raising StaleReferenceError if unknown."""
        if not self.contains(key):
            raise StaleReferenceError(key)
        return CellKey(*key)

    def __len__(self) -> int:
        return len(self._keys)

    def __repr__(self) -> str:
        return f"Catalog(services={len(self.services)}, regions={len(self.regions)})"
