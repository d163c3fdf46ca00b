"""Geo-tagged listings (services, products, businesses) and their ranked form."""
from dataclasses import dataclass, field
from typing import Any

from mtokaa.services.geo_service import Coordinate


@dataclass
class Address:
    latitude: float | None = None
    longitude: float | None = None
    is_primary: bool = False
    line: str | None = None
    city: str | None = None

    def coordinate(self) -> Coordinate | None:
        if self.latitude is None or self.longitude is None:
            return None
        return Coordinate(float(self.latitude), float(self.longitude))

    def label(self) -> str:
        return ", ".join(p for p in (self.line, self.city) if p)


@dataclass
class Listing:
    """A service, product or business together with the owning business's addresses."""
    id: int
    kind: str
    name: str
    business_type: str | None = None
    rating: float = 0.0
    reviews: int = 0
    addresses: list[Address] = field(default_factory=list)
    data: dict[str, Any] = field(default_factory=dict)

    def primary_address(self) -> Address | None:
        """First address flagged primary, else the first address, else None."""
        for address in self.addresses:
            if address.is_primary:
                return address
        return self.addresses[0] if self.addresses else None

    def coordinate(self) -> Coordinate | None:
        address = self.primary_address()
        return address.coordinate() if address else None


@dataclass
class RankedListing:
    listing: Listing
    distance_km: float | None = None
    travel_time: str | None = None
