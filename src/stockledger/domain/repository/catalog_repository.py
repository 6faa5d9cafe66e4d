"""Abstract lookups into the product and location catalog."""

from __future__ import annotations

from abc import ABC, abstractmethod

from stockledger.domain.model.catalog import Location, Product


class ProductRepository(ABC):

    @abstractmethod
    def get_by_id(self, product_id: str) -> Product | None:
        """Return a product by its ID, or None if not found."""

    @abstractmethod
    def list_all(self) -> list[Product]:
        """Return all products in the catalog."""

    @abstractmethod
    def save(self, product: Product) -> None:
        """Persist a new or updated product."""


class LocationRepository(ABC):

    @abstractmethod
    def get_by_id(self, location_id: str) -> Location | None:
        """Return a location by its ID, or None if not found."""

    @abstractmethod
    def list_all(self) -> list[Location]:
        """Return all locations."""

    @abstractmethod
    def save(self, location: Location) -> None:
        """Persist a new or updated location."""
