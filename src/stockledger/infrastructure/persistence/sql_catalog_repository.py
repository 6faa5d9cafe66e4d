"""SQLAlchemy-backed product and location lookups."""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import sessionmaker

from stockledger.domain.model.catalog import Location, Product
from stockledger.domain.model.value_objects import Money
from stockledger.domain.repository.catalog_repository import (
    LocationRepository,
    ProductRepository,
)
from stockledger.infrastructure.persistence.sql_models import LocationRow, ProductRow


class SqlProductRepository(ProductRepository):

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def get_by_id(self, product_id: str) -> Product | None:
        with self._session_factory() as session:
            row = session.get(ProductRow, product_id)
        return self._to_domain(row) if row is not None else None

    def list_all(self) -> list[Product]:
        with self._session_factory() as session:
            rows = session.execute(select(ProductRow).order_by(ProductRow.id)).scalars().all()
        return [self._to_domain(row) for row in rows]

    def save(self, product: Product) -> None:
        with self._session_factory() as session, session.begin():
            session.merge(
                ProductRow(
                    id=product.id,
                    sku=product.sku,
                    name=product.name,
                    cost=product.cost.amount,
                    price=product.price.amount,
                    currency=product.cost.currency,
                    min_quantity=product.min_quantity,
                )
            )

    @staticmethod
    def _to_domain(row: ProductRow) -> Product:
        return Product(
            id=row.id,
            sku=row.sku,
            name=row.name,
            cost=Money(Decimal(str(row.cost)), row.currency),
            price=Money(Decimal(str(row.price)), row.currency),
            min_quantity=row.min_quantity,
        )


class SqlLocationRepository(LocationRepository):

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def get_by_id(self, location_id: str) -> Location | None:
        with self._session_factory() as session:
            row = session.get(LocationRow, location_id)
        return self._to_domain(row) if row is not None else None

    def list_all(self) -> list[Location]:
        with self._session_factory() as session:
            rows = session.execute(select(LocationRow).order_by(LocationRow.id)).scalars().all()
        return [self._to_domain(row) for row in rows]

    def save(self, location: Location) -> None:
        with self._session_factory() as session, session.begin():
            session.merge(
                LocationRow(
                    id=location.id,
                    name=location.name,
                    address=location.address,
                    is_active=location.is_active,
                )
            )

    @staticmethod
    def _to_domain(row: LocationRow) -> Location:
        return Location(
            id=row.id,
            name=row.name,
            address=row.address,
            is_active=row.is_active,
        )
