"""Persistence for the category taxonomy."""
from __future__ import annotations

from datetime import datetime
from threading import Lock

from sqlalchemy import delete
from sqlalchemy.engine import Engine
from sqlmodel import Session, select

from ..models import CategoryTypeRecord
from ..schemas import CategoryTaxonomyModel, CategoryTypeModel


class TaxonomyStore:
    """Stores the taxonomy as one row per category type."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        self._lock = Lock()

    def read(self) -> CategoryTaxonomyModel:
        """Return the stored taxonomy in the order it was saved."""

        statement = select(CategoryTypeRecord).order_by(
            CategoryTypeRecord.position, CategoryTypeRecord.type
        )
        with Session(self._engine) as session:
            records = session.exec(statement).all()
            categories = {
                record.type: CategoryTypeModel(
                    title=record.title,
                    description=record.description,
                    slugs=list(record.slugs),
                )
                for record in records
            }
        return CategoryTaxonomyModel(categories=categories)

    def replace(self, taxonomy: CategoryTaxonomyModel) -> CategoryTaxonomyModel:
        """Replace the stored taxonomy wholesale."""

        now = datetime.utcnow()
        with self._lock, Session(self._engine) as session:
            session.execute(delete(CategoryTypeRecord))
            for position, (category_type, descriptor) in enumerate(taxonomy.categories.items()):
                slugs: list[str] = []
                for slug in descriptor.slugs:
                    cleaned = slug.strip()
                    if cleaned and cleaned not in slugs:
                        slugs.append(cleaned)
                session.add(
                    CategoryTypeRecord(
                        type=category_type,
                        title=descriptor.title,
                        description=descriptor.description,
                        slugs=slugs,
                        position=position,
                        updated_at=now,
                    )
                )
            session.commit()
        return self.read()