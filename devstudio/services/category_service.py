"""Category lookups."""

from sqlalchemy import select
from sqlalchemy.orm import Session

from devstudio.db.models import Category


def list_categories(db: Session) -> list[Category]:
    """Categories in their configured display order."""
    return list(
        db.scalars(
            select(Category).order_by(Category.display_order.asc(), Category.id.asc())
        ).all()
    )
