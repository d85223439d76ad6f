"""
Category service: manages spending/income categories.

Category ids are slugs derived from the name at creation time.
Two categories whose names only differ in case or punctuation
collide and the second is rejected. A category that is still referenced by a
transaction cannot be deleted.
"""

import re
from decimal import Decimal

import structlog
from sqlalchemy import select, update, delete, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fintrack.errors import (
    ConflictError,
    ConstraintError,
    NotFoundError,
    ValidationError,
    translate_store_error,
)
from fintrack.models.base import atomic
from fintrack.models.reference import Category
from fintrack.models.transaction import Transaction
from fintrack.schemas.category import CategoryCreate, CategoryUpdate, CategoryUsage
from fintrack.services.update_fields import build_update_values

logger = structlog.get_logger(__name__)


DEFAULT_CATEGORIES = [
    CategoryCreate(name="Food & Dining", color="#FF6B6B", icon="utensils"),
    CategoryCreate(name="Transportation", color="#4ECDC4", icon="car"),
    CategoryCreate(name="Entertainment", color="#45B7D1", icon="gamepad-2"),
    CategoryCreate(name="Shopping", color="#96CEB4", icon="shopping-bag"),
    CategoryCreate(name="Bills & Utilities", color="#FFEAA7", icon="receipt"),
    CategoryCreate(name="Health & Medical", color="#DDA0DD", icon="heart"),
    CategoryCreate(name="Salary", color="#98D8C8", icon="banknote"),
    CategoryCreate(name="Savings", color="#7C3AED", icon="piggy-bank"),
    CategoryCreate(name="Investment", color="#2E7D32", icon="trending-up"),
    CategoryCreate(name="Other", color="#BDC3C7", icon="more-horizontal"),
]


def slugify(name: str) -> str:
    """'Food & Dining' -> 'food__dining'"""
    slug = re.sub(r"\s+", "_", name.strip().lower())
    return re.sub(r"[^a-z0-9_]", "", slug)


class CategoryService:

    def __init__(self, db: Session):
        self.db = db

    def _flush(self) -> None:
        try:
            self.db.flush()
        except SQLAlchemyError as exc:
            raise translate_store_error(exc) from exc

    def _name_in_use(self, slug: str, exclude_id: str | None = None) -> bool:
        """True if another category's current name has this slug."""
        query = select(Category.name)
        if exclude_id is not None:
            query = query.where(Category.id != exclude_id)
        return any(
            slugify(name) == slug
            for name in self.db.execute(query).scalars()
        )

    def _free_id(self, slug: str) -> str:
        # A renamed category keeps its old id, which may equal this slug.
        candidate, suffix = slug, 2
        while self.db.get(Category, candidate) is not None:
            candidate = f"{slug}_{suffix}"
            suffix += 1
        return candidate

    def create(self, request: CategoryCreate) -> Category:
        """
        Create a new category.

        Raises ConflictError if an existing category's name has
        the same slug.
        """
        category_id = slugify(request.name)
        if not category_id:
            raise ValidationError(
                f"Category name '{request.name}' has no usable characters"
            )

        if self._name_in_use(category_id):
            raise ConflictError(
                f"Category with name \"{request.name}\" already exists"
            )
        category_id = self._free_id(category_id)

        category = Category(
            id=category_id,
            name=request.name,
            color=request.color,
            icon=request.icon,
        )
        self.db.add(category)
        self._flush()
        logger.info("category_created", category_id=category_id)
        return category

    def get(self, category_id: str) -> Category:
        category = self.db.get(Category, category_id)
        if not category:
            raise NotFoundError(f"Category {category_id} not found")
        return category

    def list_all(self, limit: int | None = None, offset: int | None = None) -> list[Category]:
        query = select(Category).order_by(Category.name)
        if limit is not None:
            query = query.limit(limit)
            if offset is not None:
                query = query.offset(offset)
        return list(self.db.execute(query).scalars().all())

    def find_by_name(self, name: str) -> Category | None:
        return self.db.execute(
            select(Category).where(Category.name == name)
        ).scalars().first()

    def search(self, term: str, limit: int | None = None) -> list[Category]:
        query = (
            select(Category)
            .where(Category.name.contains(term, autoescape=True))
            .order_by(Category.name)
        )
        if limit is not None:
            query = query.limit(limit)
        return list(self.db.execute(query).scalars().all())

    def update(self, category_id: str, request: CategoryUpdate) -> Category:
        """
        Update name, color or icon.

        Renaming keeps the id but is rejected if the new name's
        slug matches another category's name.
        """
        category = self.get(category_id)
        changes = request.model_dump(exclude_unset=True)
        if not changes:
            return category

        if "name" in changes:
            new_id = slugify(changes["name"])
            if not new_id:
                raise ValidationError("Category name is required")
            if self._name_in_use(new_id, exclude_id=category_id):
                raise ConflictError(
                    f"Category with name \"{changes['name']}\" already exists"
                )

        values = build_update_values("category", changes)
        try:
            self.db.execute(
                update(Category)
                .where(Category.id == category_id)
                .values(**values)
            )
        except SQLAlchemyError as exc:
            raise translate_store_error(exc) from exc
        self._flush()
        self.db.refresh(category)
        return category

    def delete(self, category_id: str) -> None:
        """
        Delete a category.

        Raises ConstraintError while any transaction still uses it.
        """
        self.get(category_id)

        usage = self.db.execute(
            select(func.count())
            .select_from(Transaction)
            .where(Transaction.category_id == category_id)
        ).scalar_one()
        if usage > 0:
            raise ConstraintError(
                "Cannot delete category that is used in transactions"
            )

        try:
            self.db.execute(delete(Category).where(Category.id == category_id))
        except SQLAlchemyError as exc:
            raise translate_store_error(exc) from exc
        self._flush()
        logger.info("category_deleted", category_id=category_id)

    def find_unused(self) -> list[Category]:
        return list(self.db.execute(
            select(Category)
            .outerjoin(Transaction, Transaction.category_id == Category.id)
            .where(Transaction.id.is_(None))
            .order_by(Category.name)
        ).scalars().all())

    def usage(self) -> list[CategoryUsage]:
        """Transaction count and raw amount per category, busiest first."""
        transaction_count = func.count(Transaction.id)
        total_amount = func.coalesce(func.sum(Transaction.amount), 0)
        rows = self.db.execute(
            select(
                Category.id,
                Category.name,
                transaction_count.label("transaction_count"),
                total_amount.label("total_amount"),
            )
            .outerjoin(Transaction, Transaction.category_id == Category.id)
            .group_by(Category.id, Category.name)
            .order_by(transaction_count.desc(), total_amount.desc())
        ).all()
        return [
            CategoryUsage(
                category_id=row.id,
                category_name=row.name,
                transaction_count=row.transaction_count,
                total_amount=Decimal(str(row.total_amount)).quantize(Decimal("0.01")),
            )
            for row in rows
        ]

    def most_used(self, limit: int = 5) -> list[Category]:
        usage_count = func.count(Transaction.id)
        return list(self.db.execute(
            select(Category)
            .join(Transaction, Transaction.category_id == Category.id)
            .group_by(Category.id)
            .order_by(usage_count.desc(), Category.name)
            .limit(limit)
        ).scalars().all())

    def bulk_create(self, requests: list[CategoryCreate]) -> list[Category]:
        """Create several categories; either all are written or none."""
        with atomic(self.db):
            return [self.create(request) for request in requests]

    def ensure_defaults(self) -> list[Category]:
        """Seed the default categories if there are none yet."""
        existing = self.db.execute(
            select(func.count()).select_from(Category)
        ).scalar_one()
        if existing > 0:
            return []
        created = self.bulk_create(DEFAULT_CATEGORIES)
        logger.info("default_categories_seeded", count=len(created))
        return created
