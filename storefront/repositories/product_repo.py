# storefront/repositories/product_repo.py
from sqlalchemy import func, or_, update
from sqlmodel import Session, col, select

from storefront.models.product import Product


class ProductRepository:
    """
    Data access layer for Product.

    - Pure DB operations (CRUD + queries).
    - No FastAPI, no business logic.
    """

    def get_by_id(self, session: Session, product_id: int) -> Product | None:
        return session.get(Product, product_id)

    def list_products(
        self,
        session: Session,
        skip: int = 0,
        limit: int = 50,
        category_id: int | None = None,
        q: str | None = None,
    ) -> list[Product]:
        stmt = select(Product)
        if category_id is not None:
            stmt = stmt.where(Product.category_id == category_id)
        if q:
            stmt = stmt.where(self._matches(q))
        stmt = stmt.order_by(Product.id).offset(skip).limit(limit)
        return session.exec(stmt).all()

    def search(self, session: Session, q: str, limit: int = 10) -> list[Product]:
        stmt = select(Product).where(self._matches(q)).limit(limit)
        return session.exec(stmt).all()

    def random_sample(self, session: Session, limit: int = 4) -> list[Product]:
        stmt = select(Product).order_by(func.random()).limit(limit)
        return session.exec(stmt).all()

    def list_by_category(self, session: Session, category_id: int) -> list[Product]:
        stmt = select(Product).where(Product.category_id == category_id)
        return session.exec(stmt).all()

    def low_stock(self, session: Session, threshold: int) -> list[Product]:
        stmt = (
            select(Product)
            .where(Product.stock <= threshold)
            .order_by(Product.stock, Product.id)
        )
        return session.exec(stmt).all()

    def take_stock(self, session: Session, product_id: int, quantity: int) -> bool:
        """
        Decrement stock by `quantity` unless that would go below zero.

        Runs inside the caller's transaction (no commit). Returns False
        when the row was missing or had too little stock.
        """
        stmt = (
            update(Product)
            .where(Product.id == product_id, Product.stock >= quantity)
            .values(stock=Product.stock - quantity)
            .execution_options(synchronize_session=False)
        )
        return session.execute(stmt).rowcount == 1

    def return_stock(self, session: Session, product_id: int, quantity: int) -> None:
        """Put cancelled units back; a deleted product is skipped. No commit."""
        stmt = (
            update(Product)
            .where(Product.id == product_id)
            .values(stock=Product.stock + quantity)
            .execution_options(synchronize_session=False)
        )
        session.execute(stmt)

    def create(self, session: Session, product: Product) -> Product:
        session.add(product)
        session.commit()
        session.refresh(product)
        return product

    def update(self, session: Session, product: Product) -> Product:
        session.add(product)
        session.commit()
        session.refresh(product)
        return product

    def delete(self, session: Session, product: Product) -> None:
        session.delete(product)
        session.commit()

    @staticmethod
    def _matches(q: str):
        pattern = f"%{q}%"
        return or_(
            col(Product.title).ilike(pattern),
            col(Product.description).ilike(pattern),
        )
