# storefront/services/product_service.py
import logging
from decimal import Decimal
from typing import Iterable

from fastapi import HTTPException, status
from sqlmodel import Session

from storefront.core.config import get_settings
from storefront.core.storage_utils import (
    delete_public_url,
    generate_filename,
    upload_to_storage,
    validate_image,
)
from storefront.models.product import Product
from storefront.repositories.category_repo import CategoryRepository
from storefront.repositories.product_repo import ProductRepository
from storefront.schemas.product import ProductCard, ProductCreate, ProductUpdate

logger = logging.getLogger(__name__)
settings = get_settings()

MIN_SEARCH_LENGTH = 2
SEARCH_LIMIT = 10
RECOMMENDED_COUNT = 4


def discard_images(urls: Iterable[str]) -> None:
    """
    Best-effort Storage cleanup. A failed delete leaves an orphan object
    behind, which must not fail the request that already changed the DB.
    """
    for url in urls:
        try:
            delete_public_url(url)
        except Exception:
            logger.warning("Could not delete stored image %s", url, exc_info=True)


class ProductService:
    """
    Business logic for products.

    Responsibilities:
      - catalog reads (filtering, search, recommendations)
      - category existence checks
      - image upload/delete orchestration with Storage
      - staff-only writes (enforced at router via require_staff)
    """

    def __init__(self, repo: ProductRepository, category_repo: CategoryRepository):
        self.repo = repo
        self.category_repo = category_repo

    # ----- Helpers -----

    def _ensure_category(self, session: Session, category_id: int) -> None:
        if self.category_repo.get_by_id(session, category_id) is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Invalid category",
            )

    @staticmethod
    def _to_card(product: Product) -> ProductCard:
        return ProductCard(
            id=product.id,
            title=product.title,
            price=float(product.price),
            image=product.images[0] if product.images else None,
        )

    # ----- Reads -----

    def list_products(
        self,
        session: Session,
        skip: int = 0,
        limit: int = 50,
        category_id: int | None = None,
        q: str | None = None,
    ) -> list[Product]:
        q = q.strip() if q else None
        return self.repo.list_products(
            session, skip=skip, limit=limit, category_id=category_id, q=q
        )

    def search(self, session: Session, q: str | None) -> list[ProductCard]:
        """
        Title/description substring search for the storefront search box.
        Queries shorter than two characters return nothing.
        """
        q = (q or "").strip()
        if len(q) < MIN_SEARCH_LENGTH:
            return []
        return [self._to_card(p) for p in self.repo.search(session, q, SEARCH_LIMIT)]

    def recommended(self, session: Session) -> list[ProductCard]:
        return [
            self._to_card(p)
            for p in self.repo.random_sample(session, RECOMMENDED_COUNT)
        ]

    def get_product(self, session: Session, product_id: int) -> Product:
        product = self.repo.get_by_id(session, product_id)
        if not product:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Product not found",
            )
        return product

    # ----- Writes -----

    def create_product(self, session: Session, payload: ProductCreate) -> Product:
        self._ensure_category(session, payload.category_id)
        product = Product(
            title=payload.title,
            description=payload.description,
            price=Decimal(payload.price),
            stock=payload.stock,
            category_id=payload.category_id,
            seller_id=payload.seller_id,
            sizes=payload.sizes,
            color=payload.color,
        )
        product = self.repo.create(session, product)
        logger.info("Created product %s (%s)", product.id, product.title)
        return product

    def update_product(
        self,
        session: Session,
        product_id: int,
        payload: ProductUpdate,
    ) -> Product:
        """
        Partial update of a product. Only fields present in the payload change.
        """
        product = self.get_product(session, product_id)

        if payload.title is not None:
            product.title = payload.title

        if payload.description is not None:
            product.description = payload.description

        if payload.price is not None:
            product.price = payload.price

        if payload.stock is not None:
            product.stock = payload.stock

        if payload.category_id is not None:
            self._ensure_category(session, payload.category_id)
            product.category_id = payload.category_id

        if payload.sizes is not None:
            product.sizes = payload.sizes

        # color is nullable: an explicit null clears it
        if "color" in payload.model_fields_set:
            product.color = payload.color

        return self.repo.update(session, product)

    def delete_product(self, session: Session, product_id: int) -> None:
        """
        Delete a product row and clean up its images in Storage.
        """
        product = self.get_product(session, product_id)
        images = list(product.images)
        self.repo.delete(session, product)
        discard_images(images)
        logger.info("Deleted product %s", product_id)

    # ----- Images -----

    def add_images(
        self,
        session: Session,
        product_id: int,
        files: Iterable[tuple[str | None, bytes]],
    ) -> Product:
        """
        Upload one or more images and append them to the product.

        Args:
            files: iterable of (content_type, file_bytes)

        All files are validated before anything is uploaded; the total
        number of images is capped at MAX_PRODUCT_IMAGES.
        """
        product = self.get_product(session, product_id)
        files = list(files)

        if len(product.images) + len(files) > settings.MAX_PRODUCT_IMAGES:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"A product can have at most {settings.MAX_PRODUCT_IMAGES} images",
            )

        checked = [
            (content_type, validate_image(content_type, file_bytes), file_bytes)
            for content_type, file_bytes in files
        ]

        new_urls: list[str] = []
        for content_type, ext, file_bytes in checked:
            path = f"products/{product.id}/{generate_filename(ext)}"
            new_urls.append(upload_to_storage(path, file_bytes, content_type))

        # Reassign (not append) so the JSON column is marked dirty
        product.images = [*product.images, *new_urls]
        return self.repo.update(session, product)

    def remove_image(self, session: Session, product_id: int, url: str) -> Product:
        """
        Detach one image URL from the product and delete the stored file.
        """
        product = self.get_product(session, product_id)
        if url not in product.images:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Image not found for this product",
            )

        product.images = [img for img in product.images if img != url]
        product = self.repo.update(session, product)
        discard_images([url])
        return product
