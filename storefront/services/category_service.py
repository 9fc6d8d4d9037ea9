# storefront/services/category_service.py
import logging

from fastapi import HTTPException, status
from sqlmodel import Session

from storefront.core.storage_utils import upload_to_storage, validate_image
from storefront.models.product import Category
from storefront.repositories.category_repo import CategoryRepository
from storefront.repositories.product_repo import ProductRepository
from storefront.schemas.category import (
    CategoryCreate,
    CategoryDeleteResult,
    CategoryUpdate,
)
from storefront.services.product_service import discard_images

logger = logging.getLogger(__name__)


class CategoryService:
    """
    Business logic for categories.

    Deleting a category takes its products (and their images) with it.
    """

    def __init__(self, repo: CategoryRepository, product_repo: ProductRepository):
        self.repo = repo
        self.product_repo = product_repo

    def _ensure_unique_name(
        self, session: Session, name: str, current_id: int | None = None
    ) -> None:
        existing = self.repo.get_by_name(session, name)
        if existing is not None and existing.id != current_id:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="A category with this name already exists",
            )

    def list_categories(self, session: Session) -> list[Category]:
        return self.repo.list_categories(session)

    def get_category(self, session: Session, category_id: int) -> Category:
        category = self.repo.get_by_id(session, category_id)
        if not category:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Category not found",
            )
        return category

    def create_category(self, session: Session, payload: CategoryCreate) -> Category:
        self._ensure_unique_name(session, payload.name)
        category = self.repo.create(session, Category(name=payload.name))
        logger.info("Created category %s (%s)", category.id, category.name)
        return category

    def update_category(
        self,
        session: Session,
        category_id: int,
        payload: CategoryUpdate,
    ) -> Category:
        category = self.get_category(session, category_id)
        if payload.name is not None and payload.name != category.name:
            self._ensure_unique_name(session, payload.name, current_id=category.id)
            category.name = payload.name
        return self.repo.update(session, category)

    def delete_category(self, session: Session, category_id: int) -> CategoryDeleteResult:
        """
        Delete a category, every product in it, and their stored images.
        """
        category = self.get_category(session, category_id)
        products = self.product_repo.list_by_category(session, category_id)

        orphaned: list[str] = []
        for product in products:
            orphaned.extend(product.images)
            session.delete(product)
        if category.image_url:
            orphaned.append(category.image_url)
        session.delete(category)
        session.commit()

        discard_images(orphaned)
        logger.info(
            "Deleted category %s with %d products", category_id, len(products)
        )
        return CategoryDeleteResult(deleted_products=len(products))

    def set_image(
        self,
        session: Session,
        category_id: int,
        content_type: str | None,
        file_bytes: bytes,
    ) -> Category:
        """
        Upload or replace the category image.

        Path pattern:
            categories/<category_id>/image.<ext>
        """
        category = self.get_category(session, category_id)
        ext = validate_image(content_type, file_bytes)

        new_url = upload_to_storage(
            f"categories/{category.id}/image.{ext}", file_bytes, content_type
        )
        old_url = category.image_url
        category.image_url = new_url
        category = self.repo.update(session, category)

        # Same extension => same object path, already overwritten by upsert
        if old_url and old_url != new_url:
            discard_images([old_url])
        return category

    def remove_image(self, session: Session, category_id: int) -> Category:
        category = self.get_category(session, category_id)
        if not category.image_url:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Category has no image",
            )
        old_url = category.image_url
        category.image_url = None
        category = self.repo.update(session, category)
        discard_images([old_url])
        return category
