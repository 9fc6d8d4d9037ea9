# storefront/routers/categories.py
from fastapi import APIRouter, Depends, File, UploadFile, status
from sqlmodel import Session

from storefront.core.auth import require_staff
from storefront.database import get_session
from storefront.repositories.category_repo import CategoryRepository
from storefront.repositories.product_repo import ProductRepository
from storefront.schemas.category import (
    CategoryCreate,
    CategoryDeleteResult,
    CategoryRead,
    CategoryUpdate,
)
from storefront.services.category_service import CategoryService

router = APIRouter(prefix="/categories", tags=["Categories"])

service = CategoryService(CategoryRepository(), ProductRepository())


# -------- Public endpoints --------


@router.get("", response_model=list[CategoryRead])
def list_categories(session: Session = Depends(get_session)):
    return service.list_categories(session)


@router.get("/{category_id}", response_model=CategoryRead)
def get_category(
    category_id: int,
    session: Session = Depends(get_session),
):
    return service.get_category(session, category_id)


# -------- Staff endpoints --------


@router.post(
    "",
    response_model=CategoryRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_staff)],
)
def create_category(
    payload: CategoryCreate,
    session: Session = Depends(get_session),
):
    return service.create_category(session, payload)


@router.patch(
    "/{category_id}",
    response_model=CategoryRead,
    dependencies=[Depends(require_staff)],
)
def update_category(
    category_id: int,
    payload: CategoryUpdate,
    session: Session = Depends(get_session),
):
    return service.update_category(session, category_id, payload)


@router.delete(
    "/{category_id}",
    response_model=CategoryDeleteResult,
    dependencies=[Depends(require_staff)],
)
def delete_category(
    category_id: int,
    session: Session = Depends(get_session),
):
    """
    Delete a category together with all of its products.
    """
    return service.delete_category(session, category_id)


@router.post(
    "/{category_id}/image",
    response_model=CategoryRead,
    dependencies=[Depends(require_staff)],
    summary="Upload or replace the category image",
)
def upload_category_image(
    category_id: int,
    file: UploadFile = File(...),
    session: Session = Depends(get_session),
):
    return service.set_image(
        session=session,
        category_id=category_id,
        content_type=file.content_type,
        file_bytes=file.file.read(),
    )


@router.delete(
    "/{category_id}/image",
    response_model=CategoryRead,
    dependencies=[Depends(require_staff)],
)
def delete_category_image(
    category_id: int,
    session: Session = Depends(get_session),
):
    return service.remove_image(session, category_id)
