# storefront/routers/products.py
from fastapi import (
    APIRouter,
    Depends,
    File,
    HTTPException,
    Query,
    UploadFile,
    status,
)
from sqlmodel import Session

from storefront.core.auth import require_staff
from storefront.database import get_session
from storefront.repositories.category_repo import CategoryRepository
from storefront.repositories.product_repo import ProductRepository
from storefront.schemas.product import (
    ProductCard,
    ProductCreate,
    ProductRead,
    ProductUpdate,
)
from storefront.services.product_service import ProductService

router = APIRouter(prefix="/products", tags=["Products"])

repo = ProductRepository()
service = ProductService(repo, CategoryRepository())


# -------- Public endpoints --------


@router.get("", response_model=list[ProductRead])
def list_products(
    session: Session = Depends(get_session),
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
    category_id: int | None = None,
    q: str | None = None,
):
    """
    List products.

    - Public endpoint.
    - Optional filters: `category_id`, `q` (title/description substring).
    """
    return service.list_products(
        session, skip=skip, limit=limit, category_id=category_id, q=q
    )


@router.get("/search", response_model=list[ProductCard])
def search_products(
    q: str | None = None,
    session: Session = Depends(get_session),
):
    """
    Quick search (max 10 results). Fewer than 2 characters => [].
    """
    return service.search(session, q)


@router.get("/recommended", response_model=list[ProductCard])
def recommended_products(session: Session = Depends(get_session)):
    """
    A random handful of products for the landing page.
    """
    return service.recommended(session)


@router.get("/{product_id}", response_model=ProductRead)
def get_product(
    product_id: int,
    session: Session = Depends(get_session),
):
    """
    Get a single product by id.
    """
    return service.get_product(session, product_id)


# -------- Staff endpoints --------


@router.post(
    "",
    response_model=ProductRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_staff)],
)
def create_product(
    payload: ProductCreate,
    session: Session = Depends(get_session),
):
    """
    Create a new product (admin / sales agent).
    """
    return service.create_product(session, payload)


@router.patch(
    "/{product_id}",
    response_model=ProductRead,
    dependencies=[Depends(require_staff)],
)
def update_product(
    product_id: int,
    payload: ProductUpdate,
    session: Session = Depends(get_session),
):
    """
    Update an existing product (admin / sales agent).
    """
    return service.update_product(session, product_id, payload)


@router.delete(
    "/{product_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_staff)],
)
def delete_product(
    product_id: int,
    session: Session = Depends(get_session),
):
    """
    Delete a product and its images.
    """
    service.delete_product(session, product_id)
    return None


@router.post(
    "/{product_id}/images",
    response_model=ProductRead,
    dependencies=[Depends(require_staff)],
    summary="Upload one or more images for a product",
)
def upload_product_images(
    product_id: int,
    files: list[UploadFile] = File(...),
    session: Session = Depends(get_session),
):
    """
    Upload images for the product.

    - Accepts JPEG, PNG, GIF, WEBP.
    - New images are appended; at most 8 per product.
    """
    if not files:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No files uploaded",
        )

    payload: list[tuple[str | None, bytes]] = [
        (f.content_type, f.file.read()) for f in files
    ]
    return service.add_images(session, product_id, payload)


@router.delete(
    "/{product_id}/images",
    response_model=ProductRead,
    dependencies=[Depends(require_staff)],
    summary="Remove one image from a product",
)
def delete_product_image(
    product_id: int,
    url: str = Query(..., min_length=1),
    session: Session = Depends(get_session),
):
    """
    Detach the image with this public URL and delete the stored file.
    """
    return service.remove_image(session, product_id, url)
