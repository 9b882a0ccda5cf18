from fastapi import APIRouter, Depends, HTTPException, Path, Query, Request, status
from sqlalchemy.orm import Session
from typing import List, Optional
import re

from products_api.database import get_db
from products_api.services.product_service import (
    ProductService,
    ProductNotFoundError,
    StorageError
)
from products_api.schemas.product import (
    ProductCreate,
    ProductUpdate,
    ProductResponse
)

router = APIRouter(prefix="/product", tags=["Products"])

INTEGER_PATTERN = re.compile(r"[+-]?[0-9]+")
MAX_INT64 = 2 ** 63 - 1


def parse_int(raw: Optional[str]) -> Optional[int]:
    """
    Parse a signed decimal integer within the 64-bit range,
    returning None for anything else.
    """
    if raw is None or not INTEGER_PATTERN.fullmatch(raw):
        return None
    value = int(raw)
    if abs(value) > MAX_INT64:
        return None
    return value


def parse_product_id(
    product_id: str = Path(..., description="Numeric product ID")
) -> int:
    """Path dependency turning the captured `{product_id}` segment into an int."""
    value = parse_int(product_id)
    if value is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid product ID"
        )
    return value


def get_product_service(
    request: Request,
    db: Session = Depends(get_db)
) -> ProductService:
    settings = request.app.state.settings
    return ProductService(db, default_page_size=settings.DEFAULT_PAGE_SIZE)


def raise_for_service_error(error: Exception):
    """Translate data access errors into HTTP errors."""
    if isinstance(error, ProductNotFoundError):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Product not found"
        )
    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=str(error)
    )


@router.get(
    "",
    response_model=List[ProductResponse],
    summary="List products",
    description="Get up to `count` products ordered by ID, skipping the first `start`."
)
def list_products(
    count: Optional[str] = Query(None, description="Number of products to return"),
    start: Optional[str] = Query(None, description="Number of products to skip"),
    service: ProductService = Depends(get_product_service)
):
    """
    List products.

    - **count**: page size; missing, non-numeric or below 1 falls back to the default
    - **start**: offset; missing, non-numeric or negative falls back to 0
    """
    page_size = parse_int(count)
    if page_size is None or page_size < 1:
        page_size = service.default_page_size

    offset = parse_int(start)
    if offset is None or offset < 0:
        offset = 0

    try:
        return service.get_products(start=offset, count=page_size)
    except StorageError as e:
        raise_for_service_error(e)


@router.get(
    "/{product_id}",
    response_model=ProductResponse,
    summary="Get product by ID"
)
def get_product(
    product_id: int = Depends(parse_product_id),
    service: ProductService = Depends(get_product_service)
):
    """Get a product by ID."""
    try:
        return service.get_product(product_id)
    except (ProductNotFoundError, StorageError) as e:
        raise_for_service_error(e)


@router.post(
    "",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new product"
)
def create_product(
    product_data: ProductCreate,
    service: ProductService = Depends(get_product_service)
):
    """
    Create a new product.

    - **name**: Product name (required)
    - **price**: Product price, rounded to 2 decimal places (default 0.00)
    """
    try:
        return service.create_product(product_data)
    except StorageError as e:
        raise_for_service_error(e)


@router.put(
    "/{product_id}",
    response_model=ProductResponse,
    summary="Update a product",
    description="Update name and/or price. Fields left out of the payload are unchanged."
)
def update_product(
    product_data: ProductUpdate,
    product_id: int = Depends(parse_product_id),
    service: ProductService = Depends(get_product_service)
):
    """Update a product; its ID never changes."""
    try:
        return service.update_product(product_id, product_data)
    except (ProductNotFoundError, StorageError) as e:
        raise_for_service_error(e)


@router.delete(
    "/{product_id}",
    summary="Delete a product"
)
def delete_product(
    product_id: int = Depends(parse_product_id),
    service: ProductService = Depends(get_product_service)
):
    """Delete a product."""
    try:
        service.delete_product(product_id)
    except (ProductNotFoundError, StorageError) as e:
        raise_for_service_error(e)

    return {"result": "success"}
