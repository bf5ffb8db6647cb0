"""Owner-scoped product CRUD, stock reporting, and deletion endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from inventory.api.dependencies.db import get_session
from inventory.api.dependencies.owner import get_owner_id
from inventory.api.schemas.deletion import DeletionCheck, DeletionOutcome, DeletionStatus
from inventory.api.schemas.product import (
    InventoryStats,
    ProductCreate,
    ProductListResponse,
    ProductRead,
    ProductUpdate,
)
from inventory.core.config import get_settings
from inventory.core.errors import (
    DuplicateProductCodeError,
    OwnerNotFoundError,
    ProductNotFoundError,
)
from inventory.services.deletion_policy import ProductDeletionPolicy
from inventory.services.product_repository import ProductRepository
from inventory.storage.images import delete_image

logger = logging.getLogger(__name__)

router = APIRouter()

OUTCOME_STATUS_CODES = {
    DeletionStatus.DELETED: status.HTTP_200_OK,
    DeletionStatus.DEACTIVATED: status.HTTP_200_OK,
    DeletionStatus.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    DeletionStatus.BLOCKED: status.HTTP_409_CONFLICT,
    DeletionStatus.CONSTRAINT_VIOLATION: status.HTTP_409_CONFLICT,
    DeletionStatus.ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def _database_error(action: str, e: SQLAlchemyError) -> HTTPException:
    logger.error(f"Database error {action}: {e}", exc_info=True)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed to {action}",
    )


def _report(outcome: DeletionOutcome, response: Response) -> DeletionOutcome:
    response.status_code = OUTCOME_STATUS_CODES[outcome.status]
    return outcome


@router.get(
    "/",
    summary="List products with search and category filters",
    response_model=ProductListResponse,
)
async def list_products(
    search: str | None = Query(None, description="Substring match on name or description"),
    category: str | None = Query(None, description="Exact category"),
    include_inactive: bool = Query(False, description="Include soft-deleted products"),
    owner_id: int = Depends(get_owner_id),
    db: Session = Depends(get_session),
) -> ProductListResponse:
    """Return the caller's products, newest first."""
    try:
        products = ProductRepository(db).list_products(
            owner_id,
            search=search,
            category=category,
            include_inactive=include_inactive,
        )
    except SQLAlchemyError as e:
        raise _database_error("list products", e) from e
    return ProductListResponse(
        items=[ProductRead.model_validate(p) for p in products],
        total=len(products),
    )


@router.post(
    "/",
    summary="Create a product",
    status_code=status.HTTP_201_CREATED,
    response_model=ProductRead,
)
async def create_product(
    payload: ProductCreate,
    owner_id: int = Depends(get_owner_id),
    db: Session = Depends(get_session),
) -> ProductRead:
    try:
        product = ProductRepository(db).create(owner_id, payload)
    except (DuplicateProductCodeError, OwnerNotFoundError) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except SQLAlchemyError as e:
        db.rollback()
        raise _database_error("create product", e) from e
    return ProductRead.model_validate(product)


@router.get("/stats", summary="Dashboard counts", response_model=InventoryStats)
async def product_stats(
    owner_id: int = Depends(get_owner_id),
    db: Session = Depends(get_session),
) -> InventoryStats:
    threshold = get_settings().low_stock_threshold
    repository = ProductRepository(db)
    try:
        return InventoryStats(
            total_products=repository.count_total(owner_id),
            low_stock_count=repository.count_low_stock(owner_id, threshold),
            low_stock_threshold=threshold,
        )
    except SQLAlchemyError as e:
        raise _database_error("compute product stats", e) from e


@router.get(
    "/low-stock",
    summary="Active products at or below the low stock threshold",
    response_model=list[ProductRead],
)
async def low_stock_products(
    threshold: int | None = Query(None, ge=0, description="Override the configured threshold"),
    owner_id: int = Depends(get_owner_id),
    db: Session = Depends(get_session),
) -> list[ProductRead]:
    if threshold is None:
        threshold = get_settings().low_stock_threshold
    try:
        products = ProductRepository(db).list_low_stock(owner_id, threshold)
    except SQLAlchemyError as e:
        raise _database_error("list low stock products", e) from e
    return [ProductRead.model_validate(p) for p in products]


@router.get("/categories", summary="Distinct product categories", response_model=list[str])
async def product_categories(
    owner_id: int = Depends(get_owner_id),
    db: Session = Depends(get_session),
) -> list[str]:
    try:
        return ProductRepository(db).list_categories(owner_id)
    except SQLAlchemyError as e:
        raise _database_error("list categories", e) from e


@router.get("/{product_id}", summary="Fetch one product", response_model=ProductRead)
async def get_product(
    product_id: int,
    owner_id: int = Depends(get_owner_id),
    db: Session = Depends(get_session),
) -> ProductRead:
    """Direct fetch; soft-deleted products are returned with active=false."""
    try:
        product = ProductRepository(db).get(product_id, owner_id)
    except ProductNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except SQLAlchemyError as e:
        raise _database_error(f"fetch product {product_id}", e) from e
    return ProductRead.model_validate(product)


@router.put("/{product_id}", summary="Update a product", response_model=ProductRead)
async def update_product(
    product_id: int,
    payload: ProductUpdate,
    owner_id: int = Depends(get_owner_id),
    db: Session = Depends(get_session),
) -> ProductRead:
    """Partial update; only fields present in the payload change."""
    try:
        product = ProductRepository(db).update(product_id, owner_id, payload)
    except ProductNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except SQLAlchemyError as e:
        db.rollback()
        raise _database_error(f"update product {product_id}", e) from e
    return ProductRead.model_validate(product)


@router.get(
    "/{product_id}/deletion-check",
    summary="Check whether a product can be hard deleted",
    response_model=DeletionCheck,
)
async def check_deletion(
    product_id: int,
    owner_id: int = Depends(get_owner_id),
    db: Session = Depends(get_session),
) -> DeletionCheck:
    return ProductDeletionPolicy(db).evaluate(product_id, owner_id)


@router.delete(
    "/{product_id}",
    summary="Delete a product that nothing references",
    response_model=DeletionOutcome,
)
async def delete_product(
    product_id: int,
    response: Response,
    owner_id: int = Depends(get_owner_id),
    db: Session = Depends(get_session),
) -> DeletionOutcome:
    """Hard delete, refused with the blocking tables when references exist."""
    image_path = _image_path(db, product_id, owner_id)
    outcome = ProductDeletionPolicy(db).safe_delete(product_id, owner_id)
    if outcome.status is DeletionStatus.DELETED:
        delete_image(image_path)
    return _report(outcome, response)


@router.post(
    "/{product_id}/deactivate",
    summary="Soft delete a product",
    response_model=DeletionOutcome,
)
async def deactivate_product(
    product_id: int,
    response: Response,
    owner_id: int = Depends(get_owner_id),
    db: Session = Depends(get_session),
) -> DeletionOutcome:
    outcome = ProductDeletionPolicy(db).soft_delete(product_id, owner_id)
    return _report(outcome, response)


@router.delete(
    "/{product_id}/force",
    summary="Delete a product with its order lines and cart items",
    response_model=DeletionOutcome,
)
async def force_delete_product(
    product_id: int,
    response: Response,
    confirm: bool = Query(False, description="Must be true; destroys order history"),
    owner_id: int = Depends(get_owner_id),
    db: Session = Depends(get_session),
) -> DeletionOutcome:
    """Cascade delete. Requires ``confirm=true`` from the caller."""
    if not confirm:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Force delete requires explicit confirmation (confirm=true)",
        )
    image_path = _image_path(db, product_id, owner_id)
    outcome = ProductDeletionPolicy(db).force_delete(product_id, owner_id)
    if outcome.status is DeletionStatus.DELETED:
        delete_image(image_path)
    return _report(outcome, response)


def _image_path(db: Session, product_id: int, owner_id: int) -> str | None:
    try:
        product = ProductRepository(db).find(product_id, owner_id)
    except SQLAlchemyError as e:
        logger.warning(f"Could not look up image for product {product_id}: {e}")
        db.rollback()
        return None
    return product.image_path if product else None
