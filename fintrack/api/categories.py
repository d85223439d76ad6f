"""
Category API endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from fintrack.errors import FinTrackError
from fintrack.models.base import get_db
from fintrack.schemas.category import (
    CategoryCreate,
    CategoryUpdate,
    CategoryResponse,
    CategoryUsage,
)
from fintrack.services.category_service import CategoryService

router = APIRouter(prefix="/categories", tags=["Categories"])


@router.post("", response_model=CategoryResponse, status_code=201)
def create_category(
    request: CategoryCreate,
    db: Session = Depends(get_db),
):
    """Create a category. Its id is derived from the name."""
    service = CategoryService(db)
    try:
        category = service.create(request)
        db.commit()
        return category
    except FinTrackError as e:
        db.rollback()
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.get("", response_model=list[CategoryResponse])
def list_categories(
    search: str | None = Query(default=None, min_length=1),
    db: Session = Depends(get_db),
):
    service = CategoryService(db)
    if search:
        return service.search(search)
    return service.list_all()


@router.get("/usage", response_model=list[CategoryUsage])
def get_category_usage(db: Session = Depends(get_db)):
    """Transaction count and total per category, busiest first."""
    return CategoryService(db).usage()


@router.get("/unused", response_model=list[CategoryResponse])
def list_unused_categories(db: Session = Depends(get_db)):
    return CategoryService(db).find_unused()


@router.get("/most-used", response_model=list[CategoryResponse])
def list_most_used_categories(
    limit: int = Query(default=5, ge=1, le=50),
    db: Session = Depends(get_db),
):
    return CategoryService(db).most_used(limit)


@router.get("/{category_id}", response_model=CategoryResponse)
def get_category(
    category_id: str,
    db: Session = Depends(get_db),
):
    return CategoryService(db).get(category_id)


@router.patch("/{category_id}", response_model=CategoryResponse)
def update_category(
    category_id: str,
    request: CategoryUpdate,
    db: Session = Depends(get_db),
):
    service = CategoryService(db)
    try:
        category = service.update(category_id, request)
        db.commit()
        return category
    except FinTrackError as e:
        db.rollback()
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.delete("/{category_id}", status_code=204)
def delete_category(
    category_id: str,
    db: Session = Depends(get_db),
):
    """Delete a category. Refused while any transaction still uses it."""
    service = CategoryService(db)
    try:
        service.delete(category_id)
        db.commit()
    except FinTrackError as e:
        db.rollback()
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return Response(status_code=204)
