# routes/product.py
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from storefront.database.database import get_db
from storefront.database.dependencies import get_admin
from storefront.models.enums import ProductSort
from storefront.models.schemas.product import Product, ProductCreate
from storefront.services.product import ProductService
from storefront.utils.exceptions import NotFoundError

router = APIRouter(tags=["products"])


@router.get("/products", response_model=List[Product])
async def list_products(
    category: Optional[str] = None,
    search: Optional[str] = None,
    sort: ProductSort = ProductSort.NEWEST,
    db: Session = Depends(get_db)
):
    """List active products."""
    service = ProductService(db)
    products = await service.list_active(category=category, search=search, sort=sort)
    return [Product.model_validate(product) for product in products]


@router.get("/products/{product_id}", response_model=Product)
async def get_product(
    product_id: str,
    db: Session = Depends(get_db)
):
    """Get a specific active product by ID."""
    service = ProductService(db)
    product = await service.get_active(product_id)
    if not product:
        raise NotFoundError("Product not found")

    return Product.model_validate(product)


@router.get("/categories", response_model=List[str])
async def list_categories(db: Session = Depends(get_db)):
    """Distinct categories of active products."""
    service = ProductService(db)
    return await service.list_categories()


@router.post("/products", response_model=Product, status_code=status.HTTP_201_CREATED)
async def create_product(
    data: ProductCreate,
    _admin: str = Depends(get_admin),
    db: Session = Depends(get_db)
):
    """Add a product to the catalog (admin only)."""
    service = ProductService(db)
    product = await service.create(data)
    return Product.model_validate(product)


@router.delete("/products/{product_id}")
async def delete_product(
    product_id: str,
    _admin: str = Depends(get_admin),
    db: Session = Depends(get_db)
):
    """Deactivate a product (admin only)."""
    service = ProductService(db)
    await service.deactivate(product_id)
    return {"message": "Product deleted successfully"}
