import logging
from datetime import datetime
from typing import List, Optional

from slugify import slugify
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from storefront.database import transaction
from storefront.errors import CategoryNotFound, ConflictError, ProductNotFound, ValidationError
from storefront.models.category import Category
from storefront.models.product import Product

logger = logging.getLogger(__name__)


# -------- PRODUCTS --------

def _check_price(price):
    if price is None or price <= 0:
        raise ValidationError("Price must be greater than zero")


def _check_category(session: Session, category_id: Optional[int]):
    if category_id is not None and not session.get(Category, category_id):
        raise ValidationError("Invalid category_id")


def list_products(session: Session, category_id: Optional[int] = None) -> List[Product]:
    query = select(Product).where(Product.is_active == True)  # noqa: E712

    if category_id is not None:
        query = query.where(Product.category_id == category_id)

    return session.exec(query.order_by(Product.id)).all()


def get_product(session: Session, product_id: int) -> Product:
    product = session.get(Product, product_id)
    if not product or not product.is_active:
        raise ProductNotFound()
    return product


def create_product(session: Session, data) -> Product:
    _check_price(data.price)
    _check_category(session, data.category_id)

    slug = data.slug or slugify(data.name)

    existing = session.exec(select(Product).where(Product.slug == slug)).first()
    if existing:
        raise ConflictError("Product slug already exists")

    product = Product(
        name=data.name,
        slug=slug,
        description=data.description,
        price=data.price,
        category_id=data.category_id,
    )

    try:
        with transaction(session):
            session.add(product)
    except IntegrityError as e:
        raise ConflictError("Product slug already exists") from e

    session.refresh(product)
    logger.info(f"Product {product.id} created")
    return product


def update_product(session: Session, product_id: int, data) -> Product:
    product = get_product(session, product_id)
    changes = data.model_dump(exclude_unset=True, exclude_none=True)

    if not changes:
        raise ValidationError("At least one field must be provided")

    if "price" in changes:
        _check_price(changes["price"])
    if "category_id" in changes:
        _check_category(session, changes["category_id"])

    for field, value in changes.items():
        setattr(product, field, value)
    product.updated_at = datetime.utcnow()

    try:
        with transaction(session):
            session.add(product)
    except IntegrityError as e:
        raise ConflictError("Product slug already exists") from e

    session.refresh(product)
    return product


def delete_product(session: Session, product_id: int) -> None:
    """Retire a product; past order items still reference it."""
    product = get_product(session, product_id)

    with transaction(session):
        product.is_active = False
        product.updated_at = datetime.utcnow()
        session.add(product)

    logger.info(f"Product {product_id} deactivated")


# -------- CATEGORIES --------

def list_categories(session: Session) -> List[Category]:
    return session.exec(select(Category).order_by(Category.id)).all()


def get_category(session: Session, category_id: int) -> Category:
    category = session.get(Category, category_id)
    if not category:
        raise CategoryNotFound()
    return category


def _check_parent(session: Session, category_id: Optional[int], parent_id: Optional[int]):
    if parent_id is None:
        return
    if parent_id == category_id:
        raise ValidationError("A category cannot be its own parent")
    if not session.get(Category, parent_id):
        raise ValidationError("Invalid parent_id")


def create_category(session: Session, data) -> Category:
    existing = session.exec(select(Category).where(Category.name == data.name)).first()
    if existing:
        raise ConflictError("Category already exists")

    _check_parent(session, None, data.parent_id)

    category = Category(
        name=data.name,
        description=data.description,
        parent_id=data.parent_id,
    )

    try:
        with transaction(session):
            session.add(category)
    except IntegrityError as e:
        raise ConflictError("Category already exists") from e

    session.refresh(category)
    return category


def update_category(session: Session, category_id: int, data) -> Category:
    category = get_category(session, category_id)
    changes = data.model_dump(exclude_unset=True, exclude_none=True)

    if "parent_id" in changes:
        _check_parent(session, category_id, changes["parent_id"])

    for field, value in changes.items():
        setattr(category, field, value)
    category.updated_at = datetime.utcnow()

    try:
        with transaction(session):
            session.add(category)
    except IntegrityError as e:
        raise ConflictError("Category already exists") from e

    session.refresh(category)
    return category


def delete_category(session: Session, category_id: int) -> None:
    """Hard delete; products and child categories are detached first."""
    category = get_category(session, category_id)

    with transaction(session):
        products = session.exec(
            select(Product).where(Product.category_id == category_id)
        ).all()
        for product in products:
            product.category_id = None
            session.add(product)

        children = session.exec(
            select(Category).where(Category.parent_id == category_id)
        ).all()
        for child in children:
            child.parent_id = None
            session.add(child)

        session.delete(category)

    logger.info(f"Category {category_id} deleted")
