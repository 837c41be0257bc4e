"""Catalog lookup: client items -> CartLines priced from the database."""
from decimal import Decimal
from typing import Iterable

from sqlmodel import Session, select

from app.models import Product, ProductVariant
from app.schemas.pricing import CartItemIn
from app.services.pricing import CartLine, InvalidQuantity, UnknownProductOrVariant


def build_cart_lines(db: Session, items: Iterable[CartItemIn]) -> list[CartLine]:
    """
    Prices always come from Product / ProductVariant rows; the client only
    sends ids and quantities.
    """
    items = list(items)
    product_ids = {i.product_id for i in items}
    variant_ids = {i.variant_id for i in items if i.variant_id is not None}
    products = {
        p.id: p
        for p in db.exec(select(Product).where(Product.id.in_(product_ids))).all()
    } if product_ids else {}
    variants = {
        v.id: v
        for v in db.exec(select(ProductVariant).where(ProductVariant.id.in_(variant_ids))).all()
    } if variant_ids else {}

    lines: list[CartLine] = []
    for item in items:
        if item.quantity <= 0:
            raise InvalidQuantity(item.product_id, item.quantity)
        product = products.get(item.product_id)
        if product is None or not product.is_active:
            raise UnknownProductOrVariant(item.product_id)
        adjustment = Decimal("0")
        if item.variant_id is not None:
            variant = variants.get(item.variant_id)
            if variant is None or variant.product_id != product.id or not variant.is_active:
                raise UnknownProductOrVariant(item.product_id, item.variant_id)
            adjustment = Decimal(variant.price_adjustment)
        lines.append(
            CartLine(
                product_id=product.id,
                variant_id=item.variant_id,
                unit_price=Decimal(product.base_price),
                sale_price=Decimal(product.sale_price) if product.sale_price is not None else None,
                variant_price_adjustment=adjustment,
                quantity=item.quantity,
            )
        )
    return lines
