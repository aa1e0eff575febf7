"""
Supplier and product CRUD with form validation.

Deletion of suppliers goes through services/integrity_guard.py.
"""
import logging
import math
import re
from typing import Dict, List

from sqlalchemy.exc import IntegrityError

from extensions import db
from errors import ValidationError, NotFound, InvalidReference
from models.supplier import Supplier
from models.product import Product
from services.integrity_guard import MAX_ID, integrity_guard, parse_id

logger = logging.getLogger(__name__)

PHONE_PATTERN = re.compile(r'^[\d\-\+\(\)\s]+$')


def _clean(value):
    return "" if value is None else str(value).strip()


# ----------------------------------------------------------------------
# Validation
# ----------------------------------------------------------------------
def validate_supplier_form(form) -> Dict:
    name = _clean(form.get('name'))
    address = _clean(form.get('address'))
    phone = _clean(form.get('phone'))

    if not name or not address or not phone:
        raise ValidationError('All fields are required')

    errors = []
    if len(name) > 100:
        errors.append('Supplier name cannot exceed 100 characters')
    if len(address) > 200:
        errors.append('Address cannot exceed 200 characters')
    if not PHONE_PATTERN.match(phone) or len(phone) > 30:
        errors.append('Please enter a valid phone number')
    if errors:
        raise ValidationError(errors)

    return {'name': name, 'address': address, 'phone': phone}


def validate_product_form(form) -> Dict:
    name = _clean(form.get('name'))
    raw_price = _clean(form.get('price'))
    raw_quantity = _clean(form.get('quantity'))
    supplier_id = _clean(form.get('supplier_id'))

    if not name or not raw_price or not supplier_id:
        raise ValidationError('All fields are required')

    errors = []
    if len(name) > 100:
        errors.append('Product name cannot exceed 100 characters')

    price = None
    try:
        price = float(raw_price)
        if not math.isfinite(price):
            raise ValueError(raw_price)
        if price < 0:
            errors.append('Price cannot be negative')
    except ValueError:
        errors.append('Price must be a number')

    quantity = 0
    if raw_quantity:
        try:
            quantity = int(raw_quantity)
            if quantity < 0:
                errors.append('Quantity cannot be negative')
            elif quantity > MAX_ID:
                errors.append('Quantity is too large')
        except ValueError:
            errors.append('Quantity must be a whole number')

    if errors:
        raise ValidationError(errors)

    return {'name': name, 'price': price, 'quantity': quantity, 'supplier_id': supplier_id}


# ----------------------------------------------------------------------
# Suppliers
# ----------------------------------------------------------------------
def list_suppliers() -> List[Supplier]:
    return Supplier.query.order_by(Supplier.name).all()


def get_supplier(raw_id) -> Supplier:
    supplier_id = parse_id(raw_id, 'Supplier')
    supplier = db.session.get(Supplier, supplier_id)
    if supplier is None:
        raise NotFound('Supplier', supplier_id)
    return supplier


def create_supplier(form) -> Supplier:
    data = validate_supplier_form(form)
    supplier = Supplier(**data)
    db.session.add(supplier)
    db.session.commit()
    logger.info("Created supplier %s (%s)", supplier.id, supplier.name)
    return supplier


def update_supplier(raw_id, form) -> Supplier:
    supplier = get_supplier(raw_id)
    data = validate_supplier_form(form)
    for key, value in data.items():
        setattr(supplier, key, value)
    db.session.commit()
    logger.info("Updated supplier %s", supplier.id)
    return supplier


def supplier_products(supplier: Supplier) -> List[Product]:
    return supplier.products.order_by(Product.name).all()


# ----------------------------------------------------------------------
# Products
# ----------------------------------------------------------------------
def list_products() -> List[Product]:
    return Product.query.order_by(Product.name).all()


def get_product(raw_id) -> Product:
    product_id = parse_id(raw_id, 'Product')
    product = db.session.get(Product, product_id)
    if product is None:
        raise NotFound('Product', product_id)
    return product


def _save_product(supplier_id: int):
    try:
        db.session.commit()
    except IntegrityError:
        # Supplier removed between the existence check and the write
        db.session.rollback()
        raise InvalidReference(supplier_id)


def create_product(form) -> Product:
    data = validate_product_form(form)
    supplier = integrity_guard.ensure_supplier_exists(data['supplier_id'])
    product = Product(
        name=data['name'],
        price=data['price'],
        quantity=data['quantity'],
        supplier_id=supplier.id
    )
    db.session.add(product)
    _save_product(supplier.id)
    logger.info("Created product %s (%s) for supplier %s", product.id, product.name, supplier.id)
    return product


def update_product(raw_id, form) -> Product:
    product = get_product(raw_id)
    data = validate_product_form(form)
    supplier = integrity_guard.ensure_supplier_exists(data['supplier_id'])
    product.name = data['name']
    product.price = data['price']
    product.quantity = data['quantity']
    product.supplier_id = supplier.id
    _save_product(supplier.id)
    logger.info("Updated product %s", product.id)
    return product


def delete_product(raw_id) -> None:
    product = get_product(raw_id)
    product_id = product.id
    db.session.delete(product)
    db.session.commit()
    logger.info("Deleted product %s", product_id)
