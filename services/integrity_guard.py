"""
Referential integrity between suppliers and products.

Standard deletion of a supplier is refused while any product references it.
Cascade deletion removes the supplier together with its products in one
transaction. Both paths are explicit calls, nothing fires from ORM hooks.
"""
import logging

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from extensions import db
from errors import NotFound, ReferentialConflict, InvalidReference
from models.supplier import Supplier
from models.product import Product

logger = logging.getLogger(__name__)

# Largest value a signed 64-bit INTEGER primary key can hold
MAX_ID = 2 ** 63 - 1


def _to_id(raw_id):
    try:
        value = int(raw_id)
    except (TypeError, ValueError):
        return None
    if value < 1 or value > MAX_ID:
        return None
    return value


def parse_id(raw_id, entity):
    """Path ids that are not usable integers are treated as unknown records."""
    value = _to_id(raw_id)
    if value is None:
        raise NotFound(entity, raw_id)
    return value


class ReferentialIntegrityGuard:

    def count_products(self, supplier_id: int) -> int:
        return db.session.scalar(
            select(func.count(Product.id)).where(Product.supplier_id == supplier_id)
        ) or 0

    def ensure_supplier_exists(self, raw_supplier_id) -> Supplier:
        """Resolve a product's supplier reference or raise InvalidReference."""
        supplier_id = _to_id(raw_supplier_id)
        if supplier_id is None:
            raise InvalidReference(raw_supplier_id)
        supplier = db.session.get(Supplier, supplier_id)
        if supplier is None:
            raise InvalidReference(supplier_id)
        return supplier

    def delete_supplier(self, raw_id) -> None:
        """
        Delete a supplier that no product references.

        The reference check and the delete are one conditional statement, so
        a product inserted concurrently either blocks the delete or fails
        its own foreign key check.
        """
        supplier_id = parse_id(raw_id, 'Supplier')
        referenced = select(Product.id).where(Product.supplier_id == supplier_id).exists()
        try:
            result = db.session.execute(
                delete(Supplier)
                .where(Supplier.id == supplier_id)
                .where(~referenced)
                .execution_options(synchronize_session='fetch')
            )
        except IntegrityError:
            db.session.rollback()
            deleted = 0
        else:
            deleted = result.rowcount

        if deleted:
            db.session.commit()
            logger.info("Deleted supplier %s", supplier_id)
            return

        # Nothing deleted: either unknown, or still referenced
        db.session.rollback()
        if db.session.get(Supplier, supplier_id) is None:
            raise NotFound('Supplier', supplier_id)
        count = self.count_products(supplier_id)
        logger.warning("Blocked delete of supplier %s: %d product(s) reference it",
                       supplier_id, count)
        raise ReferentialConflict(count)

    def cascade_delete_supplier(self, raw_id) -> int:
        """
        Delete a supplier and every product referencing it, atomically.

        Returns the number of products removed.
        """
        supplier_id = parse_id(raw_id, 'Supplier')
        try:
            # Row lock on backends that support it, SQLite serialises writers
            supplier = db.session.execute(
                select(Supplier).where(Supplier.id == supplier_id).with_for_update()
            ).scalar_one_or_none()
            if supplier is None:
                db.session.rollback()
                raise NotFound('Supplier', supplier_id)

            removed = db.session.execute(
                delete(Product)
                .where(Product.supplier_id == supplier_id)
                .execution_options(synchronize_session='fetch')
            ).rowcount
            db.session.execute(
                delete(Supplier)
                .where(Supplier.id == supplier_id)
                .execution_options(synchronize_session='fetch')
            )
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            logger.exception("Cascade delete of supplier %s rolled back", supplier_id)
            raise

        logger.info("Cascade deleted supplier %s with %d product(s)", supplier_id, removed)
        return removed


integrity_guard = ReferentialIntegrityGuard()
