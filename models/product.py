from extensions import db
from datetime import datetime

class Product(db.Model):
    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    name = db.Column(db.String(100), nullable=False, index=True)
    price = db.Column(db.Float, nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=0)
    # RESTRICT: a supplier row can only go once nothing references it
    supplier_id = db.Column(
        db.Integer,
        db.ForeignKey('supplier.id', ondelete='RESTRICT'),
        nullable=False,
        index=True
    )
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # passive_deletes='all': the ORM never nulls supplier_id behind our back
    supplier = db.relationship(
        'Supplier',
        backref=db.backref('products', lazy='dynamic', passive_deletes='all')
    )

    __table_args__ = (
        db.CheckConstraint('price >= 0', name='ck_product_price_non_negative'),
        db.CheckConstraint('quantity >= 0', name='ck_product_quantity_non_negative'),
    )

    def __repr__(self):
        return f'<Product {self.name}>'

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'price': self.price,
            'quantity': self.quantity,
            'supplier_id': self.supplier_id,
            'supplier_name': self.supplier.name if self.supplier else None,
        }
