"""
Reset the database to a demo data set: 5 suppliers, 3 users, 15 products.
"""
import logging

from app import create_app
from extensions import db
from models import User, Supplier, Product
from services.password_store import hash_password

logger = logging.getLogger(__name__)

SUPPLIERS = [
    ('Tech Solutions Inc.', '123 Technology Drive, Silicon Valley, CA 94043', '+1 (555) 123-4567'),
    ('Global Electronics Ltd.', '456 Commerce Street, New York, NY 10001', '+1 (555) 987-6543'),
    ('Premium Components Co.', '789 Industrial Boulevard, Chicago, IL 60601', '+1 (555) 456-7890'),
    ('Modern Supplies Corp.', '321 Business Ave, Austin, TX 73301', '+1 (555) 234-5678'),
    ('Quality Hardware Group', '654 Manufacturing Lane, Detroit, MI 48201', '+1 (555) 345-6789'),
]

USERS = [
    ('testuser', 'test@example.com', 'test123', 'Test User', 'user'),
    ('admin', 'admin@example.com', 'admin123', 'Administrator', 'admin'),
    ('demo', 'demo@example.com', 'demo123', 'Demo User', 'user'),
]

# (name, price, quantity, index into SUPPLIERS)
PRODUCTS = [
    ('Wireless Bluetooth Mouse', 29.99, 150, 0),
    ('USB-C Charging Cable', 19.99, 200, 0),
    ('24-inch LED Monitor', 199.99, 75, 1),
    ('Mechanical Keyboard', 89.99, 100, 1),
    ('Webcam HD 1080p', 49.99, 80, 1),
    ('Laptop Stand Aluminum', 39.99, 120, 2),
    ('Wireless Charger Pad', 24.99, 90, 2),
    ('External Hard Drive 1TB', 79.99, 60, 3),
    ('Gaming Headset', 69.99, 45, 3),
    ('Smartphone Case', 14.99, 300, 4),
    ('Bluetooth Speaker', 59.99, 85, 4),
    ('Power Bank 10000mAh', 34.99, 110, 0),
    ('HDMI Cable 6ft', 12.99, 250, 2),
    ('Desk Organizer', 22.99, 95, 3),
    ('LED Desk Lamp', 45.99, 70, 4),
]


def seed_database():
    """Clear all rows and insert the demo data. Must run inside an app context."""
    Product.query.delete()
    Supplier.query.delete()
    User.query.delete()
    db.session.commit()
    logger.info("Cleared existing data")

    suppliers = [Supplier(name=n, address=a, phone=p) for n, a, p in SUPPLIERS]
    db.session.add_all(suppliers)

    users = [
        User(username=u, email=e, password=hash_password(pw), full_name=f, role=r)
        for u, e, pw, f, r in USERS
    ]
    db.session.add_all(users)
    db.session.flush()

    products = [
        Product(name=n, price=price, quantity=qty, supplier_id=suppliers[idx].id)
        for n, price, qty, idx in PRODUCTS
    ]
    db.session.add_all(products)
    db.session.commit()

    total_value = sum(p.price * p.quantity for p in products)
    logger.info("Seeded %d suppliers, %d users, %d products",
                len(suppliers), len(users), len(products))
    logger.info("Total inventory value: $%s", f"{total_value:,.2f}")
    return {
        'suppliers': len(suppliers),
        'users': len(users),
        'products': len(products),
        'total_value': round(total_value, 2),
    }


if __name__ == "__main__":
    app = create_app({'SEED_DEFAULT_ADMIN': False})
    with app.app_context():
        seed_database()
