import unittest

from app import create_app
from extensions import db
from models import User, Supplier, Product
from seed import seed_database
from services import auth_service


class TestSeed(unittest.TestCase):
    def setUp(self):
        self.app = create_app({
            'TESTING': True,
            'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
            'BCRYPT_LOG_ROUNDS': 4,
            'SEED_DEFAULT_ADMIN': False,
        })

    def tearDown(self):
        with self.app.app_context():
            db.session.remove()
            db.drop_all()

    def test_seed_creates_demo_data(self):
        with self.app.app_context():
            summary = seed_database()
            self.assertEqual(summary['suppliers'], 5)
            self.assertEqual(summary['users'], 3)
            self.assertEqual(summary['products'], 15)
            self.assertEqual(Supplier.query.count(), 5)
            self.assertEqual(Product.query.count(), 15)
            self.assertEqual(User.query.filter_by(role='admin').count(), 1)

            user = auth_service.authenticate('demo', 'demo123')
            self.assertEqual(user.full_name, 'Demo User')

    def test_seed_is_repeatable(self):
        with self.app.app_context():
            seed_database()
            seed_database()
            self.assertEqual(Product.query.count(), 15)
