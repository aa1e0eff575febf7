"""
Tests for supplier/product CRUD and the supplier delete rules.
"""
import html
import re
import unittest

from sqlalchemy.exc import IntegrityError

from app import create_app
from extensions import db
from errors import ValidationError, NotFound, ReferentialConflict, InvalidReference
from models import Supplier, Product
from services import auth_service, inventory_service
from services.integrity_guard import integrity_guard

TEST_CONFIG = {
    'TESTING': True,
    'SECRET_KEY': 'test-secret',
    'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
    'BCRYPT_LOG_ROUNDS': 4,
    'SEED_DEFAULT_ADMIN': False,
}

SUPPLIER_FORM = {'name': 'S1', 'address': '1 Main Street', 'phone': '+1 (555) 123-4567'}


def flashed_messages(client):
    with client.session_transaction() as sess:
        return [message for _category, message in sess.get('_flashes', [])]


class InventoryTestCase(unittest.TestCase):
    def setUp(self):
        self.app = create_app(TEST_CONFIG)
        self.client = self.app.test_client()
        self.ctx = self.app.app_context()
        self.ctx.push()

    def tearDown(self):
        db.session.remove()
        db.drop_all()
        self.ctx.pop()

    def make_supplier(self, name='S1'):
        return inventory_service.create_supplier(dict(SUPPLIER_FORM, name=name))

    def make_product(self, supplier_id, name='P1', price='9.99', quantity='3'):
        return inventory_service.create_product({
            'name': name, 'price': price, 'quantity': quantity, 'supplier_id': str(supplier_id)
        })


class TestIntegrityGuard(InventoryTestCase):

    def test_delete_blocked_while_products_reference_supplier(self):
        supplier = self.make_supplier()
        product = self.make_product(supplier.id)

        with self.assertRaises(ReferentialConflict) as caught:
            integrity_guard.delete_supplier(supplier.id)
        self.assertEqual(caught.exception.count, 1)

        self.assertIsNotNone(db.session.get(Supplier, supplier.id))
        self.assertIsNotNone(db.session.get(Product, product.id))

    def test_conflict_reports_full_count(self):
        supplier = self.make_supplier()
        for i in range(3):
            self.make_product(supplier.id, name=f'P{i}')
        with self.assertRaises(ReferentialConflict) as caught:
            integrity_guard.delete_supplier(supplier.id)
        self.assertEqual(caught.exception.count, 3)
        self.assertEqual(caught.exception.to_dict()['count'], 3)

    def test_delete_unreferenced_supplier(self):
        supplier = self.make_supplier()
        supplier_id = supplier.id
        integrity_guard.delete_supplier(supplier_id)
        self.assertIsNone(db.session.get(Supplier, supplier_id))
        with self.assertRaises(NotFound):
            inventory_service.get_supplier(supplier_id)

    def test_delete_after_products_removed(self):
        supplier = self.make_supplier()
        product = self.make_product(supplier.id)
        with self.assertRaises(ReferentialConflict):
            integrity_guard.delete_supplier(supplier.id)
        inventory_service.delete_product(product.id)
        integrity_guard.delete_supplier(supplier.id)
        self.assertEqual(Supplier.query.count(), 0)

    def test_delete_unknown_or_malformed_id(self):
        with self.assertRaises(NotFound):
            integrity_guard.delete_supplier(999)
        with self.assertRaises(NotFound):
            integrity_guard.delete_supplier('not-a-number')

    def test_ids_beyond_integer_range_are_not_found(self):
        huge = str(2 ** 64)
        with self.assertRaises(NotFound):
            inventory_service.get_supplier(huge)
        with self.assertRaises(NotFound):
            inventory_service.get_product(huge)
        with self.assertRaises(NotFound):
            integrity_guard.delete_supplier(huge)
        with self.assertRaises(NotFound):
            integrity_guard.cascade_delete_supplier(huge)

    def test_cascade_delete_removes_supplier_and_products(self):
        doomed = self.make_supplier('Doomed')
        kept = self.make_supplier('Kept')
        for i in range(2):
            self.make_product(doomed.id, name=f'D{i}')
        survivor = self.make_product(kept.id, name='K1')
        doomed_id = doomed.id

        removed = integrity_guard.cascade_delete_supplier(doomed_id)

        self.assertEqual(removed, 2)
        self.assertIsNone(db.session.get(Supplier, doomed_id))
        self.assertEqual(Product.query.filter_by(supplier_id=doomed_id).count(), 0)
        self.assertIsNotNone(db.session.get(Product, survivor.id))

    def test_cascade_delete_unknown_supplier(self):
        with self.assertRaises(NotFound):
            integrity_guard.cascade_delete_supplier(42)

    def test_foreign_key_enforced_by_store(self):
        supplier = self.make_supplier()
        db.session.add(Product(name='Orphan', price=1.0, quantity=1, supplier_id=supplier.id + 100))
        with self.assertRaises(IntegrityError):
            db.session.commit()
        db.session.rollback()


class TestProducts(InventoryTestCase):

    def test_create_requires_existing_supplier(self):
        with self.assertRaises(InvalidReference):
            self.make_product(12345)
        with self.assertRaises(InvalidReference):
            self.make_product('abc')
        with self.assertRaises(InvalidReference):
            self.make_product(2 ** 64)
        self.assertEqual(Product.query.count(), 0)

    def test_quantity_beyond_integer_range_rejected(self):
        supplier = self.make_supplier()
        with self.assertRaises(ValidationError) as caught:
            self.make_product(supplier.id, quantity=str(2 ** 64))
        self.assertIn('Quantity is too large', caught.exception.messages)

    def test_update_requires_existing_supplier(self):
        supplier = self.make_supplier()
        product = self.make_product(supplier.id)
        with self.assertRaises(InvalidReference):
            inventory_service.update_product(product.id, {
                'name': 'P1', 'price': '1', 'quantity': '1', 'supplier_id': '777'
            })
        self.assertEqual(db.session.get(Product, product.id).supplier_id, supplier.id)

    def test_update_moves_product_to_other_supplier(self):
        first = self.make_supplier('First')
        second = self.make_supplier('Second')
        product = self.make_product(first.id)
        updated = inventory_service.update_product(product.id, {
            'name': 'P1 v2', 'price': '5', 'quantity': '10', 'supplier_id': str(second.id)
        })
        self.assertEqual(updated.supplier_id, second.id)
        self.assertEqual(updated.name, 'P1 v2')
        self.assertEqual(updated.quantity, 10)

    def test_quantity_defaults_to_zero(self):
        supplier = self.make_supplier()
        product = self.make_product(supplier.id, quantity='')
        self.assertEqual(product.quantity, 0)

    def test_negative_values_rejected(self):
        supplier = self.make_supplier()
        with self.assertRaises(ValidationError) as caught:
            self.make_product(supplier.id, price='-1', quantity='-2')
        self.assertIn('Price cannot be negative', caught.exception.messages)
        self.assertIn('Quantity cannot be negative', caught.exception.messages)

    def test_non_numeric_price_rejected(self):
        supplier = self.make_supplier()
        with self.assertRaises(ValidationError):
            self.make_product(supplier.id, price='cheap')
        with self.assertRaises(ValidationError):
            self.make_product(supplier.id, price='nan')

    def test_get_malformed_id_is_not_found(self):
        with self.assertRaises(NotFound):
            inventory_service.get_product('xyz')


class TestSuppliers(InventoryTestCase):

    def test_phone_pattern(self):
        with self.assertRaises(ValidationError):
            self.make_supplier_with(phone='call me')
        supplier = self.make_supplier_with(phone='(555) 010-2000')
        self.assertEqual(supplier.phone, '(555) 010-2000')

    def test_required_fields(self):
        with self.assertRaises(ValidationError):
            inventory_service.create_supplier({'name': 'x', 'address': '', 'phone': '1'})

    def test_list_sorted_by_name(self):
        self.make_supplier('Zeta')
        self.make_supplier('Alpha')
        names = [s.name for s in inventory_service.list_suppliers()]
        self.assertEqual(names, ['Alpha', 'Zeta'])

    def make_supplier_with(self, **fields):
        return inventory_service.create_supplier(dict(SUPPLIER_FORM, **fields))


class TestInventoryRoutes(unittest.TestCase):
    """HTTP-level checks through the test client."""

    def setUp(self):
        self.app = create_app(TEST_CONFIG)
        self.client = self.app.test_client()
        with self.app.app_context():
            auth_service.register_user('alice', 'alice@x.com', 'secret1', 'secret1', 'Alice')
            auth_service.register_user('root', 'root@x.com', 'secret1', 'secret1', 'Root', role='admin')

    def tearDown(self):
        with self.app.app_context():
            db.session.remove()
            db.drop_all()

    def login(self, identifier='alice'):
        self.client.post('/auth/login', data={'identifier': identifier, 'password': 'secret1'})

    def supplier_count(self):
        with self.app.app_context():
            return Supplier.query.count()

    def product_count(self):
        with self.app.app_context():
            return Product.query.count()

    def test_pages_require_login(self):
        for path in ('/suppliers/', '/products/', '/suppliers/new', '/products/new'):
            response = self.client.get(path)
            self.assertEqual(response.status_code, 302)
            self.assertTrue(response.headers['Location'].endswith('/auth/login'))

    def test_supplier_delete_example(self):
        self.login()
        self.client.post('/suppliers/', data=SUPPLIER_FORM)
        with self.app.app_context():
            supplier_id = Supplier.query.filter_by(name='S1').one().id
        self.client.post('/products/', data={
            'name': 'P1', 'price': '10', 'quantity': '2', 'supplier_id': str(supplier_id)
        })
        with self.app.app_context():
            product_id = Product.query.filter_by(name='P1').one().id
        self.client.get('/suppliers/')  # drain flashes

        response = self.client.delete(f'/suppliers/{supplier_id}')
        self.assertEqual(response.status_code, 302)
        self.assertIn('1 product(s)', flashed_messages(self.client)[-1])
        self.assertEqual(self.supplier_count(), 1)
        self.assertEqual(self.product_count(), 1)

        self.client.delete(f'/products/{product_id}')
        self.client.delete(f'/suppliers/{supplier_id}')
        self.assertEqual(self.supplier_count(), 0)

    def form_actions(self, path):
        response = self.client.get(path)
        self.assertEqual(response.status_code, 200, path)
        return [html.unescape(action) for action in
                re.findall(r'<form[^>]*action="([^"]*)"', response.get_data(as_text=True))]

    def only_action(self, path, prefix):
        actions = [a for a in self.form_actions(path) if a.startswith(prefix)]
        self.assertEqual(len(actions), 1, actions)
        return actions[0]

    def test_rendered_supplier_forms_reach_update_and_delete(self):
        self.login()
        self.client.post('/suppliers/', data=SUPPLIER_FORM)
        with self.app.app_context():
            supplier_id = Supplier.query.one().id

        action = self.only_action(f'/suppliers/{supplier_id}/edit', f'/suppliers/{supplier_id}?')
        response = self.client.post(action, data=dict(SUPPLIER_FORM, name='Renamed'))
        self.assertEqual(response.status_code, 302)
        with self.app.app_context():
            self.assertEqual(db.session.get(Supplier, supplier_id).name, 'Renamed')

        listing = self.form_actions('/suppliers/')
        self.assertFalse(any('force=1' in a for a in listing))
        action = self.only_action('/suppliers/', f'/suppliers/{supplier_id}?')
        response = self.client.post(action)
        self.assertEqual(response.status_code, 302)
        self.assertEqual(self.supplier_count(), 0)

    def test_rendered_product_forms_reach_update_and_delete(self):
        self.login()
        self.client.post('/suppliers/', data=SUPPLIER_FORM)
        with self.app.app_context():
            supplier_id = Supplier.query.one().id
        product_form = {'name': 'P1', 'price': '10', 'quantity': '2', 'supplier_id': str(supplier_id)}
        self.client.post('/products/', data=product_form)
        with self.app.app_context():
            product_id = Product.query.one().id

        action = self.only_action(f'/products/{product_id}/edit', f'/products/{product_id}?')
        response = self.client.post(action, data=dict(product_form, quantity='9'))
        self.assertEqual(response.status_code, 302)
        with self.app.app_context():
            self.assertEqual(db.session.get(Product, product_id).quantity, 9)

        action = self.only_action('/products/', f'/products/{product_id}?')
        self.client.post(action)
        self.assertEqual(self.product_count(), 0)

    def test_rendered_force_delete_form_for_admin(self):
        with self.app.app_context():
            supplier = inventory_service.create_supplier(SUPPLIER_FORM)
            inventory_service.create_product({
                'name': 'P1', 'price': '1', 'quantity': '1', 'supplier_id': str(supplier.id)
            })
            supplier_id = supplier.id

        self.login('root')
        actions = [a for a in self.form_actions('/suppliers/') if 'force=1' in a]
        self.assertEqual(len(actions), 1, actions)
        self.client.post(actions[0])
        self.assertEqual(self.supplier_count(), 0)
        self.assertEqual(self.product_count(), 0)

    def test_force_delete_requires_admin(self):
        with self.app.app_context():
            supplier = inventory_service.create_supplier(SUPPLIER_FORM)
            inventory_service.create_product({
                'name': 'P1', 'price': '1', 'quantity': '1', 'supplier_id': str(supplier.id)
            })
            supplier_id = supplier.id

        self.login('alice')
        self.client.delete(f'/suppliers/{supplier_id}?force=1')
        self.assertEqual(self.supplier_count(), 1)

        self.client.get('/auth/logout')
        self.login('root')
        self.client.delete(f'/suppliers/{supplier_id}?force=1')
        self.assertEqual(self.supplier_count(), 0)
        self.assertEqual(self.product_count(), 0)

    def test_invalid_supplier_reference_redirects_to_form(self):
        self.login()
        response = self.client.post('/products/', data={
            'name': 'P1', 'price': '10', 'quantity': '2', 'supplier_id': '999'
        })
        self.assertTrue(response.headers['Location'].endswith('/products/new'))
        self.assertIn('Selected supplier does not exist', flashed_messages(self.client)[-1])
        with self.client.session_transaction() as sess:
            self.assertEqual(sess['old_input']['name'], 'P1')
        self.assertEqual(self.product_count(), 0)

    def test_malformed_id_redirects_with_message(self):
        self.login()
        response = self.client.get('/suppliers/not-an-id')
        self.assertTrue(response.headers['Location'].endswith('/suppliers/'))
        self.assertIn('Supplier not found', flashed_messages(self.client)[-1])

        response = self.client.get('/suppliers/99999999999999999999999')
        self.assertEqual(response.status_code, 302)
        self.assertIn('Supplier not found', flashed_messages(self.client)[-1])

    def test_pages_render(self):
        self.login()
        self.client.post('/suppliers/', data=SUPPLIER_FORM)
        with self.app.app_context():
            supplier_id = Supplier.query.one().id
        self.client.post('/products/', data={
            'name': 'Widget', 'price': '2.5', 'quantity': '4', 'supplier_id': str(supplier_id)
        })
        with self.app.app_context():
            product_id = Product.query.one().id

        for path in ('/suppliers/', '/suppliers/new', f'/suppliers/{supplier_id}',
                     f'/suppliers/{supplier_id}/edit', '/products/', '/products/new',
                     f'/products/{product_id}', f'/products/{product_id}/edit'):
            response = self.client.get(path)
            self.assertEqual(response.status_code, 200, path)

        listing = self.client.get('/products/')
        self.assertIn(b'Widget', listing.data)
        self.assertIn(b'$2.50', listing.data)


if __name__ == '__main__':
    unittest.main()
