"""
Endpoint Tests for the purchases blueprint
"""

import unittest

import mongomock
from bson import ObjectId

from storefront_backend.app import create_app
from storefront_backend.blueprints.purchases import next_purchase_number


class MockMongo:
    """Stands in for flask_pymongo.PyMongo: exposes a mongomock database as .db"""

    def __init__(self):
        self.cx = mongomock.MongoClient()
        self.db = self.cx['storefront_test']


class TestPurchaseNumber(unittest.TestCase):

    def test_first_purchase(self):
        self.assertEqual(next_purchase_number(None), 'PUR-000001')

    def test_increments_last_number(self):
        self.assertEqual(next_purchase_number({'purchaseNumber': 'PUR-000041'}), 'PUR-000042')

    def test_malformed_last_number_restarts(self):
        self.assertEqual(next_purchase_number({'purchaseNumber': 'legacy'}), 'PUR-000001')


class TestPurchases(unittest.TestCase):

    def setUp(self):
        self.mongo = MockMongo()
        self.app = create_app(
            {'TESTING': True, 'INIT_DATABASE': False, 'RATELIMIT_ENABLED': False},
            mongo=self.mongo
        )
        self.client = self.app.test_client()
        self.headers = {'X-Tenant-ID': 'shop-1'}

        self.product_id = self.mongo.db.products.insert_one({
            'tenantId': 'shop-1', 'name': 'Chair', 'stock': 5
        }).inserted_id

    def _create(self, **overrides):
        payload = {
            'items': [{
                'productId': str(self.product_id),
                'productName': 'Chair',
                'quantity': 3,
                'unitPrice': 100,
            }],
            'totalAmount': 300,
            'supplierName': 'Dhaka Furniture',
            'paymentMethod': 'bKash',
        }
        payload.update(overrides)
        return self.client.post('/purchases', json=payload, headers=self.headers)

    def _stock(self):
        return self.mongo.db.products.find_one({'_id': self.product_id})['stock']

    def test_tenant_header_required(self):
        self.assertEqual(self.client.get('/purchases').status_code, 400)
        self.assertEqual(self.client.post('/purchases', json={}).status_code, 400)
        self.assertEqual(self.client.get('/purchases/summary/stats').status_code, 400)

    def test_create_purchase(self):
        response = self._create()

        self.assertEqual(response.status_code, 201)
        data = response.get_json()
        self.assertEqual(data['purchaseNumber'], 'PUR-000001')
        self.assertEqual(data['paymentMethod'], 'mobile_wallet')
        self.assertEqual(data['items'][0]['totalPrice'], 300)
        self.assertEqual(data['status'], 'completed')
        self.assertEqual(self._stock(), 8)

        data = self._create().get_json()
        self.assertEqual(data['purchaseNumber'], 'PUR-000002')

    def test_default_payment_method(self):
        data = self._create(paymentMethod=None).get_json()
        self.assertEqual(data['paymentMethod'], 'cash')

    def test_create_validation(self):
        response = self._create(items=[])
        self.assertEqual(response.status_code, 400)
        self.assertIn('items', response.get_json()['errors'])

        response = self._create(paymentMethod='barter')
        self.assertEqual(response.status_code, 400)
        self.assertEqual(self.mongo.db.purchases.count_documents({}), 0)
        self.assertEqual(self._stock(), 5)

    def test_list_and_get_are_tenant_scoped(self):
        purchase_id = self._create().get_json()['id']

        data = self.client.get('/purchases', headers=self.headers).get_json()
        self.assertEqual(len(data), 1)

        other = {'X-Tenant-ID': 'shop-2'}
        self.assertEqual(self.client.get('/purchases', headers=other).get_json(), [])
        self.assertEqual(self.client.get(f'/purchases/{purchase_id}', headers=other).status_code, 404)
        self.assertEqual(self.client.get(f'/purchases/{purchase_id}', headers=self.headers).status_code, 200)
        self.assertEqual(self.client.get('/purchases/not-an-id', headers=self.headers).status_code, 404)

    def test_update_purchase(self):
        purchase_id = self._create().get_json()['id']

        response = self.client.put(f'/purchases/{purchase_id}', json={
            'note': 'Paid half', 'paymentMethod': 'Bank Transfer'
        }, headers=self.headers)

        self.assertEqual(response.status_code, 200)
        stored = self.mongo.db.purchases.find_one({'_id': ObjectId(purchase_id)})
        self.assertEqual(stored['note'], 'Paid half')
        self.assertEqual(stored['paymentMethod'], 'bank')

    def test_update_rejects_malformed_items(self):
        purchase_id = self._create().get_json()['id']

        for items in ({'productId': 'x'}, 'chair', ['chair'], []):
            response = self.client.put(f'/purchases/{purchase_id}', json={'items': items},
                                       headers=self.headers)
            self.assertEqual(response.status_code, 400)
            self.assertIn('items', response.get_json()['errors'])

        stored = self.mongo.db.purchases.find_one({'_id': ObjectId(purchase_id)})
        self.assertEqual(stored['items'][0]['productName'], 'Chair')

    def test_create_rejects_non_object_items(self):
        response = self._create(items=['chair'])
        self.assertEqual(response.status_code, 400)
        self.assertEqual(self._stock(), 5)

    def test_delete_reverses_stock(self):
        purchase_id = self._create().get_json()['id']
        self.assertEqual(self._stock(), 8)

        response = self.client.delete(f'/purchases/{purchase_id}', headers=self.headers)

        self.assertEqual(response.status_code, 200)
        self.assertEqual(self._stock(), 5)
        self.assertEqual(self.mongo.db.purchases.count_documents({}), 0)

    def test_summary_stats(self):
        data = self.client.get('/purchases/summary/stats', headers=self.headers).get_json()
        self.assertEqual(data, {'totalPurchases': 0, 'totalAmount': 0, 'totalItems': 0})

        self._create()
        self._create(totalAmount=50)

        data = self.client.get('/purchases/summary/stats', headers=self.headers).get_json()
        self.assertEqual(data['totalPurchases'], 2)
        self.assertEqual(data['totalAmount'], 350)
        self.assertEqual(data['totalItems'], 2)


if __name__ == '__main__':
    unittest.main()
