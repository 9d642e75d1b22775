"""
Endpoint Tests for the income blueprint
"""

import unittest

import mongomock

from storefront_backend.app import create_app


class MockMongo:
    """Stands in for flask_pymongo.PyMongo: exposes a mongomock database as .db"""

    def __init__(self):
        self.cx = mongomock.MongoClient()
        self.db = self.cx['storefront_test']


class TestIncome(unittest.TestCase):

    def setUp(self):
        self.mongo = MockMongo()
        self.app = create_app(
            {'TESTING': True, 'INIT_DATABASE': False, 'RATELIMIT_ENABLED': False},
            mongo=self.mongo
        )
        self.client = self.app.test_client()
        self.headers = {'X-Tenant-ID': 'shop-1'}

    def test_create_defaults_to_draft(self):
        response = self.client.post('/incomes', json={
            'name': 'Supplier rebate', 'category': 'Rebates', 'amount': 120, 'date': '2024-07-01',
            'source': 'Acme'
        }, headers=self.headers)

        self.assertEqual(response.status_code, 201)
        data = response.get_json()
        self.assertEqual(data['status'], 'Draft')
        self.assertEqual(data['tenantId'], 'shop-1')
        self.assertEqual(data['source'], 'Acme')

        entry = self.mongo.db.audit_logs.find_one({'resourceType': 'income'})
        self.assertEqual(entry['resourceId'], data['id'])

    def test_create_validation(self):
        response = self.client.post('/incomes', json={'amount': -5}, headers=self.headers)

        self.assertEqual(response.status_code, 400)
        errors = response.get_json()['errors']
        self.assertIn('name', errors)
        self.assertIn('date', errors)
        self.assertIn('amount', errors)

    def test_draft_income_excluded_from_report_until_published(self):
        income_id = self.client.post('/incomes', json={
            'name': 'Rebate', 'amount': 40, 'date': '2024-07-01'
        }, headers=self.headers).get_json()['id']

        summary = self.client.get('/profit-loss/summary?tenantId=shop-1').get_json()
        self.assertEqual(summary['incomeCount'], 0)

        self.client.put(f'/incomes/{income_id}', json={'status': 'Published'}, headers=self.headers)

        summary = self.client.get('/profit-loss/summary?tenantId=shop-1').get_json()
        self.assertEqual(summary['incomeCount'], 1)
        self.assertEqual(summary['otherIncome'], 40)

    def test_list_and_summary(self):
        for amount, category in ((10, 'Interest'), (20, 'Interest'), (30, 'Rebates')):
            self.client.post('/incomes', json={
                'name': f'Income {amount}', 'category': category, 'amount': amount,
                'date': f'2024-07-{amount:02d}', 'status': 'Published'
            }, headers=self.headers)

        data = self.client.get('/incomes?pageSize=2', headers=self.headers).get_json()
        self.assertEqual(data['total'], 3)
        self.assertEqual([item['amount'] for item in data['items']], [30, 20])

        summary = self.client.get('/incomes/summary', headers=self.headers).get_json()
        self.assertEqual(summary, {'totalAmount': 60, 'categories': 2, 'totalTransactions': 3})

    def test_update_and_delete_by_legacy_string_id(self):
        self.mongo.db.incomes.insert_one({
            'id': 'legacy-1', 'tenantId': 'shop-1', 'name': 'Old', 'amount': 5, 'status': 'Draft'
        })

        response = self.client.put('/incomes/legacy-1', json={'amount': 7}, headers=self.headers)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.mongo.db.incomes.find_one({'id': 'legacy-1'})['amount'], 7.0)

        response = self.client.delete('/incomes/legacy-1', headers=self.headers)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.mongo.db.incomes.count_documents({}), 0)

    def test_update_missing_income(self):
        response = self.client.put('/incomes/unknown', json={'amount': 7}, headers=self.headers)
        self.assertEqual(response.status_code, 404)

    def test_categories(self):
        response = self.client.post('/incomes/categories', json={'name': 'Interest'}, headers=self.headers)
        self.assertEqual(response.status_code, 201)
        self.client.post('/incomes/categories', json={'name': 'Other'}, headers={'X-Tenant-ID': 'shop-2'})

        data = self.client.get('/incomes/categories', headers=self.headers).get_json()

        self.assertIsInstance(data, list)
        self.assertEqual([category['name'] for category in data], ['Interest'])


if __name__ == '__main__':
    unittest.main()
