"""
Tests for database bootstrap, the collection store and report value coercion
"""

import unittest
from datetime import date, datetime, timezone

import mongomock

from storefront_backend.models import DatabaseInitializer, ModelValidator
from storefront_backend.utils.collection_store import CollectionStore
from storefront_backend.utils.report_utils import (
    format_report_date,
    parse_positive_int,
    parse_report_date,
    to_amount,
    to_quantity,
)


class TestDatabaseInitializer(unittest.TestCase):

    def setUp(self):
        self.db = mongomock.MongoClient()['storefront_test']

    def test_creates_collections_but_not_incomes(self):
        results = DatabaseInitializer(self.db).initialize_collections()

        self.assertIn('orders', results['created'])
        self.assertIn('expenses', results['created'])
        self.assertIn('incomes', results['skipped'])
        self.assertNotIn('incomes', self.db.list_collection_names())
        self.assertEqual(results['errors'], [])

    def test_is_idempotent(self):
        DatabaseInitializer(self.db).initialize_collections()
        results = DatabaseInitializer(self.db).initialize_collections()

        self.assertEqual(results['created'], [])
        self.assertEqual(results['indexes_created'], [])
        self.assertIn('orders', results['existing'])

    def test_indexes_existing_incomes(self):
        self.db.incomes.insert_one({'name': 'Rebate'})

        results = DatabaseInitializer(self.db).initialize_collections()

        self.assertIn('incomes', results['existing'])
        self.assertIn('incomes.tenant_date_desc', results['indexes_created'])


class TestCollectionStore(unittest.TestCase):

    def setUp(self):
        self.db = mongomock.MongoClient()['storefront_test']
        self.store = CollectionStore(self.db)

    def test_required_collections_always_supported(self):
        self.assertTrue(self.store.supports('orders'))
        self.assertEqual(self.store.find_if_supported('orders'), [])

    def test_missing_optional_collection(self):
        self.assertFalse(self.store.supports('incomes'))
        self.assertEqual(self.store.find_if_supported('incomes', {'status': 'Published'}), [])

    def test_present_optional_collection(self):
        self.db.incomes.insert_many([
            {'status': 'Published', 'amount': 10},
            {'status': 'Draft', 'amount': 20},
        ])

        self.assertTrue(self.store.supports('incomes'))
        found = self.store.find_if_supported('incomes', {'status': 'Published'}, {'_id': 0})
        self.assertEqual(found, [{'status': 'Published', 'amount': 10}])


class TestModelValidator(unittest.TestCase):

    def test_validate_amount(self):
        self.assertTrue(ModelValidator.validate_amount(0))
        self.assertTrue(ModelValidator.validate_amount('12.5'))
        self.assertFalse(ModelValidator.validate_amount(-1))
        self.assertFalse(ModelValidator.validate_amount('abc'))
        self.assertFalse(ModelValidator.validate_amount(True))
        self.assertFalse(ModelValidator.validate_amount(float('nan')))

    def test_validate_entry_status(self):
        self.assertTrue(ModelValidator.validate_entry_status('Published'))
        self.assertFalse(ModelValidator.validate_entry_status('published'))


class TestReportUtils(unittest.TestCase):

    def test_to_amount(self):
        self.assertEqual(to_amount(12), 12.0)
        self.assertEqual(to_amount('7.5'), 7.5)
        for bad in (None, 'abc', -3, float('nan'), float('inf'), True, {}):
            self.assertEqual(to_amount(bad), 0.0)

    def test_to_quantity(self):
        self.assertEqual(to_quantity(3), 3.0)
        self.assertEqual(to_quantity(None), 1.0)
        self.assertEqual(to_quantity(0), 1.0)

    def test_parse_positive_int(self):
        self.assertEqual(parse_positive_int('3', 1), 3)
        self.assertEqual(parse_positive_int(None, 20), 20)
        self.assertEqual(parse_positive_int('abc', 20), 20)
        self.assertEqual(parse_positive_int('0', 20), 1)
        self.assertEqual(parse_positive_int('-4', 20), 1)

    def test_parse_report_date(self):
        self.assertEqual(parse_report_date('2024-03-01'), datetime(2024, 3, 1))
        self.assertEqual(parse_report_date('2024-03-01T10:00:00Z'), datetime(2024, 3, 1, 10))
        self.assertEqual(parse_report_date(date(2024, 3, 1)), datetime(2024, 3, 1))
        self.assertEqual(
            parse_report_date(datetime(2024, 3, 1, 12, tzinfo=timezone.utc)),
            datetime(2024, 3, 1, 12)
        )
        self.assertEqual(parse_report_date(0), datetime(1970, 1, 1))
        self.assertIsNone(parse_report_date('not a date'))
        self.assertIsNone(parse_report_date(None))

    def test_format_report_date(self):
        self.assertEqual(format_report_date(datetime(2024, 3, 1, 9, 30)), '2024-03-01T09:30:00Z')
        self.assertEqual(format_report_date('2024-03-01'), '2024-03-01')
        self.assertIsNone(format_report_date(None))


if __name__ == '__main__':
    unittest.main()
