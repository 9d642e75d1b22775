from datetime import datetime
from typing import Dict, List, Optional, Any
import logging

from bson import ObjectId

logger = logging.getLogger(__name__)


# Order states that count as completed sales in financial reports
COUNTED_ORDER_STATUSES = ['Pending', 'Confirmed', 'Shipped', 'Delivered']

# Expense / income lifecycle; only Published records reach reports
PUBLISHED_STATUS = 'Published'
ENTRY_STATUSES = ['Draft', PUBLISHED_STATUS, 'Trash']


class DatabaseSchema:
    """
    Centralized database schema definitions for the storefront collections.
    Provides schema documentation and index definitions.
    """

    # ==================== ORDERS COLLECTION ====================

    @staticmethod
    def get_order_schema() -> Dict[str, Any]:
        """
        Schema for orders collection.
        Owned by the storefront checkout; read-only for bookkeeping reports.
        """
        return {
            '_id': ObjectId,
            'id': Optional[str],  # Storefront order number
            'tenantId': str,
            'amount': float,  # Order total including delivery
            'deliveryCharge': float,
            'productId': Optional[str],
            'productName': Optional[str],
            'quantity': int,  # Defaults to 1 when absent
            'status': str,  # Pending, Confirmed, Shipped, Delivered, Cancelled or Returned
            'date': str,  # ISO date string
        }

    @staticmethod
    def get_order_indexes() -> List[Dict[str, Any]]:
        """Define indexes for orders collection."""
        return [
            {'keys': [('tenantId', 1), ('date', -1)], 'name': 'tenant_date_desc'},
            {'keys': [('tenantId', 1), ('status', 1), ('date', -1)], 'name': 'tenant_status_date'},
        ]

    # ==================== PRODUCTS COLLECTION ====================

    @staticmethod
    def get_product_schema() -> Dict[str, Any]:
        """Schema for products collection (cost lookup and purchase stock)."""
        return {
            '_id': ObjectId,
            'id': Optional[str],
            'tenantId': str,
            'name': str,
            'price': float,  # Current sale price
            'originalPrice': Optional[float],  # List price before discount
            'costPrice': Optional[float],  # Authoritative unit cost
            'stock': Optional[int],
            'updatedAt': Optional[datetime],
        }

    @staticmethod
    def get_product_indexes() -> List[Dict[str, Any]]:
        """Define indexes for products collection."""
        return [
            {'keys': [('id', 1)], 'sparse': True, 'name': 'product_id'},
            {'keys': [('tenantId', 1)], 'name': 'tenant_products'},
        ]

    # ==================== EXPENSES COLLECTION ====================

    @staticmethod
    def get_expense_schema() -> Dict[str, Any]:
        """
        Schema for expenses collection.
        Stores tenant expense records; only Published entries are reported.
        """
        return {
            '_id': ObjectId,
            'tenantId': str,
            'name': str,  # Required
            'category': str,  # Required
            'amount': float,  # Required
            'date': str,  # Required, ISO date string
            'status': str,  # Required, one of ENTRY_STATUSES
            'note': Optional[str],
            'imageUrl': Optional[str],
            'createdAt': datetime,
            'updatedAt': datetime,
        }

    @staticmethod
    def get_expense_indexes() -> List[Dict[str, Any]]:
        """Define indexes for expenses collection."""
        return [
            {'keys': [('tenantId', 1), ('date', -1)], 'name': 'tenant_date_desc'},
            {'keys': [('tenantId', 1), ('status', 1), ('date', -1)], 'name': 'tenant_status_date'},
            {'keys': [('tenantId', 1), ('category', 1)], 'name': 'tenant_category'},
        ]

    # ==================== INCOMES COLLECTION ====================

    @staticmethod
    def get_income_schema() -> Dict[str, Any]:
        """
        Schema for incomes collection.
        Legacy tenants may not have this collection at all.
        """
        return {
            '_id': ObjectId,
            'tenantId': str,
            'name': str,
            'category': str,
            'amount': float,
            'date': str,
            'status': str,  # One of ENTRY_STATUSES
            'source': Optional[str],
            'note': Optional[str],
            'imageUrl': Optional[str],
            'createdAt': datetime,
            'updatedAt': Optional[datetime],
        }

    @staticmethod
    def get_income_indexes() -> List[Dict[str, Any]]:
        """Define indexes for incomes collection."""
        return [
            {'keys': [('tenantId', 1), ('date', -1)], 'name': 'tenant_date_desc'},
            {'keys': [('tenantId', 1), ('status', 1), ('date', -1)], 'name': 'tenant_status_date'},
        ]

    # ==================== PURCHASES COLLECTION ====================

    @staticmethod
    def get_purchase_schema() -> Dict[str, Any]:
        """Schema for purchases collection (stock received from suppliers)."""
        return {
            '_id': ObjectId,
            'tenantId': str,
            'purchaseNumber': str,  # PUR-000001, sequential per tenant
            'items': List[Dict[str, Any]],
            # items structure:
            # [{
            #     'productId': str, 'productName': str, 'sku': str, 'barcode': str,
            #     'quantity': float, 'unitPrice': float, 'totalPrice': float,
            #     'batchNo': str, 'expireDate': Optional[str], 'image': str
            # }]
            'totalAmount': float,
            'supplierName': str,
            'paymentMethod': str,
            'note': str,
            'status': str,  # 'completed' on creation
            'createdAt': datetime,
            'updatedAt': datetime,
        }

    @staticmethod
    def get_purchase_indexes() -> List[Dict[str, Any]]:
        """Define indexes for purchases collection."""
        return [
            {'keys': [('tenantId', 1), ('createdAt', -1)], 'name': 'tenant_created_desc'},
        ]

    # ==================== CATEGORY COLLECTIONS ====================

    @staticmethod
    def get_category_indexes() -> List[Dict[str, Any]]:
        """Define indexes for expense_categories / income_categories."""
        return [
            {'keys': [('tenantId', 1), ('name', 1)], 'name': 'tenant_name'},
        ]

    # ==================== AUDIT_LOGS COLLECTION ====================

    @staticmethod
    def get_audit_log_indexes() -> List[Dict[str, Any]]:
        """Define indexes for audit_logs collection."""
        return [
            {'keys': [('tenantId', 1), ('createdAt', -1)], 'name': 'tenant_created_desc'},
            {'keys': [('resourceType', 1), ('resourceId', 1)], 'name': 'resource_lookup'},
        ]


class DatabaseInitializer:
    """
    Database initialization and management utilities.
    Handles collection creation, index setup, and validation.
    """

    # Collections that may legitimately be missing; never created here
    OPTIONAL_COLLECTIONS = ('incomes',)

    def __init__(self, mongo_db):
        """
        Initialize with MongoDB database instance.

        Args:
            mongo_db: PyMongo database instance
        """
        self.db = mongo_db
        self.schema = DatabaseSchema()

    def get_collection_indexes(self) -> Dict[str, List[Dict[str, Any]]]:
        return {
            'orders': self.schema.get_order_indexes(),
            'products': self.schema.get_product_indexes(),
            'expenses': self.schema.get_expense_indexes(),
            'incomes': self.schema.get_income_indexes(),
            'purchases': self.schema.get_purchase_indexes(),
            'expense_categories': self.schema.get_category_indexes(),
            'income_categories': self.schema.get_category_indexes(),
            'audit_logs': self.schema.get_audit_log_indexes(),
        }

    def initialize_collections(self):
        """
        Initialize all collections with proper indexes.
        Safe to run multiple times - will skip if collections/indexes exist.
        Optional collections are only indexed when they already exist.
        """
        results = {
            'created': [],
            'existing': [],
            'skipped': [],
            'indexes_created': [],
            'errors': []
        }

        existing_collections = set(self.db.list_collection_names())

        for collection_name, indexes in self.get_collection_indexes().items():
            try:
                if collection_name in existing_collections:
                    results['existing'].append(collection_name)
                elif collection_name in self.OPTIONAL_COLLECTIONS:
                    results['skipped'].append(collection_name)
                    logger.info(f"Optional collection '{collection_name}' not present, skipping")
                    continue
                else:
                    self.db.create_collection(collection_name)
                    results['created'].append(collection_name)
                    logger.info(f"Created collection '{collection_name}'")

                collection = self.db[collection_name]
                existing_indexes = collection.index_information()

                for index_def in indexes:
                    index_name = index_def.get('name')
                    if index_name and index_name in existing_indexes:
                        continue

                    # Same key pattern under a different name counts as present
                    if any(
                        name != '_id_' and list(info.get('key', [])) == index_def['keys']
                        for name, info in existing_indexes.items()
                    ):
                        continue

                    created_index_name = collection.create_index(
                        index_def['keys'],
                        unique=index_def.get('unique', False),
                        sparse=index_def.get('sparse', False),
                        name=index_name
                    )
                    results['indexes_created'].append(f"{collection_name}.{created_index_name}")
                    logger.info(f"Created index '{created_index_name}' on '{collection_name}'")

            except Exception as e:
                error_msg = f"Failed to initialize collection {collection_name}: {str(e)}"
                results['errors'].append(error_msg)
                logger.error(error_msg)

        return results

    def validate_collection_exists(self, collection_name: str) -> bool:
        """
        Check if a collection exists in the database.

        Args:
            collection_name: Name of the collection to check

        Returns:
            bool: True if collection exists, False otherwise
        """
        return collection_name in self.db.list_collection_names()


class ModelValidator:
    """
    Validation utilities for model data.
    """

    @staticmethod
    def validate_amount(amount) -> bool:
        """Validate amount is a non-negative number."""
        if isinstance(amount, bool):
            return False
        try:
            value = float(amount)
        except (ValueError, TypeError):
            return False
        return value >= 0 and value == value and value != float('inf')

    @staticmethod
    def validate_object_id(obj_id) -> bool:
        """Validate ObjectId."""
        return isinstance(obj_id, ObjectId) or ObjectId.is_valid(obj_id)

    @staticmethod
    def validate_entry_status(status: str) -> bool:
        """Validate expense/income status."""
        return status in ENTRY_STATUSES


# Export main classes
__all__ = [
    'COUNTED_ORDER_STATUSES',
    'PUBLISHED_STATUS',
    'ENTRY_STATUSES',
    'DatabaseSchema',
    'DatabaseInitializer',
    'ModelValidator',
]
