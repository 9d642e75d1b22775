"""
Audit Log Utility
Records who created which bookkeeping entry, per tenant.
"""

from datetime import datetime
from typing import Dict, Any, Optional
import logging

logger = logging.getLogger(__name__)


class AuditLogger:
    """
    Utility class for writing audit log entries.
    """

    def __init__(self, mongo_db):
        """
        Initialize with MongoDB database instance.

        Args:
            mongo_db: PyMongo database instance
        """
        self.db = mongo_db

    def log(
        self,
        tenant_id: Optional[str],
        action: str,
        resource_type: str,
        resource_id: str,
        resource_name: Optional[str] = None,
        details: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        status: str = 'success'
    ) -> bool:
        """
        Write one audit entry.

        Audit failures never fail the request that triggered them.

        Returns:
            bool: True if the entry was written, False otherwise
        """
        try:
            entry = {
                'tenantId': tenant_id or 'unknown',
                'userId': 'system',
                'userName': 'System',
                'userRole': 'system',
                'action': action,
                'actionType': 'create',
                'resourceType': resource_type,
                'resourceId': resource_id,
                'resourceName': resource_name,
                'details': details,
                'metadata': metadata or {},
                'ipAddress': ip_address,
                'userAgent': user_agent,
                'status': status,
                'createdAt': datetime.utcnow()
            }
            self.db.audit_logs.insert_one(entry)
            return True

        except Exception as e:
            logger.warning(f"Error writing audit log '{action}' for {resource_type} {resource_id}: {str(e)}")
            return False

    def log_expense_created(self, tenant_id, expense_id, expense, **request_info) -> bool:
        """Audit an expense creation."""
        amount = expense.get('amount')
        return self.log(
            tenant_id,
            'Expense Created',
            'expense',
            expense_id,
            resource_name=expense.get('name'),
            details=f"Expense \"{expense.get('name')}\" created - {amount} ({expense.get('category')})",
            metadata={'amount': amount, 'category': expense.get('category')},
            **request_info
        )

    def log_income_created(self, tenant_id, income_id, income, **request_info) -> bool:
        """Audit an income creation."""
        name = income.get('name') or 'Income'
        amount = income.get('amount')
        return self.log(
            tenant_id,
            'Income Created',
            'income',
            income_id,
            resource_name=name,
            details=f"Income \"{name}\" created - {amount}",
            metadata={'amount': amount, 'source': income.get('source')},
            **request_info
        )
