"""
Profit & Loss Service
Joins orders, expenses, incomes and product cost data into the profit/loss
summary and the paginated transaction ledger.

Every call re-reads the collections it needs; nothing is cached and nothing
is written. The tenant is always passed in explicitly.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from storefront_backend.models import COUNTED_ORDER_STATUSES, PUBLISHED_STATUS
from storefront_backend.utils.collection_store import CollectionStore
from storefront_backend.utils.parallel_query_helper import fetch_collections_parallel, fetch_with_timing
from storefront_backend.utils.report_utils import (
    format_report_date,
    parse_report_date,
    to_amount,
    to_quantity,
)

logger = logging.getLogger(__name__)

# Unit cost as a share of sale price when a product has no costPrice
DEFAULT_COST_ESTIMATE_RATIO = 0.6

TRANSACTION_TYPES = ('sale', 'expense', 'income')

DEFAULT_PAGE_SIZE = 20


# ==================== FILTER BUILDER ====================

def build_date_filter(date_from: Optional[str] = None, date_to: Optional[str] = None) -> Dict[str, Any]:
    """Inclusive date range on the ``date`` field; values are passed through as given"""
    date_query = {}
    if date_from:
        date_query['$gte'] = date_from
    if date_to:
        date_query['$lte'] = date_to
    return {'date': date_query} if date_query else {}


def build_base_filter(
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
    tenant_id: Optional[str] = None
) -> Dict[str, Any]:
    query = build_date_filter(date_from, date_to)
    if tenant_id:
        query['tenantId'] = tenant_id
    return query


def build_order_filter(date_from=None, date_to=None, tenant_id=None) -> Dict[str, Any]:
    query = build_base_filter(date_from, date_to, tenant_id)
    query['status'] = {'$in': list(COUNTED_ORDER_STATUSES)}
    return query


def build_expense_filter(date_from=None, date_to=None, tenant_id=None) -> Dict[str, Any]:
    query = build_base_filter(date_from, date_to, tenant_id)
    query['status'] = PUBLISHED_STATUS
    return query


def build_income_filter(date_from=None, date_to=None, tenant_id=None) -> Dict[str, Any]:
    query = build_base_filter(date_from, date_to, tenant_id)
    query['status'] = PUBLISHED_STATUS
    return query


def build_report_filters(date_from=None, date_to=None, tenant_id=None) -> Dict[str, Dict[str, Any]]:
    """Per-collection filters for one report request"""
    return {
        'orders': build_order_filter(date_from, date_to, tenant_id),
        'expenses': build_expense_filter(date_from, date_to, tenant_id),
        'incomes': build_income_filter(date_from, date_to, tenant_id),
    }


# ==================== COST ESTIMATOR ====================

def build_product_lookup(products: Iterable[Dict[str, Any]]) -> Dict[str, Dict[str, Any]]:
    """Index products by their ``id`` field and by the string form of ``_id``"""
    lookup = {}
    for product in products:
        if product.get('_id') is not None:
            lookup[str(product['_id'])] = product
        if product.get('id') is not None:
            lookup[str(product['id'])] = product
    return lookup


def net_sale_amount(order: Dict[str, Any]) -> float:
    """Order amount less the delivery charge collected on it"""
    return to_amount(order.get('amount')) - to_amount(order.get('deliveryCharge'))


class CostEstimator:
    """
    Resolves the cost of goods for an order.

    Uses the product's costPrice when known; otherwise estimates unit cost as
    ``ratio`` of the product's originalPrice (or price). Orders whose product
    cannot be found are costed at ``ratio`` of their net sale amount.
    """

    def __init__(self, ratio: float = DEFAULT_COST_ESTIMATE_RATIO):
        self.ratio = float(ratio)

    def unit_cost(self, product: Dict[str, Any]) -> float:
        cost_price = to_amount(product.get('costPrice'))
        if cost_price:
            return cost_price
        original_price = to_amount(product.get('originalPrice'))
        if original_price:
            return original_price * self.ratio
        return to_amount(product.get('price')) * self.ratio

    def cost(self, order: Dict[str, Any], product: Optional[Dict[str, Any]] = None) -> float:
        if product is None:
            return net_sale_amount(order) * self.ratio
        return self.unit_cost(product) * to_quantity(order.get('quantity'))

    def cost_for_order(self, order: Dict[str, Any], product_lookup: Dict[str, Dict[str, Any]]) -> float:
        product_id = order.get('productId')
        product = product_lookup.get(str(product_id)) if product_id is not None else None
        return self.cost(order, product)


# ==================== REPORT ASSEMBLER ====================

def _document_id(doc: Dict[str, Any]) -> Optional[str]:
    if doc.get('_id') is not None:
        return str(doc['_id'])
    return doc.get('id')


def project_sale(order: Dict[str, Any]) -> Dict[str, Any]:
    order_ref = order.get('id') or order.get('_id')
    return {
        'id': _document_id(order),
        'date': format_report_date(order.get('date')),
        'type': 'sale',
        'description': f"Order #{order_ref} - {order.get('productName') or 'Product'}",
        'amount': net_sale_amount(order),
        'category': 'Sales',
    }


def project_expense(expense: Dict[str, Any]) -> Dict[str, Any]:
    return {
        'id': _document_id(expense),
        'date': format_report_date(expense.get('date')),
        'type': 'expense',
        'description': expense.get('name') or 'Expense',
        'amount': to_amount(expense.get('amount')),
        'category': expense.get('category'),
    }


def project_income(income: Dict[str, Any]) -> Dict[str, Any]:
    return {
        'id': _document_id(income),
        'date': format_report_date(income.get('date')),
        'type': 'income',
        'description': income.get('name') or 'Income',
        'amount': to_amount(income.get('amount')),
        'category': income.get('category'),
    }


def _date_sort_key(item: Dict[str, Any]):
    parsed = parse_report_date(item.get('date'))
    if parsed is None:
        return (0, datetime.min)
    return (1, parsed)


def sort_by_date_desc(items: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Newest first; equal dates keep their input order, undated items go last"""
    return sorted(items, key=_date_sort_key, reverse=True)


def paginate(items: List[Dict[str, Any]], page: int = 1, page_size: int = DEFAULT_PAGE_SIZE) -> Dict[str, Any]:
    page = max(int(page), 1)
    page_size = max(int(page_size), 1)
    start = (page - 1) * page_size
    return {'items': items[start:start + page_size], 'total': len(items)}


def format_summary_response(summary: Dict[str, Any]) -> Dict[str, Any]:
    """Shape a computed summary the way GET /profit-loss/summary returns it"""
    return {
        'profitFromSale': {
            'sellingPrice': summary['sellingPrice'],
            'purchasePrice': summary['purchasePrice'],
            'deliveryPrice': summary['deliveryPrice'],
            'profit': summary['profitFromSale'],
        },
        'otherIncome': summary['otherIncome'],
        'otherExpense': summary['otherExpense'],
        'totalProfitLoss': summary['totalProfitLoss'],
        'orderCount': summary['orderCount'],
        'expenseCount': summary['expenseCount'],
        'incomeCount': summary['incomeCount'],
    }


# ==================== AGGREGATOR ====================

class ProfitLossService:
    """Service class for profit/loss aggregation over the storefront collections"""

    def __init__(self, mongo_db, cost_estimator: Optional[CostEstimator] = None,
                 max_workers: int = 4, fetch_timeout: float = 30):
        self.db = mongo_db
        self.store = CollectionStore(mongo_db)
        self.cost_estimator = cost_estimator or CostEstimator()
        self.max_workers = max_workers
        self.fetch_timeout = fetch_timeout

    def _fetcher(self, collection_name: str, query: Dict[str, Any]):
        def _fetch():
            return fetch_with_timing(
                lambda: self.store.find_if_supported(collection_name, query),
                label=f"profit_loss {collection_name} fetch"
            )
        return _fetch

    def _fetch(self, fetchers) -> Dict[str, List[Dict[str, Any]]]:
        return fetch_collections_parallel(
            fetchers,
            max_workers=self.max_workers,
            timeout=self.fetch_timeout
        )

    def summarize(
        self,
        orders: List[Dict[str, Any]],
        expenses: List[Dict[str, Any]],
        incomes: List[Dict[str, Any]],
        products: List[Dict[str, Any]]
    ) -> Dict[str, Any]:
        """
        Reduce already-fetched documents into the profit/loss figures.

        Returns:
            Dict with sellingPrice, purchasePrice, deliveryPrice, profitFromSale,
            otherExpense, otherIncome, totalProfitLoss and the three counts
        """
        product_lookup = build_product_lookup(products)

        selling_price = sum(net_sale_amount(order) for order in orders)
        purchase_price = sum(
            self.cost_estimator.cost_for_order(order, product_lookup) for order in orders
        )
        delivery_price = sum(to_amount(order.get('deliveryCharge')) for order in orders)
        profit_from_sale = selling_price - purchase_price

        other_expense = sum(to_amount(expense.get('amount')) for expense in expenses)
        other_income = sum(to_amount(income.get('amount')) for income in incomes)

        return {
            'sellingPrice': selling_price,
            'purchasePrice': purchase_price,
            'deliveryPrice': delivery_price,
            'profitFromSale': profit_from_sale,
            'otherExpense': other_expense,
            'otherIncome': other_income,
            'totalProfitLoss': profit_from_sale + other_income - other_expense,
            'orderCount': len(orders),
            'expenseCount': len(expenses),
            'incomeCount': len(incomes),
        }

    def compute_summary(
        self,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
        tenant_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Fetch and reduce everything the summary needs.

        Args:
            date_from: Inclusive lower bound on ``date`` (passed through as given)
            date_to: Inclusive upper bound on ``date``
            tenant_id: Restrict to one tenant when provided

        Raises:
            Any error raised by a fetch; there is no partial result.
        """
        filters = build_report_filters(date_from, date_to, tenant_id)

        results = self._fetch({
            'orders': self._fetcher('orders', filters['orders']),
            'expenses': self._fetcher('expenses', filters['expenses']),
            'incomes': self._fetcher('incomes', filters['incomes']),
            'products': self._fetcher('products', {}),
        })

        summary = self.summarize(
            results['orders'],
            results['expenses'],
            results['incomes'],
            results['products']
        )
        logger.info(
            f"Profit/loss summary for tenant {tenant_id or '*'}: "
            f"{summary['orderCount']} orders, {summary['expenseCount']} expenses, "
            f"{summary['incomeCount']} incomes"
        )
        return summary

    def compute_details(
        self,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
        tenant_id: Optional[str] = None,
        transaction_type: Optional[str] = None,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE
    ) -> Dict[str, Any]:
        """
        Flattened, date-sorted, paginated ledger of sales, expenses and incomes.

        ``transaction_type`` limits the ledger to one of TRANSACTION_TYPES;
        empty means all three, and an unknown value matches nothing.
        """
        filters = build_report_filters(date_from, date_to, tenant_id)

        fetchers = {}
        if not transaction_type or transaction_type == 'sale':
            fetchers['orders'] = self._fetcher('orders', filters['orders'])
        if not transaction_type or transaction_type == 'expense':
            fetchers['expenses'] = self._fetcher('expenses', filters['expenses'])
        if not transaction_type or transaction_type == 'income':
            fetchers['incomes'] = self._fetcher('incomes', filters['incomes'])

        results = self._fetch(fetchers)

        # Concatenation order (sales, expenses, incomes) is the tie-break order
        items = []
        items.extend(project_sale(order) for order in results.get('orders', []))
        items.extend(project_expense(expense) for expense in results.get('expenses', []))
        items.extend(project_income(income) for income in results.get('incomes', []))

        return paginate(sort_by_date_desc(items), page, page_size)
