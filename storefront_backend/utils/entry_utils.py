# -*- coding: utf-8 -*-
"""
Shared helpers for the expense and income blueprints: listing filters and
summary totals.
"""

import re

from storefront_backend.utils.report_utils import to_amount


def build_entry_list_query(tenant_id, args):
    """Filter for expense/income listings from the request arguments"""
    query = {}
    if tenant_id:
        query['tenantId'] = tenant_id
    if args.get('status'):
        query['status'] = args.get('status')
    if args.get('category'):
        query['category'] = args.get('category')
    if args.get('query'):
        query['name'] = {'$regex': re.escape(str(args.get('query'))), '$options': 'i'}
    date_query = {}
    if args.get('from'):
        date_query['$gte'] = args.get('from')
    if args.get('to'):
        date_query['$lte'] = args.get('to')
    if date_query:
        query['date'] = date_query
    return query


def summarize_entries(entries):
    """totalAmount / distinct category count / transaction count"""
    return {
        'totalAmount': sum(to_amount(entry.get('amount')) for entry in entries),
        'categories': len({entry.get('category') for entry in entries}),
        'totalTransactions': len(entries),
    }
