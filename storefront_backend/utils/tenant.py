"""
Tenant helpers.

Tenant identity arrives on each request (``X-Tenant-ID`` header, or a
``tenantId`` query parameter on reports) and is passed down explicitly to
every query; nothing stores it globally.
"""

from typing import Optional

from flask import request

TENANT_HEADER = 'X-Tenant-ID'


def get_tenant_id() -> Optional[str]:
    """Tenant id from the request header, or None when absent/blank"""
    tenant_id = request.headers.get(TENANT_HEADER, '').strip()
    return tenant_id or None


def get_report_tenant_id() -> Optional[str]:
    """Report endpoints accept ``tenantId`` as a query parameter, falling back to the header"""
    tenant_id = (request.args.get('tenantId') or '').strip()
    return tenant_id or get_tenant_id()
