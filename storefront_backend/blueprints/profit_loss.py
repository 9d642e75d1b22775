from flask import Blueprint, request, jsonify
import logging

from storefront_backend.services.profit_loss_service import (
    CostEstimator,
    DEFAULT_COST_ESTIMATE_RATIO,
    DEFAULT_PAGE_SIZE,
    ProfitLossService,
    format_summary_response,
)
from storefront_backend.utils.report_utils import parse_positive_int
from storefront_backend.utils.tenant import get_report_tenant_id

logger = logging.getLogger(__name__)


def init_profit_loss_blueprint(mongo, config):
    """Initialize the profit & loss report blueprint with database and report settings"""
    profit_loss_bp = Blueprint('profit_loss', __name__, url_prefix='/profit-loss')

    service = ProfitLossService(
        mongo.db,
        cost_estimator=CostEstimator(config.get('COST_ESTIMATE_RATIO', DEFAULT_COST_ESTIMATE_RATIO)),
        max_workers=config.get('REPORT_FETCH_WORKERS', 4),
        fetch_timeout=config.get('REPORT_FETCH_TIMEOUT', 30)
    )
    profit_loss_bp.service = service

    @profit_loss_bp.route('/summary', methods=['GET'])
    def get_summary():
        """Profit/loss totals for an optional date range and tenant"""
        try:
            summary = service.compute_summary(
                date_from=request.args.get('from'),
                date_to=request.args.get('to'),
                tenant_id=get_report_tenant_id()
            )
            return jsonify(format_summary_response(summary))

        except Exception:
            logger.exception("Error computing profit/loss summary")
            return jsonify({
                'success': False,
                'message': 'Failed to compute profit/loss summary',
                'errors': {'general': ['An unexpected error occurred while building the report']}
            }), 500

    @profit_loss_bp.route('/details', methods=['GET'])
    def get_details():
        """Paginated ledger of sales, expenses and incomes, newest first"""
        try:
            details = service.compute_details(
                date_from=request.args.get('from'),
                date_to=request.args.get('to'),
                tenant_id=get_report_tenant_id(),
                transaction_type=request.args.get('type'),
                page=parse_positive_int(request.args.get('page'), 1),
                page_size=parse_positive_int(request.args.get('pageSize'), DEFAULT_PAGE_SIZE)
            )
            return jsonify(details)

        except Exception:
            logger.exception("Error computing profit/loss details")
            return jsonify({
                'success': False,
                'message': 'Failed to compute profit/loss details',
                'errors': {'general': ['An unexpected error occurred while building the report']}
            }), 500

    return profit_loss_bp
