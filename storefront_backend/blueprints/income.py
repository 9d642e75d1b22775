from flask import Blueprint, request, jsonify
from datetime import datetime
from bson import ObjectId
import logging

from storefront_backend.models import ModelValidator, ENTRY_STATUSES
from storefront_backend.utils.audit_log import AuditLogger
from storefront_backend.utils.entry_utils import build_entry_list_query, summarize_entries
from storefront_backend.utils.report_utils import parse_positive_int
from storefront_backend.utils.tenant import get_tenant_id

logger = logging.getLogger(__name__)

REQUIRED_INCOME_FIELDS = ['name', 'amount', 'date']
PROTECTED_INCOME_FIELDS = ('_id', 'id', 'tenantId', 'createdAt')


def init_income_blueprint(mongo, serialize_doc):
    """Initialize the income blueprint with database and serializer"""
    income_bp = Blueprint('income', __name__, url_prefix='/incomes')
    audit_logger = AuditLogger(mongo.db)

    def _income_filter(income_id, tenant_id):
        # Incomes imported from older clients carry their own string id
        if ModelValidator.validate_object_id(income_id):
            query = {'_id': ObjectId(income_id)}
        else:
            query = {'id': income_id}
        if tenant_id:
            query['tenantId'] = tenant_id
        return query

    def _validate_income_payload(payload, required):
        errors = {}
        for field in required:
            if field not in payload:
                errors[field] = [f'Missing field: {field}']
        if 'amount' in payload and not ModelValidator.validate_amount(payload['amount']):
            errors['amount'] = ['Valid amount is required']
        if 'status' in payload and not ModelValidator.validate_entry_status(payload['status']):
            errors['status'] = [f"Status must be one of: {', '.join(ENTRY_STATUSES)}"]
        return errors

    def _server_error(message, error):
        logger.error(f"{message}: {error}")
        return jsonify({
            'success': False,
            'message': message,
            'errors': {'general': [str(error)]}
        }), 500

    @income_bp.route('', methods=['GET'])
    def get_incomes():
        try:
            page = parse_positive_int(request.args.get('page'), 1)
            page_size = parse_positive_int(request.args.get('pageSize'), 10)
            query = build_entry_list_query(get_tenant_id(), request.args)

            total = mongo.db.incomes.count_documents(query)
            incomes = list(mongo.db.incomes.find(query)
                           .sort('date', -1)
                           .skip((page - 1) * page_size)
                           .limit(page_size))

            return jsonify({
                'items': [serialize_doc(income) for income in incomes],
                'total': total
            })

        except Exception as e:
            return _server_error('Failed to retrieve incomes', e)

    @income_bp.route('/summary', methods=['GET'])
    def get_income_summary():
        try:
            query = build_entry_list_query(get_tenant_id(), {
                'from': request.args.get('from'),
                'to': request.args.get('to'),
            })
            incomes = list(mongo.db.incomes.find(query, {'amount': 1, 'category': 1}))
            return jsonify(summarize_entries(incomes))

        except Exception as e:
            return _server_error('Failed to retrieve income summary', e)

    @income_bp.route('/categories', methods=['GET'])
    def list_income_categories():
        try:
            query = {}
            tenant_id = get_tenant_id()
            if tenant_id:
                query['tenantId'] = tenant_id
            categories = list(mongo.db.income_categories.find(query).sort('name', 1))
            return jsonify([serialize_doc(category) for category in categories])

        except Exception as e:
            return _server_error('Failed to retrieve income categories', e)

    @income_bp.route('/categories', methods=['POST'])
    def create_income_category():
        try:
            payload = request.get_json(silent=True) or {}
            name = str(payload.get('name') or '').strip()
            if not name:
                return jsonify({
                    'success': False,
                    'message': 'Validation failed',
                    'errors': {'name': ['Name is required']}
                }), 400

            category = {
                'name': name,
                'tenantId': get_tenant_id(),
                'createdAt': datetime.utcnow(),
            }
            mongo.db.income_categories.insert_one(category)
            return jsonify(serialize_doc(category)), 201

        except Exception as e:
            return _server_error('Failed to create income category', e)

    @income_bp.route('', methods=['POST'])
    def create_income():
        try:
            payload = request.get_json(silent=True) or {}
            tenant_id = get_tenant_id() or payload.get('tenantId')

            errors = _validate_income_payload(payload, REQUIRED_INCOME_FIELDS)
            if errors:
                return jsonify({
                    'success': False,
                    'message': 'Validation failed',
                    'errors': errors
                }), 400

            income_data = {
                key: value for key, value in payload.items()
                if key not in PROTECTED_INCOME_FIELDS
            }
            income_data.update({
                'name': str(payload['name']),
                'amount': float(payload['amount']),
                'date': str(payload['date']),
                'status': payload.get('status') or 'Draft',
                'tenantId': tenant_id,
                'createdAt': datetime.utcnow(),
            })

            result = mongo.db.incomes.insert_one(income_data)
            income_id = str(result.inserted_id)

            audit_logger.log_income_created(
                tenant_id, income_id, income_data,
                ip_address=request.remote_addr,
                user_agent=request.headers.get('User-Agent')
            )

            return jsonify(serialize_doc(income_data)), 201

        except Exception as e:
            return _server_error('Failed to create income', e)

    @income_bp.route('/<income_id>', methods=['PUT'])
    def update_income(income_id):
        try:
            payload = request.get_json(silent=True) or {}
            errors = _validate_income_payload(payload, [])
            if errors:
                return jsonify({
                    'success': False,
                    'message': 'Validation failed',
                    'errors': errors
                }), 400

            update_data = {
                key: value for key, value in payload.items()
                if key not in PROTECTED_INCOME_FIELDS
            }
            if 'amount' in update_data:
                update_data['amount'] = float(update_data['amount'])
            update_data['updatedAt'] = datetime.utcnow()

            query = _income_filter(income_id, get_tenant_id())
            result = mongo.db.incomes.update_one(query, {'$set': update_data})
            if result.matched_count == 0:
                return jsonify({'success': False, 'message': 'Income not found'}), 404

            return jsonify(serialize_doc(mongo.db.incomes.find_one(query)))

        except Exception as e:
            return _server_error('Failed to update income', e)

    @income_bp.route('/<income_id>', methods=['DELETE'])
    def delete_income(income_id):
        try:
            result = mongo.db.incomes.delete_one(_income_filter(income_id, get_tenant_id()))
            if result.deleted_count == 0:
                return jsonify({'success': False, 'message': 'Income not found'}), 404

            return jsonify({'success': True})

        except Exception as e:
            return _server_error('Failed to delete income', e)

    return income_bp
