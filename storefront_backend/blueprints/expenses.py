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

REQUIRED_EXPENSE_FIELDS = ['name', 'category', 'amount', 'date', 'status']
UPDATABLE_EXPENSE_FIELDS = ['name', 'category', 'amount', 'date', 'status', 'note', 'imageUrl']


def init_expenses_blueprint(mongo, serialize_doc):
    """Initialize the expenses blueprint with database and serializer"""
    expenses_bp = Blueprint('expenses', __name__, url_prefix='/expenses')
    audit_logger = AuditLogger(mongo.db)

    def _validation_error(errors):
        return jsonify({
            'success': False,
            'message': 'Validation failed',
            'errors': errors
        }), 400

    def _not_found(message='Expense not found'):
        return jsonify({'success': False, 'message': message}), 404

    def _server_error(message, error):
        logger.error(f"{message}: {error}")
        return jsonify({
            'success': False,
            'message': message,
            'errors': {'general': [str(error)]}
        }), 500

    @expenses_bp.route('', methods=['GET'])
    def get_expenses():
        try:
            tenant_id = get_tenant_id()
            page = parse_positive_int(request.args.get('page'), 1)
            page_size = parse_positive_int(request.args.get('pageSize'), 10)

            query = build_entry_list_query(tenant_id, request.args)

            total = mongo.db.expenses.count_documents(query)
            expenses = list(mongo.db.expenses.find(query)
                            .sort('date', -1)
                            .skip((page - 1) * page_size)
                            .limit(page_size))

            return jsonify({
                'items': [serialize_doc(expense) for expense in expenses],
                'total': total
            })

        except Exception as e:
            return _server_error('Failed to retrieve expenses', e)

    @expenses_bp.route('/summary', methods=['GET'])
    def get_expense_summary():
        try:
            query = build_entry_list_query(get_tenant_id(), {
                'from': request.args.get('from'),
                'to': request.args.get('to'),
            })
            expenses = list(mongo.db.expenses.find(query, {'amount': 1, 'category': 1}))
            return jsonify(summarize_entries(expenses))

        except Exception as e:
            return _server_error('Failed to retrieve expense summary', e)

    @expenses_bp.route('/<expense_id>', methods=['GET'])
    def get_expense(expense_id):
        try:
            if not ModelValidator.validate_object_id(expense_id):
                return _not_found()

            query = {'_id': ObjectId(expense_id)}
            tenant_id = get_tenant_id()
            if tenant_id:
                query['tenantId'] = tenant_id

            expense = mongo.db.expenses.find_one(query)
            if not expense:
                return _not_found()

            return jsonify(serialize_doc(expense))

        except Exception as e:
            return _server_error('Failed to retrieve expense', e)

    @expenses_bp.route('', methods=['POST'])
    def create_expense():
        try:
            payload = request.get_json(silent=True) or {}
            tenant_id = get_tenant_id()

            errors = {}
            for field in REQUIRED_EXPENSE_FIELDS:
                if field not in payload:
                    errors[field] = [f'Missing field: {field}']
            if 'amount' in payload and not ModelValidator.validate_amount(payload['amount']):
                errors['amount'] = ['Valid amount is required']
            if 'status' in payload and not ModelValidator.validate_entry_status(payload['status']):
                errors['status'] = [f"Status must be one of: {', '.join(ENTRY_STATUSES)}"]
            if errors:
                return _validation_error(errors)

            now = datetime.utcnow()
            expense_data = {
                'name': str(payload['name']),
                'category': str(payload['category']),
                'amount': float(payload['amount']),
                'date': str(payload['date']),
                'status': str(payload['status']),
                'tenantId': tenant_id or 'unknown',
                'createdAt': now,
                'updatedAt': now,
            }
            if payload.get('note'):
                expense_data['note'] = str(payload['note'])
            if payload.get('imageUrl'):
                expense_data['imageUrl'] = str(payload['imageUrl'])

            result = mongo.db.expenses.insert_one(expense_data)
            expense_id = str(result.inserted_id)

            audit_logger.log_expense_created(
                tenant_id, expense_id, expense_data,
                ip_address=request.remote_addr,
                user_agent=request.headers.get('User-Agent')
            )

            return jsonify(serialize_doc(expense_data)), 201

        except Exception as e:
            return _server_error('Failed to create expense', e)

    @expenses_bp.route('/<expense_id>', methods=['PUT'])
    def update_expense(expense_id):
        try:
            if not ModelValidator.validate_object_id(expense_id):
                return _not_found()

            payload = request.get_json(silent=True) or {}
            query = {'_id': ObjectId(expense_id)}
            tenant_id = get_tenant_id()
            if tenant_id:
                query['tenantId'] = tenant_id

            if not mongo.db.expenses.find_one(query, {'_id': 1}):
                return _not_found()

            update_data = {}
            for field in UPDATABLE_EXPENSE_FIELDS:
                if field not in payload:
                    continue
                if field == 'amount':
                    if not ModelValidator.validate_amount(payload[field]):
                        return _validation_error({'amount': ['Valid amount is required']})
                    update_data[field] = float(payload[field])
                elif field == 'status':
                    if not ModelValidator.validate_entry_status(payload[field]):
                        return _validation_error({'status': [f"Status must be one of: {', '.join(ENTRY_STATUSES)}"]})
                    update_data[field] = payload[field]
                else:
                    update_data[field] = payload[field]
            update_data['updatedAt'] = datetime.utcnow()

            mongo.db.expenses.update_one(query, {'$set': update_data})
            updated_expense = mongo.db.expenses.find_one(query)

            return jsonify(serialize_doc(updated_expense))

        except Exception as e:
            return _server_error('Failed to update expense', e)

    @expenses_bp.route('/<expense_id>', methods=['DELETE'])
    def delete_expense(expense_id):
        try:
            if not ModelValidator.validate_object_id(expense_id):
                return _not_found()

            query = {'_id': ObjectId(expense_id)}
            tenant_id = get_tenant_id()
            if tenant_id:
                query['tenantId'] = tenant_id

            result = mongo.db.expenses.delete_one(query)
            if result.deleted_count == 0:
                return _not_found()

            return jsonify({'success': True})

        except Exception as e:
            return _server_error('Failed to delete expense', e)

    # ===== CATEGORIES =====

    @expenses_bp.route('/categories/list', methods=['GET'])
    def list_expense_categories():
        try:
            query = {}
            tenant_id = get_tenant_id()
            if tenant_id:
                query['tenantId'] = tenant_id
            categories = list(mongo.db.expense_categories.find(query).sort('name', 1))
            return jsonify({'items': [serialize_doc(category) for category in categories]})

        except Exception as e:
            return _server_error('Failed to retrieve expense categories', e)

    @expenses_bp.route('/categories/create', methods=['POST'])
    def create_expense_category():
        try:
            payload = request.get_json(silent=True) or {}
            name = str(payload.get('name') or '').strip()
            if not name:
                return _validation_error({'name': ['Name is required']})

            category = {
                'name': name,
                'tenantId': get_tenant_id() or 'unknown',
                'createdAt': datetime.utcnow(),
            }
            mongo.db.expense_categories.insert_one(category)
            return jsonify(serialize_doc(category)), 201

        except Exception as e:
            return _server_error('Failed to create expense category', e)

    @expenses_bp.route('/categories/<category_id>', methods=['PUT'])
    def update_expense_category(category_id):
        try:
            if not ModelValidator.validate_object_id(category_id):
                return _not_found('Category not found')

            payload = request.get_json(silent=True) or {}
            name = str(payload.get('name') or '').strip()
            if not name:
                return _validation_error({'name': ['Name is required']})

            category_oid = ObjectId(category_id)
            result = mongo.db.expense_categories.update_one({'_id': category_oid}, {'$set': {'name': name}})
            if result.matched_count == 0:
                return _not_found('Category not found')

            return jsonify(serialize_doc(mongo.db.expense_categories.find_one({'_id': category_oid})))

        except Exception as e:
            return _server_error('Failed to update expense category', e)

    @expenses_bp.route('/categories/<category_id>', methods=['DELETE'])
    def delete_expense_category(category_id):
        try:
            if not ModelValidator.validate_object_id(category_id):
                return _not_found('Category not found')

            mongo.db.expense_categories.delete_one({'_id': ObjectId(category_id)})
            return jsonify({'success': True})

        except Exception as e:
            return _server_error('Failed to delete expense category', e)

    return expenses_bp
