from flask import Blueprint, request, jsonify
from datetime import datetime
from bson import ObjectId
import logging

from storefront_backend.models import ModelValidator
from storefront_backend.utils.payment_utils import (
    DEFAULT_PAYMENT_METHOD,
    normalize_payment_method,
    validate_payment_method,
)
from storefront_backend.utils.report_utils import to_amount
from storefront_backend.utils.tenant import get_tenant_id

logger = logging.getLogger(__name__)

PURCHASE_NUMBER_PREFIX = 'PUR-'


def next_purchase_number(last_purchase):
    """PUR-000001 for a tenant's first purchase, otherwise the last number + 1"""
    if not last_purchase:
        return f'{PURCHASE_NUMBER_PREFIX}000001'
    last_number = str(last_purchase.get('purchaseNumber') or f'{PURCHASE_NUMBER_PREFIX}0')
    try:
        sequence = int(last_number.split('-')[1])
    except (IndexError, ValueError):
        sequence = 0
    return f'{PURCHASE_NUMBER_PREFIX}{sequence + 1:06d}'


def build_purchase_item(item):
    quantity = to_amount(item.get('quantity'))
    unit_price = to_amount(item.get('unitPrice'))
    return {
        'productId': item.get('productId'),
        'productName': item.get('productName'),
        'sku': item.get('sku') or '',
        'barcode': item.get('barcode') or '',
        'quantity': quantity,
        'unitPrice': unit_price,
        'totalPrice': quantity * unit_price,
        'batchNo': item.get('batchNo') or '',
        'expireDate': item.get('expireDate') or None,
        'image': item.get('image') or '',
    }


def init_purchases_blueprint(mongo, serialize_doc):
    """Initialize the purchases blueprint with database and serializer"""
    purchases_bp = Blueprint('purchases', __name__, url_prefix='/purchases')

    def _tenant_missing():
        return jsonify({'success': False, 'message': 'Tenant ID is required'}), 400

    def _not_found():
        return jsonify({'success': False, 'message': 'Purchase not found'}), 404

    def _invalid_items(items):
        if isinstance(items, list) and items and all(isinstance(item, dict) for item in items):
            return None
        return jsonify({
            'success': False,
            'message': 'Validation failed',
            'errors': {'items': ['Items must be a non-empty list of item objects']}
        }), 400

    def _server_error(message, error):
        logger.error(f"{message}: {error}")
        return jsonify({
            'success': False,
            'message': message,
            'errors': {'general': [str(error)]}
        }), 500

    def _adjust_stock(tenant_id, items, direction):
        """Apply item quantities to product stock; direction is +1 on receive, -1 on reversal"""
        for item in items:
            product_id = item.get('productId')
            if not product_id or not ModelValidator.validate_object_id(product_id):
                continue
            mongo.db.products.update_one(
                {'_id': ObjectId(product_id), 'tenantId': tenant_id},
                {
                    '$inc': {'stock': direction * to_amount(item.get('quantity'))},
                    '$set': {'updatedAt': datetime.utcnow()}
                }
            )

    @purchases_bp.route('', methods=['GET'])
    def get_purchases():
        try:
            tenant_id = get_tenant_id()
            if not tenant_id:
                return _tenant_missing()

            purchases = mongo.db.purchases.find({'tenantId': tenant_id}).sort('createdAt', -1)
            return jsonify([serialize_doc(purchase) for purchase in purchases])

        except Exception as e:
            return _server_error('Failed to fetch purchases', e)

    @purchases_bp.route('/summary/stats', methods=['GET'])
    def get_purchase_summary():
        try:
            tenant_id = get_tenant_id()
            if not tenant_id:
                return _tenant_missing()

            pipeline = [
                {'$match': {'tenantId': tenant_id}},
                {'$group': {
                    '_id': None,
                    'totalPurchases': {'$sum': 1},
                    'totalAmount': {'$sum': '$totalAmount'},
                    'totalItems': {'$sum': {'$size': '$items'}}
                }}
            ]
            summary = list(mongo.db.purchases.aggregate(pipeline))
            if not summary:
                return jsonify({'totalPurchases': 0, 'totalAmount': 0, 'totalItems': 0})

            result = summary[0]
            result.pop('_id', None)
            return jsonify(result)

        except Exception as e:
            return _server_error('Failed to fetch purchase summary', e)

    @purchases_bp.route('/<purchase_id>', methods=['GET'])
    def get_purchase(purchase_id):
        try:
            tenant_id = get_tenant_id()
            if not tenant_id:
                return _tenant_missing()
            if not ModelValidator.validate_object_id(purchase_id):
                return _not_found()

            purchase = mongo.db.purchases.find_one({'_id': ObjectId(purchase_id), 'tenantId': tenant_id})
            if not purchase:
                return _not_found()

            return jsonify(serialize_doc(purchase))

        except Exception as e:
            return _server_error('Failed to fetch purchase', e)

    @purchases_bp.route('', methods=['POST'])
    def create_purchase():
        try:
            tenant_id = get_tenant_id()
            if not tenant_id:
                return _tenant_missing()

            data = request.get_json(silent=True) or {}
            items = data.get('items')
            invalid = _invalid_items(items)
            if invalid:
                return invalid

            raw_payment = data.get('paymentMethod')
            if raw_payment and not validate_payment_method(raw_payment):
                return jsonify({
                    'success': False,
                    'message': 'Invalid payment method',
                    'errors': {'paymentMethod': ['Unrecognized payment method']}
                }), 400
            payment_method = normalize_payment_method(raw_payment) if raw_payment else DEFAULT_PAYMENT_METHOD

            last_purchase = mongo.db.purchases.find_one({'tenantId': tenant_id}, sort=[('createdAt', -1)])

            now = datetime.utcnow()
            purchase_items = [build_purchase_item(item) for item in items]
            purchase = {
                'tenantId': tenant_id,
                'purchaseNumber': next_purchase_number(last_purchase),
                'items': purchase_items,
                'totalAmount': to_amount(data.get('totalAmount')),
                'supplierName': data.get('supplierName') or '',
                'paymentMethod': payment_method,
                'note': data.get('note') or '',
                'status': 'completed',
                'createdAt': now,
                'updatedAt': now,
            }

            mongo.db.purchases.insert_one(purchase)
            _adjust_stock(tenant_id, purchase_items, 1)
            logger.info(f"Purchase {purchase['purchaseNumber']} created for tenant {tenant_id}")

            response = serialize_doc(purchase)
            response['message'] = 'Purchase created successfully'
            return jsonify(response), 201

        except Exception as e:
            return _server_error('Failed to create purchase', e)

    @purchases_bp.route('/<purchase_id>', methods=['PUT'])
    def update_purchase(purchase_id):
        try:
            tenant_id = get_tenant_id()
            if not tenant_id:
                return _tenant_missing()
            if not ModelValidator.validate_object_id(purchase_id):
                return _not_found()

            query = {'_id': ObjectId(purchase_id), 'tenantId': tenant_id}
            if not mongo.db.purchases.find_one(query, {'_id': 1}):
                return _not_found()

            data = request.get_json(silent=True) or {}
            update_data = {'updatedAt': datetime.utcnow()}
            if 'items' in data:
                invalid = _invalid_items(data['items'])
                if invalid:
                    return invalid
                update_data['items'] = [build_purchase_item(item) for item in data['items']]
            if data.get('totalAmount') is not None:
                update_data['totalAmount'] = to_amount(data['totalAmount'])
            if 'note' in data:
                update_data['note'] = data['note']
            if 'supplierName' in data:
                update_data['supplierName'] = data['supplierName']
            if data.get('paymentMethod'):
                if not validate_payment_method(data['paymentMethod']):
                    return jsonify({
                        'success': False,
                        'message': 'Invalid payment method',
                        'errors': {'paymentMethod': ['Unrecognized payment method']}
                    }), 400
                update_data['paymentMethod'] = normalize_payment_method(data['paymentMethod'])
            if data.get('status'):
                update_data['status'] = data['status']

            mongo.db.purchases.update_one(query, {'$set': update_data})
            return jsonify({'success': True, 'message': 'Purchase updated successfully'})

        except Exception as e:
            return _server_error('Failed to update purchase', e)

    @purchases_bp.route('/<purchase_id>', methods=['DELETE'])
    def delete_purchase(purchase_id):
        try:
            tenant_id = get_tenant_id()
            if not tenant_id:
                return _tenant_missing()
            if not ModelValidator.validate_object_id(purchase_id):
                return _not_found()

            query = {'_id': ObjectId(purchase_id), 'tenantId': tenant_id}
            purchase = mongo.db.purchases.find_one(query)
            if not purchase:
                return _not_found()

            _adjust_stock(tenant_id, purchase.get('items') or [], -1)
            mongo.db.purchases.delete_one(query)

            return jsonify({'success': True, 'message': 'Purchase deleted successfully'})

        except Exception as e:
            return _server_error('Failed to delete purchase', e)

    return purchases_bp
