from flask import Flask, jsonify
from flask_cors import CORS
from flask_pymongo import PyMongo
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from datetime import datetime
from bson import ObjectId
import logging

from storefront_backend.config import environment

# Import blueprints
from storefront_backend.blueprints.profit_loss import init_profit_loss_blueprint
from storefront_backend.blueprints.expenses import init_expenses_blueprint
from storefront_backend.blueprints.income import init_income_blueprint
from storefront_backend.blueprints.purchases import init_purchases_blueprint

# Import database models
from storefront_backend.models import DatabaseInitializer

logger = logging.getLogger(__name__)


# Helper function to convert ObjectId / datetime values for JSON responses
def serialize_doc(doc):
    if not doc:
        return doc

    # Make a copy to avoid modifying the original
    if isinstance(doc, dict):
        doc = doc.copy()

    # Handle _id field
    if '_id' in doc:
        doc['id'] = str(doc['_id'])
        del doc['_id']

    for key, value in list(doc.items()):
        doc[key] = _serialize_value(value)

    return doc


def _serialize_value(value):
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat() + 'Z'
    if isinstance(value, dict):
        return serialize_doc(value)
    if isinstance(value, list):
        return [_serialize_value(item) for item in value]
    return value


def create_app(test_config=None, mongo=None):
    """
    Build the storefront backend application.

    Args:
        test_config: Optional dict of config overrides
        mongo: Optional pre-built Mongo handle exposing ``.db`` (tests pass a mongomock wrapper)
    """
    app = Flask(__name__)

    # Configuration
    app.config['SECRET_KEY'] = environment.SECRET_KEY
    app.config['MONGO_URI'] = environment.MONGO_URI
    app.config['INIT_DATABASE'] = environment.INIT_DATABASE
    app.config['COST_ESTIMATE_RATIO'] = environment.COST_ESTIMATE_RATIO
    app.config['REPORT_FETCH_WORKERS'] = environment.REPORT_FETCH_WORKERS
    app.config['REPORT_FETCH_TIMEOUT'] = environment.REPORT_FETCH_TIMEOUT
    app.config['LOG_LEVEL'] = environment.LOG_LEVEL
    if test_config:
        app.config.update(test_config)

    logging.basicConfig(
        level=app.config['LOG_LEVEL'],
        format='%(asctime)s %(levelname)s [%(name)s] %(message)s'
    )

    # Initialize extensions
    CORS(app, origins=environment.CORS_ORIGINS)
    if mongo is None:
        mongo = PyMongo(app)
    app.mongo = mongo

    limiter = Limiter(
        app=app,
        key_func=get_remote_address,
        default_limits=[limit.strip() for limit in environment.RATELIMIT_DEFAULT.split(';') if limit.strip()],
        storage_uri=environment.RATELIMIT_STORAGE_URI,
    )
    app.limiter = limiter

    # Initialize database indexes on startup
    if app.config['INIT_DATABASE']:
        with app.app_context():
            db_results = DatabaseInitializer(mongo.db).initialize_collections()
            if db_results['created']:
                logger.info(f"Created {len(db_results['created'])} new collections")
            if db_results['errors']:
                logger.warning(f"{len(db_results['errors'])} errors during database initialization")

    # Initialize and register blueprints
    app.register_blueprint(init_profit_loss_blueprint(mongo, app.config))
    app.register_blueprint(init_expenses_blueprint(mongo, serialize_doc))
    app.register_blueprint(init_income_blueprint(mongo, serialize_doc))
    app.register_blueprint(init_purchases_blueprint(mongo, serialize_doc))

    # Health check endpoint
    @app.route('/health', methods=['GET'])
    def health_check():
        return jsonify({
            'success': True,
            'message': 'Storefront Backend is running',
            'timestamp': datetime.utcnow().isoformat() + 'Z',
            'version': '1.0.0'
        })

    # Error handlers
    @app.errorhandler(404)
    def not_found(error):
        return jsonify({
            'success': False,
            'message': 'Endpoint not found',
            'error': 'The requested resource was not found on this server.'
        }), 404

    @app.errorhandler(500)
    def internal_error(error):
        return jsonify({
            'success': False,
            'message': 'Internal server error',
            'error': 'An unexpected error occurred. Please try again later.'
        }), 500

    @app.errorhandler(400)
    def bad_request(error):
        return jsonify({
            'success': False,
            'message': 'Bad request',
            'error': 'The request could not be understood by the server.'
        }), 400

    return app
