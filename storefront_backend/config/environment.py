"""
Environment Configuration for the Storefront Backend

This module provides centralized access to environment variables for:
- Flask / MongoDB connection settings
- Rate limiting and CORS
- Profit & loss report tuning
"""

import os

from dotenv import load_dotenv

load_dotenv()


def _get_float(name, default):
    try:
        return float(os.environ.get(name, default))
    except (TypeError, ValueError):
        return float(default)


def _get_int(name, default):
    try:
        return int(os.environ.get(name, default))
    except (TypeError, ValueError):
        return int(default)


# Flask / MongoDB Configuration
SECRET_KEY = os.environ.get('SECRET_KEY', 'storefront-backend-secret-key')
MONGO_URI = os.environ.get('MONGO_URI', 'mongodb://localhost:27017/storefront')
INIT_DATABASE = os.environ.get('INIT_DATABASE', 'true').lower() in ('1', 'true', 'yes')

# CORS / Rate limiting
CORS_ORIGINS = [origin.strip() for origin in os.environ.get('CORS_ORIGINS', '*').split(',') if origin.strip()]
RATELIMIT_DEFAULT = os.environ.get('RATELIMIT_DEFAULT', '50000 per day;5000 per hour')
RATELIMIT_STORAGE_URI = os.environ.get('RATELIMIT_STORAGE_URI', 'memory://')

# Profit & loss report
# Share of the sale price used as unit cost when a product has no costPrice
COST_ESTIMATE_RATIO = _get_float('COST_ESTIMATE_RATIO', 0.6)
REPORT_FETCH_WORKERS = _get_int('REPORT_FETCH_WORKERS', 4)
REPORT_FETCH_TIMEOUT = _get_float('REPORT_FETCH_TIMEOUT', 30)

# Logging
LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()
