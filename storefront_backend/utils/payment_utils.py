"""Payment utilities for normalizing and validating the payment method
recorded on supplier purchases.

- normalize_payment_method(value) -> str | None
- validate_payment_method(value) -> bool

Unknown methods are rejected rather than stored verbatim so purchase
reports can group by a predictable set of values.
"""

from typing import Optional

DEFAULT_PAYMENT_METHOD = 'cash'

# Canonical mappings for payment methods. Keep these stable so database
# values remain predictable.
_PAYMENT_METHOD_MAP = {
	'cash': 'cash',
	'card': 'card',
	'debit_card': 'card',
	'credit_card': 'card',
	'pos': 'card',
	'bank': 'bank',
	'bank_transfer': 'bank',
	'transfer': 'bank',
	'cheque': 'bank',
	'bkash': 'mobile_wallet',
	'nagad': 'mobile_wallet',
	'rocket': 'mobile_wallet',
	'mobile_wallet': 'mobile_wallet',
	'credit': 'credit',
	'due': 'credit',
}


def _normalize_lookup(value: Optional[str], mapping: dict) -> Optional[str]:
	"""Normalize a value using mapping, or return None.

	Case-insensitive; trims whitespace and treats spaces/dashes as underscores.
	"""
	if value is None:
		return None
	key = str(value).strip().lower().replace('-', '_').replace(' ', '_')
	return mapping.get(key)


def normalize_payment_method(value: Optional[str]) -> Optional[str]:
	"""Return a canonical payment method string or None.

	Example: 'Bank Transfer' -> 'bank', 'bKash' -> 'mobile_wallet'
	"""
	return _normalize_lookup(value, _PAYMENT_METHOD_MAP)


def validate_payment_method(value: Optional[str]) -> bool:
	"""Return True if the provided payment method is recognized."""
	return _normalize_lookup(value, _PAYMENT_METHOD_MAP) is not None
