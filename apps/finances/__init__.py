"""Finances app package.

This app keeps the payment ledger (one row per charge attempt) and the
payment gateway integrations. Gateways are selected through the
``PAYMENT_GATEWAY_CLASS`` setting.
"""
