"""Bookings app package.

This app owns wedding date holds and the client dashboards attached to
them. The hold manager in ``services.py`` guarantees that at most one
active booking exists per calendar date, relying on a unique index on
``event_date`` and row locks taken inside a single transaction.
"""
