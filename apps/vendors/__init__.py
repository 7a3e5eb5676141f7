"""Vendors app package.

Catalogue of the photographers, caterers, florists and other vendors whose
services clients add to their dashboards when building a custom wedding.
"""
