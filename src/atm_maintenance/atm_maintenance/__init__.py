"""ATM Maintenance Reports package.

This package is organized by feature modules (reports, users, analytics, storage)
with a thin Flask controller layer, service classes, and a storage layer that
switches between a cloud document store and local key-value files.
"""
