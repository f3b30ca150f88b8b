"""
ordersync - order synchronization and local-cache reconciliation engine.

Keeps a local, durable view of order line items consistent with a remote
order-management backend.
"""

__version__ = "0.1.0"
