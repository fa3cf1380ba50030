"""
Package: webhook_redelivery
Description: Reconciliation of failed GitHub webhook deliveries.

Finds webhook deliveries that were never acknowledged since the last
checkpoint and asks GitHub to redeliver each affected notification once.
"""

__version__ = "0.1.0"
