"""Notification delivery service package.

Broker-backed notification publishing and consumption, per-user delivery
preferences, bounded notification history and live server-sent event streams.
"""

__version__ = "0.1.0"
