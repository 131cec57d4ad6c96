"""Core module - shared models, storage and observability for the linen audit engine.

This module contains the canonical data models, the snapshot store,
report export, logging, metrics and configuration. Parsing lives in /extraction/,
order/delivery matching in /reconciliation/, history analytics in /analytics/.
"""

__version__ = "1.0.0"
