"""Output formatters."""

from .audit_trail import AuditTrailFormatter
from .formatters import (
    JSONFormatter,
    TableFormatter,
    format_market_cap,
    format_money,
    format_multiplier,
    format_percent_change,
)

__all__ = [
    "AuditTrailFormatter",
    "JSONFormatter",
    "TableFormatter",
    "format_market_cap",
    "format_money",
    "format_multiplier",
    "format_percent_change",
]
