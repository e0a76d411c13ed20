"""Audit trail formatter.

Shows every upstream call made while answering a command: which source,
which endpoint, whether it succeeded and how long it took. Useful to see
which fallback actually produced a record.
"""

import logging
from typing import Any

from ..core.models import AuditEntry

logger = logging.getLogger(__name__)


class AuditTrailFormatter:
    """Formats audit entries for transparency."""

    def format_summary(self, entries: list[AuditEntry]) -> str:
        """
        Format a per-source summary followed by every call.

        Args:
            entries: Audit entries, in call order

        Returns:
            Formatted string summary
        """
        lines = []
        lines.append("=" * 70)
        lines.append("AUDIT TRAIL SUMMARY")
        lines.append("=" * 70)
        lines.append("")

        lines.append("DATA SOURCES CONSULTED")
        lines.append("-" * 40)
        if not entries:
            lines.append("  No upstream calls were made (cached or invalid input)")
        for source, info in self._summarize_sources(entries).items():
            status = "OK" if info["success_count"] > 0 else "FAILED"
            lines.append(f"  {source}: {status}")
            lines.append(f"    - Calls: {info['total_count']} ({info['success_count']} successful)")
            for endpoint in info["endpoints"][:3]:
                lines.append(f"    - Endpoint: {endpoint}")
        lines.append("")

        lines.append("DETAILED CALLS")
        lines.append("-" * 40)
        for entry in sorted(entries, key=lambda e: e.timestamp):
            status = "OK" if entry.success else "FAILED"
            duration = f"{entry.duration_ms}ms" if entry.duration_ms is not None else "N/A"
            lines.append(f"  [{entry.timestamp.strftime('%H:%M:%S')}] {entry.source.value} {entry.action}")
            lines.append(f"    Endpoint: {entry.endpoint or 'N/A'}")
            lines.append(f"    Status: {status}, Duration: {duration}")
            if entry.error_message:
                lines.append(f"    Error: {entry.error_message}")
            if entry.notes:
                lines.append(f"    Notes: {entry.notes}")
        lines.append("")

        lines.append("=" * 70)
        lines.append("END OF AUDIT TRAIL")
        lines.append("=" * 70)

        return "\n".join(lines)

    def _summarize_sources(self, entries: list[AuditEntry]) -> dict[str, Any]:
        """Summarize source usage from audit entries."""
        summary: dict[str, dict[str, Any]] = {}

        for entry in entries:
            source_name = entry.source.value
            if source_name not in summary:
                summary[source_name] = {
                    "total_count": 0,
                    "success_count": 0,
                    "endpoints": [],
                }

            summary[source_name]["total_count"] += 1
            if entry.success:
                summary[source_name]["success_count"] += 1
            if entry.endpoint and entry.endpoint not in summary[source_name]["endpoints"]:
                summary[source_name]["endpoints"].append(entry.endpoint)

        return summary
