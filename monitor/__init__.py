"""
Monitor package for change detection and notification.

This package contains:
- Snapshot differ
- Webhook notifier
- Poll cycle orchestration
"""

__version__ = "1.0.0"
