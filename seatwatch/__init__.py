"""
Seat Watch

Finds licensed users of developer tools (Cursor, GitHub Copilot) with no
recent activity, warns them over Slack, and reports removal candidates
to an administrator.
"""

__version__ = "0.1.0"
