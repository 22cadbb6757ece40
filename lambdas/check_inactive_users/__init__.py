"""
CheckInactiveUsers Lambda

Periodic Lambda triggered by EventBridge Scheduled Rule to find licensed
users with no recent activity in Cursor and GitHub Copilot.

Components:
- handler: Lambda entry point for scheduled trigger

Flow:
1. Triggered by scheduled EventBridge rule (e.g., weekly)
2. Load settings and secrets
3. Classify each enabled source into notify / remove tiers
4. Warn notify-tier users over Slack, report remove-tier users to the admin
5. Return summary counters
"""

from lambdas.check_inactive_users.handler import lambda_handler

__all__ = [
    "lambda_handler",
]
