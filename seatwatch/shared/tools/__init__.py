# Shared Tools
"""
I/O helpers: secret retrieval, HTTP plumbing, and the Slack client.
"""

from seatwatch.shared.tools.http import create_client, parse_json, raise_for_status, send_request
from seatwatch.shared.tools.secrets import Secrets, fetch_secrets, load_local_secrets
from seatwatch.shared.tools.slack import SlackClient

__all__ = [
    # HTTP
    "create_client",
    "parse_json",
    "raise_for_status",
    "send_request",
    # Secrets
    "Secrets",
    "fetch_secrets",
    "load_local_secrets",
    # Slack
    "SlackClient",
]
