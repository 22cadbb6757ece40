"""
Integration tests for the inactive license check.

These tests run the real adapters, Slack client, and orchestrator against
faked vendor APIs to cover a complete scheduled run.
"""
