"""
CheckInactiveUsers Lambda Handler

Main entry point for the scheduled inactive license check.

Trigger: EventBridge Scheduled Rule (e.g., cron(0 6 ? * MON *) for weekly)
Output: Slack warning DMs and one admin removal report

Flow:
1. Parse scheduled event (optional dry_run / sources overrides)
2. Load and validate settings and secrets (ConfigError is fatal)
3. Build enabled usage sources and, if notifications are on, the Slack client
4. Run the orchestrator
5. Return summary counters
"""

import asyncio
import json
import logging
from typing import Any

import structlog

from seatwatch.runner import run_check
from seatwatch.shared.config import load_settings
from seatwatch.shared.exceptions import ConfigError
from seatwatch.shared.tools.secrets import fetch_secrets

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

log = structlog.get_logger()


def _parse_scheduled_event(event: dict[str, Any]) -> dict[str, Any]:
    """
    Parse scheduled EventBridge event for optional configuration.

    The scheduled rule can include custom parameters in the detail:
    - dry_run: If true, classify but send nothing to Slack
    - sources: Restrict the run to these source names

    Args:
        event: Lambda event payload

    Returns:
        Configuration dict
    """
    config = {
        "dry_run": False,
        "sources": None,
    }

    detail = event.get("detail", {}) if isinstance(event, dict) else {}
    if isinstance(detail, str):
        try:
            detail = json.loads(detail)
        except json.JSONDecodeError:
            log.warning("scheduled_event_detail_not_json")
            detail = {}

    if isinstance(detail, dict):
        config["dry_run"] = bool(detail.get("dry_run", False))
        sources = detail.get("sources")
        if isinstance(sources, list) and sources:
            config["sources"] = [str(s) for s in sources]

    return config


def lambda_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """
    Main Lambda handler for the scheduled inactive license check.

    Args:
        event: EventBridge scheduled event
        context: Lambda context

    Returns:
        Processing result summary

    Raises:
        ConfigError: Invalid settings or secrets; surfaces as a failed invocation
    """
    config = _parse_scheduled_event(event)

    try:
        overrides = {"enable_notifications": False} if config["dry_run"] else {}
        settings = load_settings(**overrides)
        logging.getLogger().setLevel(settings.log_level)

        log.info(
            "inactive_users_lambda_invoked",
            dry_run=config["dry_run"],
            sources=config["sources"],
            notify_after_days=settings.notify_after_days,
            remove_after_days=settings.remove_after_days,
            enabled_sources=settings.enabled_sources,
        )

        secrets = fetch_secrets(settings)
        summary = asyncio.run(run_check(settings, secrets, only_sources=config["sources"]))
    except ConfigError as e:
        log.error("inactive_users_config_invalid", error=str(e))
        raise

    return {
        "statusCode": 200,
        "body": summary.to_response(),
    }
