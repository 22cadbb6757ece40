"""
FastAPI Server for Local Development

Manual trigger for the inactive license check. Credentials come from
environment variables (CURSOR_API_KEY, GITHUB_TOKEN, GITHUB_ORG,
SLACK_BOT_TOKEN, SLACK_USER_ID) instead of Secrets Manager.

Run:
    python -m scripts.local_api_server
"""

import os
from datetime import datetime, timezone

import structlog
from fastapi import FastAPI, HTTPException

from seatwatch.runner import run_check
from seatwatch.shared.config import load_settings
from seatwatch.shared.exceptions import ConfigError
from seatwatch.shared.tools.secrets import load_local_secrets
from seatwatch.sources import SOURCE_NAMES

# Configure logging
structlog.configure(
    processors=[
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

log = structlog.get_logger()

app = FastAPI(
    title="Seat Watch",
    description="Local development server for the inactive license check",
)


async def _check(only_sources: list[str] | None = None) -> dict:
    try:
        settings = load_settings()
        secrets = load_local_secrets(settings)
        summary = await run_check(settings, secrets, only_sources=only_sources)
    except ConfigError as e:
        log.error("local_check_config_invalid", error=str(e))
        raise HTTPException(status_code=500, detail=str(e)) from e

    return summary.to_response()


# =====================================================
# API Endpoints
# =====================================================


@app.get("/")
async def root():
    """List available endpoints."""
    return {
        "message": "Seat Watch - Local Server",
        "endpoints": {
            "GET /": "This help message",
            "GET /health": "Health check endpoint",
            "POST /check-inactive-users": "Check all enabled sources",
            "POST /check-inactive-users/{source}": f"Check one source ({', '.join(SOURCE_NAMES)})",
        },
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}


@app.post("/check-inactive-users")
async def check_all_sources():
    """Run the check for every enabled source."""
    return await _check()


@app.post("/check-inactive-users/{source}")
async def check_one_source(source: str):
    """Run the check for a single source."""
    if source not in SOURCE_NAMES:
        raise HTTPException(status_code=404, detail=f"Unknown source '{source}'")
    return await _check([source])


if __name__ == "__main__":
    import uvicorn

    port = int(os.environ.get("PORT", "3000"))
    log.info("starting_local_api_server", host="127.0.0.1", port=port)
    uvicorn.run(app, host="127.0.0.1", port=port, log_level="info")
