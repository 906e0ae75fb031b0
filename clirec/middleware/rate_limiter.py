"""
Rate limiting configuration.

Applies per-blueprint rate limits using Flask-Limiter.
The Limiter instance is created in clirec/__init__.py with no default limits;
this module applies granular limits per route category.

Usage:
    from clirec.middleware.rate_limiter import init_rate_limits
    init_rate_limits(app, limiter)
"""

import logging

logger = logging.getLogger(__name__)

WRITE_LIMIT = "60/minute"
READ_LIMIT = "200/minute"


def init_rate_limits(app, limiter):
    """
    Apply rate limits to API blueprints.

    Limits (per remote IP):
        - Auth endpoints:         AUTH_RATE_LIMIT (login brute-force guard)
        - Requirement endpoints:  60/minute
        - Admin endpoints:        200/minute
        - Health check:           exempt

    Rate limiting is disabled in testing mode.
    """
    if app.config.get("TESTING") or not app.config.get("RATELIMIT_ENABLED", True):
        app.logger.info("Rate limiter disabled")
        return

    auth_limit = app.config.get("AUTH_RATE_LIMIT", "20/minute")
    bp = app.blueprints.get("auth")
    if bp:
        limiter.limit(auth_limit)(bp)

    bp = app.blueprints.get("requirements")
    if bp:
        limiter.limit(WRITE_LIMIT)(bp)

    bp = app.blueprints.get("admin")
    if bp:
        limiter.limit(READ_LIMIT)(bp)

    bp = app.blueprints.get("health")
    if bp:
        limiter.exempt(bp)

    app.logger.info(
        "Rate limiter configured: auth %s, requirements %s, admin %s",
        auth_limit, WRITE_LIMIT, READ_LIMIT,
    )
