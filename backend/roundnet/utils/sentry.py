import logging
import os
from typing import Optional

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.redis import RedisIntegration

logger = logging.getLogger(__name__)


def sample_rate(env_var: str) -> float:
    """Read a sampling rate in ``[0, 1]``; unset or unparseable means 0."""
    raw = os.getenv(env_var)
    if raw is None or not raw.strip():
        return 0.0
    try:
        rate = float(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r: not a number", env_var, raw)
        return 0.0
    if not 0.0 <= rate <= 1.0:
        clamped = min(max(rate, 0.0), 1.0)
        logger.warning("%s=%r is outside [0, 1]; using %.2f", env_var, raw, clamped)
        return clamped
    return rate


def init_sentry(dsn: Optional[str] = None) -> bool:
    """Report API errors and slow redis calls to Sentry when a DSN is configured.

    Scoreboard channels talk to redis on every request, so the redis
    integration is enabled alongside FastAPI's.
    """
    dsn = dsn or os.getenv("SENTRY_DSN")
    if not dsn:
        logger.info("SENTRY_DSN not provided; error reporting disabled.")
        return False

    environment = (os.getenv("SENTRY_ENVIRONMENT") or "").strip() or None
    sentry_sdk.init(
        dsn=dsn,
        integrations=[FastApiIntegration(), RedisIntegration()],
        environment=environment,
        traces_sample_rate=sample_rate("SENTRY_TRACES_SAMPLE_RATE"),
        profiles_sample_rate=sample_rate("SENTRY_PROFILES_SAMPLE_RATE"),
    )
    logger.info("Sentry enabled for environment %s", environment or "default")
    return True
