#!/usr/bin/env python3
"""Purge expired sessions.

Expired sessions are also removed lazily when a request presents one, and on
each login unless SWEEP_EXPIRED_SESSIONS_ON_LOGIN is off. This script covers
the rows nobody touches again. Run it from cron, e.g. hourly:

    0 * * * * cd /srv/boxmas && python scripts/cleanup_sessions.py
"""

import asyncio
from datetime import datetime, timezone
import os
import sys

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.auth.session import SessionStore
from app.config import get_settings
from app.database import build_engine, build_session_factory
from app.logging_config import get_logger, log_error, setup_logging


async def cleanup_expired_sessions(session_factory, now: datetime) -> int:
    """Delete every session whose expiry is at or before ``now`` and return the count."""
    async with session_factory() as db:
        return await SessionStore(db).delete_expired_before(now)


async def main() -> int:
    settings = get_settings()
    setup_logging(settings.log_level)
    logger = get_logger()

    engine = build_engine(settings)
    try:
        now = datetime.now(timezone.utc)
        deleted = await cleanup_expired_sessions(build_session_factory(engine), now)
    except Exception as e:
        log_error(e, context="session_cleanup")
        return 1
    finally:
        await engine.dispose()

    logger.info(f"Session cleanup removed {deleted} expired session(s)")
    print(f"Removed {deleted} expired session(s)")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
