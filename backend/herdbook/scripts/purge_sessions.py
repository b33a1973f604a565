"""
Delete expired sessions. Run from cron, e.g.:

  0 * * * * cd /path/to/herdbook/backend && .venv/bin/python -m herdbook.scripts.purge_sessions
"""

import logging
import sys

from sqlmodel import Session

from herdbook.database import engine, init_db
from herdbook.services.sessions import purge_expired_sessions

logger = logging.getLogger(__name__)


def main() -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    init_db()
    with Session(engine) as session:
        try:
            deleted = purge_expired_sessions(session)
        except Exception as e:
            logger.exception("Session purge failed: %s", e)
            return 1
    logger.info("Session purge completed: sessions_deleted=%s", deleted)
    return 0


if __name__ == "__main__":
    sys.exit(main())
