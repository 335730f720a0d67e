import structlog

from bookastay.config import DRY_RUN
from bookastay.db.engine import engine
from bookastay.logging_config import setup_logging
from bookastay.services.sync import run_sync_and_cleanup

# Setup logging
setup_logging()
logger = structlog.get_logger(__name__)


def main() -> None:
    # One pass over every configured calendar feed, then drop past synced stays
    summary = run_sync_and_cleanup(engine, dry_run=DRY_RUN)
    logger.info("one_shot_sync_finished", **summary)


if __name__ == "__main__":
    main()
