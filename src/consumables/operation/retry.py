"""Optimistic-concurrency retry for ledger commands.

Every aggregate save compares the stored version with the loaded one, so a
settlement computed against stale counters fails with
``ExpectedVersionError`` instead of overwriting a concurrent update. The
command is then re-run from a fresh load.
"""

import structlog
from protean.exceptions import ExpectedVersionError
from protean.utils.globals import current_domain

from consumables.settings import get_settings

logger = structlog.get_logger(__name__)


def process_with_retry(command, attempts: int | None = None):
    """Process a command, retrying on version conflicts."""
    attempts = attempts or get_settings().settlement_retries

    for attempt in range(1, attempts + 1):
        try:
            return current_domain.process(command, asynchronous=False)
        except ExpectedVersionError:
            if attempt >= attempts:
                logger.error(
                    "Version conflict persisted, giving up",
                    command=command.__class__.__name__,
                    attempts=attempts,
                )
                raise
            logger.warning(
                "Version conflict, retrying command",
                command=command.__class__.__name__,
                attempt=attempt,
            )
