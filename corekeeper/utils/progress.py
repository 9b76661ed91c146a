"""
Delivery of progress messages to the host's callback.
"""

import logging

from corekeeper.models.results import ProgressCallback

log = logging.getLogger(__name__)


def report(callback: ProgressCallback | None, success: bool, message: str) -> None:
    """Invokes the host callback; a failing callback never breaks the caller."""
    if callback is None:
        return
    try:
        callback(success, message)
    except Exception as e:
        log.warning(f"Progress callback raised: {e}")
