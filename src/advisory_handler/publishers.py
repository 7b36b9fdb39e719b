"""Selection of publishing targets by advisory status."""

import logging

from .config import HandlerConfig
from .models import AdvisoryStatus, Publisher

logger = logging.getLogger(__name__)


def select_publishers(status: AdvisoryStatus, config: HandlerConfig) -> list[Publisher]:
    """Determine which publishers receive SBOMs for an advisory.

    QE advisories go to the build publisher, SHIPPED_LIVE advisories to the
    release publisher. Any other status selects nothing.
    """
    if status == AdvisoryStatus.QE:
        logger.debug("QE advisory: using build publisher %s", config.build_publisher_name)
        return [Publisher(config.build_publisher_name, config.build_publisher_version)]

    if status == AdvisoryStatus.SHIPPED_LIVE:
        logger.debug("SHIPPED_LIVE advisory: using release publisher %s", config.release_publisher_name)
        return [Publisher(config.release_publisher_name, config.release_publisher_version)]

    logger.warning("Unknown advisory status '%s', no publishers selected", status.value)
    return []
