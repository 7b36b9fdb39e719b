"""Partitioning of advisory builds by artifact type."""

import logging

from .models import Build, BuildType

logger = logging.getLogger(__name__)


def classify_builds(builds: list[Build]) -> dict[BuildType, list[Build]]:
    """Group builds by their declared type.

    Relative order is preserved within each group. Builds without a type
    are logged and left out of every group.
    """
    classified: dict[BuildType, list[Build]] = {}

    for build in builds:
        if build.type is None:
            logger.warning("Build %s (%s) has no type, skipping", build.id, build.nvr)
            continue
        classified.setdefault(build.type, []).append(build)

    return classified
