"""Resolution of builds into SBOM generation targets."""

import logging

from .models import Build, Generation, GenerationTarget, TargetKind
from .tsid import create_unique_generation_id

logger = logging.getLogger(__name__)


def resolve_rpm_builds(builds: list[Build]) -> list[Generation]:
    """Create one generation per RPM build, identified by its build id."""
    generations = []
    for build in builds:
        identifier = str(build.id)
        logger.debug("RPM build %s: using build id %s as identifier", build.nvr, identifier)
        generations.append(
            Generation(
                id=create_unique_generation_id(),
                target=GenerationTarget(TargetKind.RPM, identifier),
            )
        )
    return generations


def resolve_container_builds(
    builds: list[Build], image_digests: dict[int, str]
) -> list[Generation]:
    """Create generations for container builds that have an image digest.

    Args:
        builds: Container builds in advisory order.
        image_digests: Mapping of build id to pinned image reference, as
            returned by the digest source.

    Returns:
        Generations for every build with a non-empty digest. Builds without
        one are logged and dropped.
    """
    generations = []
    for build in builds:
        digest = image_digests.get(build.id)
        if not digest:
            logger.warning(
                "No image digest found for container build %s (%s), skipping",
                build.id,
                build.nvr,
            )
            continue

        logger.debug("Container build %s: using image digest %s as identifier", build.nvr, digest)
        generations.append(
            Generation(
                id=create_unique_generation_id(),
                target=GenerationTarget(TargetKind.CONTAINER, digest),
            )
        )
    return generations
