from __future__ import annotations
import logging
from typing import List

from .errors import DuplicateDependency, SelfDependency
from .model import Artifact

logger = logging.getLogger(__name__)


def link(artifact: Artifact, *targets: Artifact) -> Artifact:
    """Append `targets` to `artifact.dependencies` in the given order.

    Order is the link order handed to the generator. Each target is checked
    before it is appended, so on error the targets before it stay linked.
    """
    artifact.ensure_mutable()
    for target in targets:
        if target is artifact:
            raise SelfDependency(f"Artifact '{artifact.ident}' cannot depend on itself.", subject=artifact.ident)
        if any(d is target for d in artifact.dependencies):
            raise DuplicateDependency(
                f"Artifact '{artifact.ident}' already depends on '{target.ident}'.",
                subject=artifact.ident,
            )
        artifact.dependencies.append(target)
        logger.debug("link %s -> %s", artifact.ident, target.ident)
    return artifact


def dependency_names(artifact: Artifact) -> List[str]:
    return [d.ident for d in artifact.dependencies]
