"""Version-gated fixes applied to launch descriptors fetched from meta.

Each entry in ``PATCHES`` pairs a predicate on the loader version with a
transform on the descriptor. Transforms receive a deep copy and must be
idempotent.
"""
from __future__ import annotations

from typing import Any, Callable
import copy
import logging

from .models import LoaderVersion
from .utils import SemanticVersion

logger = logging.getLogger(__name__)

Descriptor = dict[str, Any]
Predicate = Callable[[LoaderVersion], bool]
Transform = Callable[[Descriptor], Descriptor]

HASHED_MAPPINGS_PREFIX = "org.quiltmc:hashed"


def _older_than(version: str) -> Predicate:
    bound = SemanticVersion.parse(version)
    return lambda loader: loader.semver < bound


def _drop_hashed_mappings(descriptor: Descriptor) -> Descriptor:
    # Loader older than 0.17.7 fails to remap when both hashed and intermediary are present.
    libraries = descriptor.get("libraries")
    if not isinstance(libraries, list):
        return descriptor
    kept = [
        entry
        for entry in libraries
        if not (
            isinstance(entry, dict)
            and str(entry.get("name", "")).startswith(HASHED_MAPPINGS_PREFIX)
        )
    ]
    if len(kept) != len(libraries):
        logger.debug("Dropped %d hashed mapping libraries", len(libraries) - len(kept))
    descriptor["libraries"] = kept
    return descriptor


PATCHES: list[tuple[Predicate, Transform]] = [
    (_older_than("0.17.7"), _drop_hashed_mappings),
]


def patch(descriptor: Descriptor, loader_version: LoaderVersion) -> Descriptor:
    patched = copy.deepcopy(descriptor)
    if not isinstance(patched, dict):
        return patched
    for applies, transform in PATCHES:
        if applies(loader_version):
            patched = transform(patched)
    return patched
