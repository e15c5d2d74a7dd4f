from __future__ import annotations

from .base import InstallTarget
from .client import ClientInstallTarget
from .server import ServerInstallTarget


def create_target_registry(
    meta_url: str, max_workers: int
) -> dict[str, InstallTarget]:
    targets: list[InstallTarget] = [
        ClientInstallTarget(meta_url),
        ServerInstallTarget(meta_url, max_workers=max_workers),
    ]
    return {target.target_id: target for target in targets}


__all__ = [
    "ClientInstallTarget",
    "InstallTarget",
    "ServerInstallTarget",
    "create_target_registry",
]
