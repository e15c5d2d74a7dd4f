from __future__ import annotations

from typing import Any

from .exceptions import MalformedDescriptorError, VersionNotFoundError
from .http import HttpClient

MOJANG_MANIFEST_URL = "https://piston-meta.mojang.com/mc/game/version_manifest_v2.json"


def resolve_mojang_version(http_client: HttpClient, requested_version: str) -> dict[str, Any]:
    manifest = http_client.get_json(MOJANG_MANIFEST_URL)
    version_url = None
    for version in manifest.get("versions", []):
        if version.get("id") == requested_version:
            version_url = version.get("url")
            break
    if version_url is None:
        raise VersionNotFoundError(
            requested_version,
            f"Minecraft version '{requested_version}' was not found in Mojang metadata.",
        )
    return http_client.get_json(version_url)


def vanilla_server_url(http_client: HttpClient, minecraft_version: str) -> str:
    metadata = resolve_mojang_version(http_client, minecraft_version)
    server = (metadata.get("downloads") or {}).get("server") or {}
    url = server.get("url")
    if not url:
        raise MalformedDescriptorError(
            "downloads.server.url",
            f"Minecraft {minecraft_version} does not publish a server jar.",
        )
    return str(url)
