from __future__ import annotations

from typing import Any, Iterable, Sequence

from .exceptions import MalformedDescriptorError, VersionNotFoundError
from .http import HttpClient
from .models import LoaderVersion, MinecraftVersion

QUILT_META = "https://meta.quiltmc.org/v3"

MINECRAFT_CHANNELS = ("stable", "snapshot", "custom")
LOADER_CHANNELS = ("stable", "beta", "custom")


class VersionCatalog:
    """Read-only client for the Quilt metadata version lists."""

    def __init__(self, http_client: HttpClient | None = None, meta_url: str = QUILT_META) -> None:
        self.http_client = http_client or HttpClient()
        self.meta_url = meta_url.rstrip("/")

    def fetch_game_versions(self) -> list[MinecraftVersion]:
        entries = self._get_list(f"{self.meta_url}/versions/game")
        return [MinecraftVersion.from_dict(entry) for entry in entries]

    def fetch_loader_versions(self) -> list[LoaderVersion]:
        entries = self._get_list(f"{self.meta_url}/versions/loader")
        return [LoaderVersion.from_dict(entry) for entry in entries]

    def _get_list(self, url: str) -> list[dict[str, Any]]:
        payload = self.http_client.get_json(url)
        if not isinstance(payload, list):
            raise MalformedDescriptorError("<root>", f"Expected a JSON array from {url}.")
        for entry in payload:
            if not isinstance(entry, dict):
                raise MalformedDescriptorError(
                    "<entry>", f"Expected JSON objects in the array from {url}."
                )
        return payload


def select_minecraft_version(
    versions: Sequence[MinecraftVersion], channel: str = "stable", requested: str | None = None
) -> MinecraftVersion:
    if channel == "stable":
        return _first(versions, lambda v: v.stable, "latest stable Minecraft version")
    if channel == "snapshot":
        return _first(versions, lambda v: not v.stable, "latest Minecraft snapshot")
    if channel == "custom":
        if not requested:
            raise VersionNotFoundError("", "A custom Minecraft version must be named.")
        return _first(
            versions,
            lambda v: v.version == requested,
            requested,
            message=f"Minecraft version '{requested}' is not available for Quilt.",
        )
    raise ValueError(f"Unknown Minecraft version channel '{channel}'.")


def select_loader_version(
    versions: Sequence[LoaderVersion], channel: str = "stable", requested: str | None = None
) -> LoaderVersion:
    if channel == "stable":
        return _first(versions, lambda v: v.is_stable, "latest stable Quilt Loader version")
    if channel == "beta":
        return _first(versions, lambda v: not v.is_stable, "latest Quilt Loader beta")
    if channel == "custom":
        if not requested:
            raise VersionNotFoundError("", "A custom loader version must be named.")
        return _first(
            versions,
            lambda v: v.version == requested,
            requested,
            message=f"Quilt Loader version '{requested}' was not found.",
        )
    raise ValueError(f"Unknown loader version channel '{channel}'.")


def visible_minecraft_versions(
    versions: Iterable[MinecraftVersion], show_snapshots: bool = False
) -> list[MinecraftVersion]:
    return [v for v in versions if show_snapshots or v.stable]


def visible_loader_versions(
    versions: Iterable[LoaderVersion], show_betas: bool = False
) -> list[LoaderVersion]:
    return [v for v in versions if show_betas or v.is_stable]


def _first(versions, predicate, identifier: str, message: str | None = None):
    for version in versions:
        if predicate(version):
            return version
    raise VersionNotFoundError(identifier, message or f"No {identifier} was found.")
