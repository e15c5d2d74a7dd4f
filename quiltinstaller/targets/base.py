from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any
import urllib.parse

from ..catalog import QUILT_META
from ..exceptions import MalformedDescriptorError
from ..http import HttpClient
from ..models import InstallResult, LoaderVersion, MinecraftVersion
from ..utils import CancellationToken, check_cancelled


class InstallTarget(ABC):
    target_id: str
    descriptor_kind: str

    def __init__(self, meta_url: str = QUILT_META) -> None:
        self.meta_url = meta_url.rstrip("/")

    def descriptor_url(
        self, minecraft_version: MinecraftVersion, loader_version: LoaderVersion
    ) -> str:
        game = urllib.parse.quote(minecraft_version.version, safe="")
        loader = urllib.parse.quote(loader_version.version, safe="")
        return f"{self.meta_url}/versions/loader/{game}/{loader}/{self.descriptor_kind}/json"

    def fetch_descriptor(
        self,
        http_client: HttpClient,
        minecraft_version: MinecraftVersion,
        loader_version: LoaderVersion,
        cancel_token: CancellationToken | None = None,
    ) -> dict[str, Any]:
        check_cancelled(cancel_token)
        url = self.descriptor_url(minecraft_version, loader_version)
        descriptor = http_client.get_json(url)
        if not isinstance(descriptor, dict):
            raise MalformedDescriptorError(
                "<root>", f"Launch descriptor from {url} is not a JSON object."
            )
        return descriptor

    @abstractmethod
    def install(
        self,
        request: Any,
        http_client: HttpClient,
        cancel_token: CancellationToken | None = None,
    ) -> InstallResult:
        raise NotImplementedError
