from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

from .exceptions import MalformedDescriptorError
from .utils import SemanticVersion, ensure_safe_name_component, is_stable_version


@dataclass(frozen=True, slots=True)
class MinecraftVersion:
    version: str
    stable: bool = field(default=False, compare=False)

    def __str__(self) -> str:
        return self.version

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> MinecraftVersion:
        for key in ("version", "stable"):
            if key not in data:
                raise MalformedDescriptorError(
                    key, f"Game version entry is missing '{key}': {data!r}"
                )
        return cls(version=str(data["version"]), stable=bool(data["stable"]))


@dataclass(frozen=True, slots=True)
class LoaderVersion:
    version: str
    separator: str = "."
    build: int = 0
    maven: str = ""

    def __str__(self) -> str:
        return self.version

    @property
    def semver(self) -> SemanticVersion:
        return SemanticVersion.parse(self.version)

    @property
    def is_stable(self) -> bool:
        return is_stable_version(self.version)

    def __lt__(self, other: LoaderVersion) -> bool:
        return self.semver < other.semver

    def __le__(self, other: LoaderVersion) -> bool:
        return self.semver <= other.semver

    def __gt__(self, other: LoaderVersion) -> bool:
        return self.semver > other.semver

    def __ge__(self, other: LoaderVersion) -> bool:
        return self.semver >= other.semver

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> LoaderVersion:
        for key in ("separator", "build", "maven", "version"):
            if key not in data:
                raise MalformedDescriptorError(
                    key, f"Loader version entry is missing '{key}': {data!r}"
                )
        try:
            build = int(data["build"])
        except (TypeError, ValueError) as exc:
            raise MalformedDescriptorError(
                "build", f"Loader version entry has a non-numeric build: {data!r}"
            ) from exc
        return cls(
            version=str(data["version"]),
            separator=str(data["separator"]),
            build=build,
            maven=str(data["maven"]),
        )


@dataclass(slots=True)
class ClientInstallationRequest:
    minecraft_version: MinecraftVersion
    loader_version: LoaderVersion
    install_dir: Path
    generate_profile: bool = True


@dataclass(slots=True)
class ServerInstallationRequest:
    minecraft_version: MinecraftVersion
    loader_version: LoaderVersion
    install_dir: Path
    download_jar: bool = False
    generate_script: bool = True


def profile_name(minecraft_version: MinecraftVersion, loader_version: LoaderVersion) -> str:
    game = ensure_safe_name_component(minecraft_version.version, "Minecraft version")
    loader = ensure_safe_name_component(loader_version.version, "Loader version")
    return f"quilt-loader-{loader}-{game}"


@dataclass(frozen=True, slots=True)
class LibraryDescriptor:
    name: str
    url: str


@dataclass(slots=True)
class ServerLaunchDescriptor:
    launcher_main_class: str
    libraries: list[LibraryDescriptor]

    @classmethod
    def from_dict(cls, data: Any) -> ServerLaunchDescriptor:
        if not isinstance(data, Mapping):
            raise MalformedDescriptorError(
                "<root>", "Server launch descriptor is not a JSON object."
            )
        libraries = data.get("libraries")
        if not isinstance(libraries, list):
            raise MalformedDescriptorError("libraries")
        main_class = data.get("launcherMainClass")
        if not isinstance(main_class, str) or not main_class.strip():
            raise MalformedDescriptorError("launcherMainClass")

        parsed: list[LibraryDescriptor] = []
        for idx, entry in enumerate(libraries):
            if not isinstance(entry, Mapping):
                raise MalformedDescriptorError(
                    f"libraries[{idx}]", f"Library entry {idx} is not a JSON object."
                )
            for key in ("name", "url"):
                value = entry.get(key)
                if not isinstance(value, str) or not value:
                    raise MalformedDescriptorError(f"libraries[{idx}].{key}")
            parsed.append(LibraryDescriptor(name=entry["name"], url=entry["url"]))
        return cls(launcher_main_class=main_class, libraries=parsed)


@dataclass(slots=True)
class InstallResult:
    target: str
    install_dir: Path
    profile_name: str | None = None
    launch_jar: Path | None = None
    written_files: list[Path] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)
