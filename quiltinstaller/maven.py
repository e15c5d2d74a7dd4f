from __future__ import annotations

from dataclasses import dataclass

from .exceptions import MalformedDescriptorError


@dataclass(frozen=True, slots=True)
class MavenArtifact:
    download_url: str
    relative_path: str


def resolve_coordinate(coordinate: str, repository_url: str) -> MavenArtifact:
    """Map ``group:artifact:version`` onto a repository URL and a local path.

    Only the first two colons are significant; everything after the second one
    is taken as the version. Classifiers are not supported.
    """
    parts = coordinate.split(":", 2)
    if len(parts) != 3 or not all(parts):
        raise MalformedDescriptorError(
            "name", f"'{coordinate}' is not a group:artifact:version coordinate."
        )
    group, artifact, version = parts
    relative_path = "/".join(
        [*group.split("."), artifact, version, f"{artifact}-{version}.jar"]
    )
    base = repository_url if repository_url.endswith("/") else repository_url + "/"
    return MavenArtifact(download_url=base + relative_path, relative_path=relative_path)
