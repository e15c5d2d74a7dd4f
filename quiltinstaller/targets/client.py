from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any
import json
import logging
import shutil

from ..exceptions import InstallError, InvalidInstallDirError, ProfileStoreError
from ..http import HttpClient
from ..icon import icon_data_uri
from ..models import ClientInstallationRequest, InstallResult, profile_name
from ..patches import patch
from ..utils import CancellationToken, check_cancelled
from .base import InstallTarget

logger = logging.getLogger(__name__)

PROFILE_STORE = "launcher_profiles.json"


def _timestamp() -> str:
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_profile_entry(
    name: str, existing: Any = None, created: str | None = None
) -> dict[str, Any]:
    """Profile entry for the launcher, keeping fields we do not manage."""
    entry: dict[str, Any] = dict(existing) if isinstance(existing, dict) else {}
    entry["name"] = name
    entry["type"] = "custom"
    entry["created"] = created or _timestamp()
    entry["lastVersionId"] = name
    entry["icon"] = icon_data_uri()
    return entry


def merge_profile(document: Any, name: str, created: str | None = None) -> dict[str, Any]:
    """Insert or replace ``profiles[name]`` in a decoded launcher profile store.

    Everything else in ``document`` is left as it is. The store must be an
    object holding a ``profiles`` object; anything else is rejected rather
    than rebuilt, since rebuilding would drop the user's data.
    """
    if not isinstance(document, dict):
        raise ProfileStoreError(f"{PROFILE_STORE} is not a JSON object.")
    profiles = document.get("profiles")
    if not isinstance(profiles, dict):
        raise ProfileStoreError(f"{PROFILE_STORE} has no 'profiles' object.")
    profiles[name] = build_profile_entry(name, profiles.get(name), created=created)
    return document


def update_profile_store(store_path: Path, name: str) -> None:
    # One handle for read and rewrite so the file never disappears in between.
    with store_path.open("r+", encoding="utf-8") as handle:
        try:
            document = json.load(handle)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise ProfileStoreError(f"{store_path} is not valid JSON: {exc}") from exc
        merge_profile(document, name)
        handle.seek(0)
        handle.truncate()
        json.dump(document, handle, indent=2, ensure_ascii=False)


class ClientInstallTarget(InstallTarget):
    target_id = "client"
    descriptor_kind = "profile"

    def install(
        self,
        request: ClientInstallationRequest,
        http_client: HttpClient,
        cancel_token: CancellationToken | None = None,
    ) -> InstallResult:
        install_dir = Path(request.install_dir)
        store_path = install_dir / PROFILE_STORE
        if not store_path.is_file():
            raise InvalidInstallDirError(
                f"{install_dir} is not a valid installation directory: "
                f"{PROFILE_STORE} was not found."
            )

        name = profile_name(request.minecraft_version, request.loader_version)
        profile_dir = install_dir / "versions" / name
        logger.info("Installing Quilt client profile %s into %s", name, install_dir)

        try:
            check_cancelled(cancel_token)
            if profile_dir.exists():
                shutil.rmtree(profile_dir)
            profile_dir.mkdir(parents=True)
        except OSError as exc:
            raise InstallError(f"Could not prepare {profile_dir}: {exc}") from exc

        descriptor = self.fetch_descriptor(
            http_client,
            request.minecraft_version,
            request.loader_version,
            cancel_token=cancel_token,
        )
        descriptor = patch(descriptor, request.loader_version)

        json_path = profile_dir / f"{name}.json"
        jar_path = profile_dir / f"{name}.jar"
        written = [json_path, jar_path]
        try:
            check_cancelled(cancel_token)
            json_path.write_text(json.dumps(descriptor, indent=2), encoding="utf-8")
            # The vanilla launcher expects a jar beside the version json.
            jar_path.write_bytes(b"")
        except OSError as exc:
            raise InstallError(f"Could not write profile files in {profile_dir}: {exc}") from exc

        notes: list[str] = []
        if request.generate_profile:
            check_cancelled(cancel_token)
            try:
                update_profile_store(store_path, name)
            except OSError as exc:
                raise InstallError(f"Could not update {store_path}: {exc}") from exc
            written.append(store_path)
            notes.append(f"Launcher profile '{name}' registered.")
        else:
            notes.append("Launcher profile was not generated.")

        logger.info("Quilt client profile %s installed", name)
        return InstallResult(
            target=self.target_id,
            install_dir=install_dir,
            profile_name=name,
            written_files=written,
            notes=notes,
        )
