from __future__ import annotations

from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from pathlib import Path
import logging
import os

from ..catalog import QUILT_META
from ..exceptions import InstallError
from ..http import HttpClient
from ..launch_jar import write_launch_jar
from ..maven import resolve_coordinate
from ..minecraft import vanilla_server_url
from ..models import InstallResult, ServerInstallationRequest, ServerLaunchDescriptor
from ..patches import patch
from ..utils import CancellationToken, check_cancelled
from .base import InstallTarget

logger = logging.getLogger(__name__)

LAUNCH_JAR = "quilt-server-launch.jar"
VANILLA_SERVER_JAR = "server.jar"
LIBRARIES_DIR = "libraries"
DEFAULT_MAX_WORKERS = 8
DEFAULT_SCRIPT_MEMORY = "2G"


def render_scripts(memory: str = DEFAULT_SCRIPT_MEMORY) -> dict[str, tuple[str, str]]:
    """Start script bodies keyed by file name, with the newline each one uses."""
    command = f"java -Xms{memory} -Xmx{memory} -XX:+UseG1GC -jar {LAUNCH_JAR} nogui"
    return {
        "run.sh": (
            "#!/usr/bin/env sh\n"
            'cd "$(dirname "$0")"\n'
            f"{command}\n",
            "\n",
        ),
        "run.bat": (
            "@echo off\n"
            'cd /d "%~dp0"\n'
            f"{command}\n"
            "pause\n",
            "\r\n",
        ),
    }


class ServerInstallTarget(InstallTarget):
    target_id = "server"
    descriptor_kind = "server"

    def __init__(
        self,
        meta_url: str = QUILT_META,
        max_workers: int = DEFAULT_MAX_WORKERS,
        script_memory: str = DEFAULT_SCRIPT_MEMORY,
    ) -> None:
        super().__init__(meta_url)
        self.max_workers = max(1, max_workers)
        self.script_memory = script_memory

    def install(
        self,
        request: ServerInstallationRequest,
        http_client: HttpClient,
        cancel_token: CancellationToken | None = None,
    ) -> InstallResult:
        install_dir = Path(request.install_dir)
        logger.info(
            "Installing Quilt server %s for Minecraft %s into %s",
            request.loader_version,
            request.minecraft_version,
            install_dir,
        )
        raw = self.fetch_descriptor(
            http_client,
            request.minecraft_version,
            request.loader_version,
            cancel_token=cancel_token,
        )
        descriptor = ServerLaunchDescriptor.from_dict(patch(raw, request.loader_version))
        downloads = [
            resolve_coordinate(library.name, library.url) for library in descriptor.libraries
        ]

        try:
            check_cancelled(cancel_token)
            install_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise InstallError(f"Could not create {install_dir}: {exc}") from exc

        libraries_dir = install_dir / LIBRARIES_DIR
        # Duplicate coordinates collapse onto one download and one class-path entry.
        jobs = list(
            dict.fromkeys(
                (artifact.download_url, libraries_dir / Path(*artifact.relative_path.split("/")))
                for artifact in downloads
            )
        )
        library_paths = self.download_libraries(http_client, jobs, cancel_token)
        written = list(library_paths)

        launch_jar = install_dir / LAUNCH_JAR
        check_cancelled(cancel_token)
        try:
            write_launch_jar(launch_jar, descriptor.launcher_main_class, library_paths)
        except OSError as exc:
            raise InstallError(f"Could not write {launch_jar}: {exc}") from exc
        written.append(launch_jar)

        notes: list[str] = []
        if request.download_jar:
            check_cancelled(cancel_token)
            server_jar = install_dir / VANILLA_SERVER_JAR
            server_url = vanilla_server_url(http_client, request.minecraft_version.version)
            try:
                http_client.download(server_url, server_jar)
            except OSError as exc:
                raise InstallError(f"Could not write {server_jar}: {exc}") from exc
            written.append(server_jar)
            notes.append(f"Minecraft {request.minecraft_version} server jar downloaded.")

        if request.generate_script:
            created = self.write_scripts(install_dir, cancel_token)
            written.extend(created)
            if created:
                notes.append("Start scripts: " + ", ".join(path.name for path in created))
            else:
                notes.append("Existing start scripts were kept.")

        logger.info("Quilt server installed with %d libraries", len(library_paths))
        return InstallResult(
            target=self.target_id,
            install_dir=install_dir,
            launch_jar=launch_jar,
            written_files=written,
            notes=notes,
        )

    def download_libraries(
        self,
        http_client: HttpClient,
        jobs: list[tuple[str, Path]],
        cancel_token: CancellationToken | None = None,
    ) -> list[Path]:
        """Fetch every library in parallel; the first failure aborts the batch."""
        if not jobs:
            return []

        def _fetch(url: str, destination: Path) -> Path:
            check_cancelled(cancel_token)
            try:
                return http_client.download(url, destination)
            except OSError as exc:
                raise InstallError(f"Could not write {destination}: {exc}") from exc

        executor = ThreadPoolExecutor(
            max_workers=min(self.max_workers, len(jobs)),
            thread_name_prefix="quiltinstaller-download",
        )
        try:
            futures: list[Future[Path]] = [
                executor.submit(_fetch, url, destination) for url, destination in jobs
            ]
            done, _ = wait(futures, return_when=FIRST_EXCEPTION)
            for future in futures:
                if future in done and future.exception() is not None:
                    for pending in futures:
                        pending.cancel()
                    raise future.exception()
            return [future.result() for future in futures]
        finally:
            executor.shutdown(wait=True, cancel_futures=True)

    def write_scripts(
        self, install_dir: Path, cancel_token: CancellationToken | None = None
    ) -> list[Path]:
        created: list[Path] = []
        for file_name, (body, newline) in render_scripts(self.script_memory).items():
            check_cancelled(cancel_token)
            path = install_dir / file_name
            try:
                with path.open("x", encoding="utf-8", newline=newline) as handle:
                    handle.write(body)
            except FileExistsError:
                logger.info("Keeping existing %s", path)
                continue
            except OSError as exc:
                raise InstallError(f"Could not write {path}: {exc}") from exc
            if file_name == "run.sh" and os.name != "nt":
                try:
                    path.chmod(0o755)
                except OSError as exc:
                    raise InstallError(f"Could not mark {path} executable: {exc}") from exc
            created.append(path)
        return created
