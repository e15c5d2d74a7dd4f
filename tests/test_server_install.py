import os
import threading
import zipfile

import pytest

from quiltinstaller.exceptions import (
    DownloadError,
    InstallCancelledError,
    InstallError,
    MalformedDescriptorError,
)
from quiltinstaller.launch_jar import MANIFEST_PATH
from quiltinstaller.manager import InstallManager
from quiltinstaller.minecraft import MOJANG_MANIFEST_URL
from quiltinstaller.models import LoaderVersion, MinecraftVersion, ServerInstallationRequest
from quiltinstaller.targets.server import render_scripts
from quiltinstaller.utils import CancellationToken

META = "https://meta.quiltmc.org/v3"
SERVER_JSON = f"{META}/versions/loader/1.20.1/0.19.2/server/json"
QUILT_MAVEN = "https://maven.quiltmc.org/repository/release/"
MAIN_CLASS = "org.quiltmc.loader.impl.launch.server.QuiltServerLauncher"


def _descriptor(**overrides):
    descriptor = {
        "id": "quilt-loader-0.19.2-1.20.1",
        "launcherMainClass": MAIN_CLASS,
        "libraries": [
            {"name": "org.quiltmc:quilt-loader:0.19.2", "url": QUILT_MAVEN},
            {"name": "net.fabricmc:intermediary:1.20.1", "url": "https://maven.fabricmc.net/"},
            {"name": "org.ow2.asm:asm:9.5", "url": "https://maven.fabricmc.net/"},
        ],
    }
    descriptor.update(overrides)
    return descriptor


def _request(tmp_path, **kwargs):
    return ServerInstallationRequest(
        minecraft_version=MinecraftVersion("1.20.1", stable=True),
        loader_version=LoaderVersion("0.19.2"),
        install_dir=tmp_path / "server",
        **kwargs,
    )


def _manifest_lines(jar_path):
    with zipfile.ZipFile(jar_path) as jar:
        assert jar.namelist() == [MANIFEST_PATH]
        text = jar.read(MANIFEST_PATH).decode("utf-8")
    return [line for line in text.replace("\r\n ", "").split("\r\n") if line]


def test_server_install_downloads_libraries_and_builds_launch_jar(fake_http_factory, tmp_path):
    http = fake_http_factory(json_map={SERVER_JSON: _descriptor()})
    result = InstallManager(http_client=http).install_server(_request(tmp_path))

    server_dir = tmp_path / "server"
    expected = [
        "libraries/org/quiltmc/quilt-loader/0.19.2/quilt-loader-0.19.2.jar",
        "libraries/net/fabricmc/intermediary/1.20.1/intermediary-1.20.1.jar",
        "libraries/org/ow2/asm/asm/9.5/asm-9.5.jar",
    ]
    for relative in expected:
        assert (server_dir / relative).is_file()
    assert sorted(http.downloaded) == sorted(
        [
            QUILT_MAVEN + "org/quiltmc/quilt-loader/0.19.2/quilt-loader-0.19.2.jar",
            "https://maven.fabricmc.net/net/fabricmc/intermediary/1.20.1/intermediary-1.20.1.jar",
            "https://maven.fabricmc.net/org/ow2/asm/asm/9.5/asm-9.5.jar",
        ]
    )

    assert result.launch_jar == server_dir / "quilt-server-launch.jar"
    lines = _manifest_lines(result.launch_jar)
    assert lines[0] == "Manifest-Version: 1.0"
    assert f"Main-Class: {MAIN_CLASS}" in lines
    assert "Class-Path: " + " ".join(expected) in lines


def test_missing_main_class_fails_before_writing(fake_http_factory, tmp_path):
    descriptor = _descriptor()
    del descriptor["launcherMainClass"]
    http = fake_http_factory(json_map={SERVER_JSON: descriptor})

    with pytest.raises(MalformedDescriptorError) as excinfo:
        InstallManager(http_client=http).install_server(_request(tmp_path))

    assert excinfo.value.field == "launcherMainClass"
    assert http.downloaded == []
    assert not (tmp_path / "server").exists()


def test_library_without_url_names_the_field(fake_http_factory, tmp_path):
    http = fake_http_factory(
        json_map={SERVER_JSON: _descriptor(libraries=[{"name": "a.b:c:1.0"}])}
    )
    with pytest.raises(MalformedDescriptorError) as excinfo:
        InstallManager(http_client=http).install_server(_request(tmp_path))
    assert excinfo.value.field == "libraries[0].url"


def test_failed_library_download_aborts_install(fake_http_factory, tmp_path):
    failing = "https://maven.fabricmc.net/org/ow2/asm/asm/9.5/asm-9.5.jar"
    http = fake_http_factory(json_map={SERVER_JSON: _descriptor()}, failing=[failing])

    with pytest.raises(DownloadError):
        InstallManager(http_client=http).install_server(
            _request(tmp_path, generate_script=True)
        )

    server_dir = tmp_path / "server"
    assert not (server_dir / "quilt-server-launch.jar").exists()
    assert not (server_dir / "run.sh").exists()


def test_scripts_are_written_once_and_never_overwritten(fake_http_factory, tmp_path):
    http = fake_http_factory(json_map={SERVER_JSON: _descriptor()})
    manager = InstallManager(http_client=http)
    server_dir = tmp_path / "server"
    server_dir.mkdir()
    (server_dir / "run.bat").write_text("custom", encoding="utf-8")

    manager.install_server(_request(tmp_path, generate_script=True))

    assert (server_dir / "run.bat").read_text(encoding="utf-8") == "custom"
    run_sh = server_dir / "run.sh"
    body = run_sh.read_text(encoding="utf-8")
    assert "-jar quilt-server-launch.jar" in body
    assert "-XX:+UseG1GC" in body
    if os.name != "nt":
        assert run_sh.stat().st_mode & 0o777 == 0o755

    run_sh.write_text("edited", encoding="utf-8")
    manager.install_server(_request(tmp_path, generate_script=True))
    assert run_sh.read_text(encoding="utf-8") == "edited"


def test_scripts_skipped_when_not_requested(fake_http_factory, tmp_path):
    http = fake_http_factory(json_map={SERVER_JSON: _descriptor()})
    InstallManager(http_client=http).install_server(_request(tmp_path, generate_script=False))
    assert not (tmp_path / "server" / "run.sh").exists()
    assert not (tmp_path / "server" / "run.bat").exists()


def test_batch_script_uses_crlf(fake_http_factory, tmp_path):
    http = fake_http_factory(json_map={SERVER_JSON: _descriptor()})
    InstallManager(http_client=http).install_server(_request(tmp_path, generate_script=True))
    raw = (tmp_path / "server" / "run.bat").read_bytes()
    assert b"\r\n" in raw
    assert raw.count(b"\n") == raw.count(b"\r\n")


def test_download_jar_fetches_vanilla_server(fake_http_factory, tmp_path):
    version_url = "https://piston-meta.mojang.com/v1/packages/abc/1.20.1.json"
    server_url = "https://piston-data.mojang.com/v1/objects/def/server.jar"
    http = fake_http_factory(
        json_map={
            SERVER_JSON: _descriptor(),
            MOJANG_MANIFEST_URL: {"versions": [{"id": "1.20.1", "url": version_url}]},
            version_url: {"downloads": {"server": {"url": server_url}}},
        },
        files={server_url: b"vanilla"},
    )
    InstallManager(http_client=http).install_server(
        _request(tmp_path, download_jar=True, generate_script=False)
    )
    assert (tmp_path / "server" / "server.jar").read_bytes() == b"vanilla"


def test_old_loader_server_descriptor_is_patched(fake_http_factory, tmp_path):
    url = f"{META}/versions/loader/1.20.1/0.17.6/server/json"
    descriptor = _descriptor(
        libraries=[
            {"name": "org.quiltmc:hashed:1.20.1", "url": QUILT_MAVEN},
            {"name": "org.quiltmc:quilt-loader:0.17.6", "url": QUILT_MAVEN},
        ]
    )
    http = fake_http_factory(json_map={url: descriptor})
    request = ServerInstallationRequest(
        minecraft_version=MinecraftVersion("1.20.1", stable=True),
        loader_version=LoaderVersion("0.17.6"),
        install_dir=tmp_path / "server",
        generate_script=False,
    )
    InstallManager(http_client=http).install_server(request)
    assert http.downloaded == [
        QUILT_MAVEN + "org/quiltmc/quilt-loader/0.17.6/quilt-loader-0.17.6.jar"
    ]


def test_render_scripts_uses_requested_memory():
    scripts = render_scripts("4G")
    assert "-Xms4G -Xmx4G" in scripts["run.sh"][0]
    assert scripts["run.sh"][0].startswith("#!/usr/bin/env sh")
    assert scripts["run.bat"][1] == "\r\n"


def test_library_downloads_run_concurrently(fake_http_factory, tmp_path):
    barrier = threading.Barrier(3, timeout=5)

    class _BarrierHttp(fake_http_factory):
        def download(self, url, destination):
            # Passes only once all three downloads are in flight together.
            barrier.wait()
            return super().download(url, destination)

    http = _BarrierHttp(json_map={SERVER_JSON: _descriptor()})
    result = InstallManager(http_client=http, max_workers=3).install_server(
        _request(tmp_path, generate_script=False)
    )
    assert len(http.downloaded) == 3
    assert result.launch_jar.is_file()


def test_first_download_failure_is_raised_while_others_are_blocked(
    fake_http_factory, tmp_path
):
    failing = "https://maven.fabricmc.net/org/ow2/asm/asm/9.5/asm-9.5.jar"
    release = threading.Event()

    class _BlockingHttp(fake_http_factory):
        def download(self, url, destination):
            if url == failing:
                raise DownloadError(f"Download failed for {url}: 500")
            release.wait(timeout=0.5)
            return super().download(url, destination)

    http = _BlockingHttp(json_map={SERVER_JSON: _descriptor()})
    with pytest.raises(DownloadError) as excinfo:
        InstallManager(http_client=http, max_workers=3).install_server(
            _request(tmp_path, generate_script=False)
        )

    assert failing in str(excinfo.value)
    assert not (tmp_path / "server" / "quilt-server-launch.jar").exists()


def test_cancelling_during_downloads_stops_install(fake_http_factory, tmp_path):
    token = CancellationToken()

    class _CancellingHttp(fake_http_factory):
        def download(self, url, destination):
            token.cancel()
            return super().download(url, destination)

    http = _CancellingHttp(json_map={SERVER_JSON: _descriptor()})
    with pytest.raises(InstallCancelledError):
        InstallManager(http_client=http, max_workers=1).install_server(
            _request(tmp_path, generate_script=True), cancel_token=token
        )

    server_dir = tmp_path / "server"
    assert len(http.downloaded) == 1
    assert not (server_dir / "quilt-server-launch.jar").exists()
    assert not (server_dir / "run.sh").exists()


def test_unwritable_vanilla_jar_raises_install_error(fake_http_factory, tmp_path):
    version_url = "https://piston-meta.mojang.com/v1/packages/abc/1.20.1.json"
    server_url = "https://piston-data.mojang.com/v1/objects/def/server.jar"

    class _ReadOnlyHttp(fake_http_factory):
        def download(self, url, destination):
            if url == server_url:
                raise PermissionError(13, "Permission denied", str(destination))
            return super().download(url, destination)

    http = _ReadOnlyHttp(
        json_map={
            SERVER_JSON: _descriptor(),
            MOJANG_MANIFEST_URL: {"versions": [{"id": "1.20.1", "url": version_url}]},
            version_url: {"downloads": {"server": {"url": server_url}}},
        }
    )
    with pytest.raises(InstallError) as excinfo:
        InstallManager(http_client=http).install_server(
            _request(tmp_path, download_jar=True, generate_script=False)
        )
    assert isinstance(excinfo.value.__cause__, PermissionError)
