from pathlib import Path

import pytest

from quiltinstaller.exceptions import DownloadError


class FakeHttp:
    """Stand-in for HttpClient that serves JSON and artifacts from dicts."""

    def __init__(self, json_map=None, files=None, failing=None):
        self.json_map = json_map or {}
        self.files = files or {}
        self.failing = set(failing or ())
        self.requested = []
        self.downloaded = []

    def get_json(self, url):
        self.requested.append(url)
        if url not in self.json_map:
            raise DownloadError(f"Request failed for {url}: 404")
        return self.json_map[url]

    def download(self, url, destination: Path) -> Path:
        if url in self.failing:
            raise DownloadError(f"Download failed for {url}: 500")
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_bytes(self.files.get(url, url.encode("utf-8")))
        self.downloaded.append(url)
        return destination


@pytest.fixture
def fake_http_factory():
    return FakeHttp
