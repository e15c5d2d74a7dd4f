from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import os
import re
import sys
import threading

from .exceptions import InstallCancelledError, InvalidVersionError


_SEMVER_RE = re.compile(
    r"^(?P<core>\d+(?:\.\d+)*)"
    r"(?:-(?P<pre>[0-9A-Za-z.-]+))?"
    r"(?:\+(?P<build>[0-9A-Za-z.-]+))?$"
)
_UNSAFE_NAME_CHARS = set('<>:"/\\|?*\x00')


@dataclass(frozen=True, slots=True)
class SemanticVersion:
    major: int
    minor: int
    patch: int
    pre: tuple[str, ...] = ()
    build: str = ""

    @classmethod
    def parse(cls, value: str) -> SemanticVersion:
        match = _SEMVER_RE.match(value.strip())
        if not match:
            raise InvalidVersionError(f"'{value}' is not a semantic version.")
        numbers = [int(part) for part in match.group("core").split(".")]
        if len(numbers) > 3:
            raise InvalidVersionError(f"'{value}' has too many version components.")
        while len(numbers) < 3:
            numbers.append(0)
        pre = tuple(match.group("pre").split(".")) if match.group("pre") else ()
        return cls(
            major=numbers[0],
            minor=numbers[1],
            patch=numbers[2],
            pre=pre,
            build=match.group("build") or "",
        )

    def sort_key(self) -> tuple:
        # Build metadata does not take part in precedence.
        if not self.pre:
            pre_key: tuple = (1,)
        else:
            pre_key = (
                0,
                tuple((0, int(item), "") if item.isdigit() else (1, 0, item) for item in self.pre),
            )
        return (self.major, self.minor, self.patch, pre_key)

    def __lt__(self, other: SemanticVersion) -> bool:
        return self.sort_key() < other.sort_key()

    def __le__(self, other: SemanticVersion) -> bool:
        return self.sort_key() <= other.sort_key()

    def __gt__(self, other: SemanticVersion) -> bool:
        return self.sort_key() > other.sort_key()

    def __ge__(self, other: SemanticVersion) -> bool:
        return self.sort_key() >= other.sort_key()

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.pre:
            text += "-" + ".".join(self.pre)
        if self.build:
            text += "+" + self.build
        return text


def is_stable_version(value: str) -> bool:
    """Return True when the version core carries no pre-release tag."""
    core = value.split("+", 1)[0]
    return "-" not in core


def ensure_safe_name_component(value: str, label: str) -> str:
    if not value or not value.strip():
        raise InvalidVersionError(f"{label} cannot be empty.")
    if value in {".", ".."} or ".." in value:
        raise InvalidVersionError(f"{label} '{value}' contains a path traversal sequence.")
    if any(char in _UNSAFE_NAME_CHARS or ord(char) < 32 for char in value):
        raise InvalidVersionError(f"{label} '{value}' contains unsupported characters.")
    return value


def default_client_directory() -> Path:
    """Location of the vanilla launcher's game directory on this platform."""
    if os.name == "nt":
        appdata = os.environ.get("APPDATA")
        base = Path(appdata) if appdata else Path.home() / "AppData" / "Roaming"
        return base / ".minecraft"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "minecraft"
    return Path.home() / ".minecraft"


class CancellationToken:
    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise InstallCancelledError("Installation was cancelled.")


def check_cancelled(token: CancellationToken | None) -> None:
    if token is not None:
        token.raise_if_cancelled()
