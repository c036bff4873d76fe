"""Brewfile manifest parsing.

Only the entry declarations matter for rollback diffs; options after the
package name (``brew "x", args: [...]``) are ignored.
"""

import re
from dataclasses import dataclass
from pathlib import Path

_ENTRY_RE = re.compile(r'^(?P<kind>[a-z_]+)\s+"(?P<name>[^"]+)"')


@dataclass(frozen=True, order=True)
class PackageEntry:
    """A single package declaration, e.g. ``cask "wezterm"``."""

    kind: str
    name: str

    def __str__(self) -> str:
        return f'{self.kind} "{self.name}"'


@dataclass(frozen=True)
class PackageManifest:
    """The set of packages declared in a manifest file."""

    entries: frozenset[PackageEntry]

    @staticmethod
    def parse(text: str) -> "PackageManifest":
        entries: set[PackageEntry] = set()
        for raw in text.splitlines():
            line = raw.strip()
            if not line or line.startswith("#"):
                continue
            match = _ENTRY_RE.match(line)
            if match is None:
                continue
            entries.add(PackageEntry(kind=match.group("kind"), name=match.group("name")))
        return PackageManifest(entries=frozenset(entries))

    @staticmethod
    def load(path: Path) -> "PackageManifest":
        return PackageManifest.parse(path.read_text(encoding="utf-8"))

    def extras_over(self, baseline: "PackageManifest") -> list[PackageEntry]:
        """Entries present here but absent from baseline, sorted.

        Taps are excluded: removing a tap is a side effect of removing its
        packages, never a package change in its own right.
        """
        return sorted(e for e in self.entries - baseline.entries if e.kind != "tap")
