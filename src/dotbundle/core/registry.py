"""Bundle discovery and descriptor parsing.

A bundle is a directory under the bundle root. Its optional ``bundle.conf``
holds ``key="value"`` lines:

    name="Development"
    description="Editors, language runtimes"
    order="20"
    requires="core"

Unknown keys are ignored and missing keys take their defaults, so a
directory without a descriptor is still a valid bundle.
"""

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path

from dotbundle.errors import DescriptorError, NotFoundError

logger = logging.getLogger(__name__)

DESCRIPTOR_FILENAME = "bundle.conf"
DEFAULT_ORDER = 50


@dataclass(frozen=True)
class BundleDescriptor:
    """Immutable metadata for a single bundle."""

    id: str
    display_name: str
    description: str = ""
    order: int = DEFAULT_ORDER
    dependencies: tuple[str, ...] = ()
    hidden: bool = False
    enabled: bool = True
    path: Path | None = None


def _descriptor_entries(text: str) -> Iterator[tuple[int, str, str]]:
    """Yield (line number, key, value) for every pair, 1-based, first key wins."""
    seen: set[str] = set()
    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip()
        if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
            value = value[1:-1]
        if key and key not in seen:
            seen.add(key)
            yield lineno, key, value


def parse_descriptor_pairs(text: str) -> dict[str, str]:
    """Parse descriptor text into ordered key/value pairs.

    The first occurrence of a key wins. Comment lines, blank lines and lines
    without ``=`` are skipped. One pair of surrounding double quotes is
    stripped from each value.
    """
    return {key: value for _, key, value in _descriptor_entries(text)}


def descriptor_key_lines(text: str) -> dict[str, int]:
    """Line number of each key's effective definition."""
    return {key: lineno for lineno, key, _ in _descriptor_entries(text)}


def split_requires(value: str) -> tuple[str, ...]:
    """Split a comma-separated ``requires`` value, dropping blanks and repeats."""
    seen: list[str] = []
    for part in value.split(","):
        dep = part.strip()
        if dep and dep not in seen:
            seen.append(dep)
    return tuple(seen)


def descriptor_from_pairs(
    bundle_id: str,
    pairs: dict[str, str],
    path: Path | None = None,
    lines: dict[str, int] | None = None,
) -> BundleDescriptor:
    """Build a typed descriptor from raw pairs, applying defaults.

    ``lines`` maps keys to their line in the descriptor file and is only used
    to locate errors.
    """
    order_raw = pairs.get("order", "").strip()
    if order_raw:
        try:
            order = int(order_raw)
        except ValueError:
            location = str(path / DESCRIPTOR_FILENAME) if path is not None else bundle_id
            if lines is not None and "order" in lines:
                location = f"{location}:{lines['order']}"
            raise DescriptorError(
                f"Invalid order value {order_raw!r} in {location}: expected an integer"
            ) from None
    else:
        order = DEFAULT_ORDER

    return BundleDescriptor(
        id=bundle_id,
        display_name=pairs.get("name") or bundle_id,
        description=pairs.get("description", ""),
        order=order,
        dependencies=split_requires(pairs.get("requires", "")),
        hidden=pairs.get("hidden", "false").lower() == "true",
        enabled=pairs.get("enabled", "true").lower() != "false",
        path=path,
    )


class BundleRegistry:
    """Read-only catalogue of the bundles found under a bundle root."""

    def __init__(
        self,
        descriptors: Iterable[BundleDescriptor],
        raw_config: dict[str, dict[str, str]] | None = None,
    ) -> None:
        self._descriptors: dict[str, BundleDescriptor] = {}
        for descriptor in descriptors:
            if descriptor.id in self._descriptors:
                raise DescriptorError(f"Duplicate bundle id '{descriptor.id}'")
            self._descriptors[descriptor.id] = descriptor
        self._raw = raw_config or {}

    @staticmethod
    def discover(bundles_dir: Path) -> "BundleRegistry":
        """Scan bundles_dir and parse every bundle directory in it.

        Args:
            bundles_dir: Directory whose immediate subdirectories are bundles

        Returns:
            Registry holding one descriptor per subdirectory. An absent
            bundles_dir yields an empty registry.

        Raises:
            DescriptorError: If a descriptor holds an unparseable value
        """
        if not bundles_dir.is_dir():
            logger.debug("Bundle root %s does not exist", bundles_dir)
            return BundleRegistry([])

        descriptors: list[BundleDescriptor] = []
        raw: dict[str, dict[str, str]] = {}
        for bundle_dir in sorted(bundles_dir.iterdir()):
            if not bundle_dir.is_dir() or bundle_dir.name.startswith("."):
                continue
            conf = bundle_dir / DESCRIPTOR_FILENAME
            pairs: dict[str, str] = {}
            lines: dict[str, int] = {}
            if conf.is_file():
                text = conf.read_text(encoding="utf-8")
                pairs = parse_descriptor_pairs(text)
                lines = descriptor_key_lines(text)
            raw[bundle_dir.name] = pairs
            descriptors.append(descriptor_from_pairs(bundle_dir.name, pairs, bundle_dir, lines))

        logger.debug("Discovered %d bundles in %s", len(descriptors), bundles_dir)
        return BundleRegistry(descriptors, raw)

    def ids(self) -> list[str]:
        return list(self._descriptors)

    def exists(self, bundle_id: str) -> bool:
        return bundle_id in self._descriptors

    def is_available(self, bundle_id: str) -> bool:
        """A bundle is available when it exists and is not disabled."""
        descriptor = self._descriptors.get(bundle_id)
        return descriptor is not None and descriptor.enabled

    def get(self, bundle_id: str) -> BundleDescriptor:
        """Look up an available bundle.

        Raises:
            NotFoundError: If the id is unknown or the bundle is disabled
        """
        if not self.is_available(bundle_id):
            raise NotFoundError(bundle_id)
        return self._descriptors[bundle_id]

    def describe(self, bundle_id: str) -> BundleDescriptor:
        """Look up any bundle, including disabled ones, for listings."""
        if bundle_id not in self._descriptors:
            raise NotFoundError(bundle_id)
        return self._descriptors[bundle_id]

    def get_config(self, bundle_id: str, key: str, default: str = "") -> str:
        """Raw descriptor value for key, or default when absent.

        Raises:
            NotFoundError: If no bundle directory has this id
        """
        if bundle_id not in self._descriptors:
            raise NotFoundError(bundle_id)
        return self._raw.get(bundle_id, {}).get(key, default)

    def visible(self, revealed: Iterable[str] = ()) -> list[BundleDescriptor]:
        """Available bundles for selection menus, sorted by (order, id).

        Hidden bundles are excluded unless their id is in revealed.
        """
        revealed_ids = set(revealed)
        shown = [
            d
            for d in self._descriptors.values()
            if d.enabled and (not d.hidden or d.id in revealed_ids)
        ]
        return sorted(shown, key=lambda d: (d.order, d.id))
