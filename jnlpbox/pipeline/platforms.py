"""OSGi environment keys mapped to launch descriptor ``os``/``arch`` values."""

from collections.abc import Iterable
from dataclasses import dataclass
from types import MappingProxyType

from jnlpbox.config.models import EnvironmentMapping
from jnlpbox.core.structlog_logger import get_struct_logger


logger = get_struct_logger(__name__)

NO_ENVIRONMENT = ""


@dataclass(frozen=True)
class Platform:
    os: str
    arch: str


# Values follow the Java os.name / os.arch system properties
BUILTIN_ENVIRONMENTS: tuple[tuple[str, Platform], ...] = (
    ("linux/x86_64", Platform("Linux", "amd64")),
    ("linux/x86", Platform("Linux", "i386")),
    ("win32/x86", Platform("Windows", "x86")),
    ("win32/x86_64", Platform("Windows", "amd64")),
    ("macosx/x86_64", Platform("Mac", "x86_64")),
)


class PlatformTable:
    """Read-only lookup built once per run.

    A key may map to several platforms when configuration adds entries for a
    key that already has a built-in one.
    """

    def __init__(self, entries: Iterable[tuple[str, Platform]]) -> None:
        table: dict[str, tuple[Platform, ...]] = {}
        for key, platform in entries:
            table[key] = table.get(key, ()) + (platform,)
        self._table = MappingProxyType(table)

    @property
    def keys(self) -> list[str]:
        return list(self._table)

    def lookup(self, env_key: str) -> tuple[Platform, ...]:
        """Platforms for ``env_key``; logs a warning for unknown keys."""
        platforms = self._table.get(env_key, ())
        if not platforms and env_key != NO_ENVIRONMENT:
            logger.warning("unknown_target_environment", env_key=env_key)
        return platforms


def create_platform_table(
    extra: Iterable[EnvironmentMapping] = (),
) -> PlatformTable:
    """Built-in mappings followed by configured ones."""
    entries = list(BUILTIN_ENVIRONMENTS)
    entries.extend((m.key, Platform(m.os, m.arch)) for m in extra)
    return PlatformTable(entries)


__all__ = [
    "BUILTIN_ENVIRONMENTS",
    "NO_ENVIRONMENT",
    "Platform",
    "PlatformTable",
    "create_platform_table",
]
