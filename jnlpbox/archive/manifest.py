"""Jar manifest handling and security attribute injection.

Only the main section is edited. Headers that are not touched keep their
original bytes, including line wrapping, and the per-entry sections that
follow the main section are carried over verbatim.
"""

from collections.abc import Mapping
from dataclasses import dataclass

from jnlpbox.core.errors import MissingManifestError


# Main-section security attributes understood by Java Web Start, in write order
SECURITY_ATTRIBUTES = (
    "Permissions",
    "Codebase",
    "Application-Name",
    "Application-Library-Allowable-Codebase",
    "Caller-Allowable-Codebase",
    "Trusted-Only",
    "Trusted-Library",
)

MAX_LINE_BYTES = 72
MANIFEST_VERSION = "Manifest-Version"


class ManifestFormatError(ValueError):
    """Manifest text that does not follow the header syntax."""


@dataclass
class _Header:
    name: str
    value: str
    raw_lines: list[str] | None = None

    def render(self) -> list[str]:
        if self.raw_lines is not None:
            return list(self.raw_lines)
        return wrap_header(self.name, self.value)


def wrap_header(name: str, value: str) -> list[str]:
    """Split ``Name: value`` into 72-byte manifest lines.

    Continuation lines start with a single space. Multi-byte characters are
    never split across lines.
    """
    if "\r" in value or "\n" in value:
        raise ManifestFormatError(f"Line breaks are not allowed in {name!r} value")

    lines: list[str] = []
    current = ""
    current_size = 0
    limit = MAX_LINE_BYTES
    for char in f"{name}: {value}":
        size = len(char.encode("utf-8"))
        if current_size + size > limit:
            lines.append(current)
            current, current_size = " ", 1
        current += char
        current_size += size
    lines.append(current)
    return lines


class Manifest:
    """Editable view of a manifest's main section."""

    def __init__(self, headers: list[_Header], rest: list[str], eol: str) -> None:
        self._headers = headers
        self._rest = rest
        self.eol = eol

    @classmethod
    def parse(cls, data: bytes) -> "Manifest":
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ManifestFormatError(f"Manifest is not valid UTF-8: {e}") from e

        eol = "\r\n" if "\r\n" in text else "\n"
        lines = text.split(eol)

        headers: list[_Header] = []
        index = 0
        while index < len(lines) and lines[index] != "":
            line = lines[index]
            if line.startswith(" "):
                if not headers:
                    raise ManifestFormatError("Continuation line before first header")
                previous = headers[-1]
                previous.value += line[1:]
                assert previous.raw_lines is not None
                previous.raw_lines.append(line)
            else:
                name, sep, value = line.partition(": ")
                if not sep or not name:
                    name, sep, value = line.partition(":")
                if not sep or not name:
                    raise ManifestFormatError(f"Invalid manifest header: {line!r}")
                headers.append(_Header(name, value, [line]))
            index += 1

        rest = lines[index:] if index < len(lines) else ["", ""]
        return cls(headers, rest, eol)

    def get(self, name: str) -> str | None:
        header = self._find(name)
        return header.value if header is not None else None

    def _find(self, name: str) -> _Header | None:
        lowered = name.lower()
        for header in self._headers:
            if header.name.lower() == lowered:
                return header
        return None

    def set(self, name: str, value: str) -> bool:
        """Add or overwrite a main-section header.

        Returns:
            True if the manifest changed
        """
        existing = self._find(name)
        if existing is not None:
            if existing.value == value:
                return False
            wrap_header(name, value)  # rejects line breaks before mutating
            existing.name = name
            existing.value = value
            existing.raw_lines = None
            return True

        wrap_header(name, value)
        if self._find(MANIFEST_VERSION) is None:
            self._headers.insert(0, _Header(MANIFEST_VERSION, "1.0"))
        self._headers.append(_Header(name, value))
        return True

    def to_bytes(self) -> bytes:
        lines: list[str] = []
        for header in self._headers:
            lines.extend(header.render())
        return self.eol.join(lines + self._rest).encode("utf-8")


def inject_security_attributes(
    manifest: bytes | None,
    attributes: Mapping[str, str | None],
    archive_label: str | None = None,
) -> bytes | None:
    """Write the configured security attributes into ``manifest``.

    Args:
        manifest: Current manifest bytes, None when the archive has none
        attributes: Values keyed by manifest attribute name
        archive_label: Archive identity for error messages

    Returns:
        New manifest bytes, or None when no attribute has a non-empty value
        and nothing must be written

    Raises:
        MissingManifestError: If values are configured but there is no manifest
    """
    configured = [
        (name, attributes[name])
        for name in SECURITY_ATTRIBUTES
        if attributes.get(name)
    ]
    if not configured:
        return None

    if manifest is None:
        raise MissingManifestError(
            "Archive has no manifest to add security attributes to",
            archive_label,
        )

    parsed = Manifest.parse(manifest)
    for name, value in configured:
        assert value is not None
        parsed.set(name, value)
    return parsed.to_bytes()


__all__ = [
    "SECURITY_ATTRIBUTES",
    "Manifest",
    "ManifestFormatError",
    "inject_security_attributes",
    "wrap_header",
]
