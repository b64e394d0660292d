"""Per-archive processing flags stored in ``META-INF/eclipse.inf``.

The record is a small ISO-8859-1 properties file. ``shouldPack`` marks an
archive as eligible for packing and ``packNormalized`` records that the
normalize round trip already ran. ``packNormalized`` only ever goes from
false to true.
"""

import re
from collections.abc import Sequence
from dataclasses import dataclass, replace
from pathlib import Path

from jnlpbox.archive.store import ArchiveEntry, find_entry, latest_date_time
from jnlpbox.core.errors import StateRegressionError


ECLIPSE_INF_PATH = "META-INF/eclipse.inf"

SHOULD_PACK = "shouldPack"
PACK_NORMALIZED = "packNormalized"

# Keys written by the Eclipse jar processor
EXCLUDE_PACK = "jarprocessor.exclude.pack"
PACK200_CONDITIONED = "pack200.conditioned"

# Properties line terminators; str.splitlines would also split on \x85
_LINE_BREAK = re.compile(r"\r\n|[\r\n]")


def _split_property(line: str) -> tuple[str, str] | None:
    stripped = line.strip()
    if not stripped or stripped[0] in "#!":
        return None
    for index, char in enumerate(stripped):
        if char in "=:":
            return stripped[:index].strip(), stripped[index + 1 :].strip()
        if char.isspace():
            return stripped[:index], stripped[index:].strip().lstrip("=:").strip()
    return stripped, ""


def _is_true(value: str | None) -> bool:
    return value is not None and value.strip().lower() == "true"


@dataclass(frozen=True)
class StateRecord:
    should_pack: bool = False
    pack_normalized: bool = False
    lines: tuple[str, ...] = ()

    @classmethod
    def parse(cls, data: bytes) -> "StateRecord":
        text = data.decode("latin-1")
        lines = _LINE_BREAK.split(text)
        if lines[-1] == "":
            lines.pop()
        properties: dict[str, str] = {}
        for line in lines:
            pair = _split_property(line)
            if pair is not None:
                properties[pair[0]] = pair[1]

        should_pack = _is_true(properties.get(SHOULD_PACK))
        if _is_true(properties.get(EXCLUDE_PACK)):
            should_pack = False
        pack_normalized = _is_true(properties.get(PACK_NORMALIZED)) or _is_true(
            properties.get(PACK200_CONDITIONED)
        )
        return cls(should_pack, pack_normalized, tuple(lines))

    def with_pack_normalized(self) -> "StateRecord":
        return replace(self, pack_normalized=True)

    def to_bytes(self) -> bytes:
        values = {
            SHOULD_PACK: "true" if self.should_pack else "false",
            PACK_NORMALIZED: "true" if self.pack_normalized else "false",
        }
        written: set[str] = set()
        out: list[str] = []
        for line in self.lines:
            pair = _split_property(line)
            if pair is not None and pair[0] in values:
                if pair[0] not in written:
                    out.append(f"{pair[0]}={values[pair[0]]}")
                    written.add(pair[0])
                continue
            out.append(line)
        for key, value in values.items():
            if key not in written:
                out.append(f"{key}={value}")
        return ("\n".join(out) + "\n").encode("latin-1")


def read_state_record(entries: Sequence[ArchiveEntry]) -> StateRecord:
    """Read the record; an absent record means both flags are false."""
    entry = find_entry(entries, ECLIPSE_INF_PATH)
    if entry is None:
        return StateRecord()
    return StateRecord.parse(entry.data)


def write_state_record(
    entries: Sequence[ArchiveEntry],
    record: StateRecord,
    archive_path: Path | None = None,
) -> list[ArchiveEntry]:
    """Insert or replace the record entry, passing every other entry through.

    Raises:
        StateRegressionError: If the stored record is normalized and ``record``
            is not
    """
    current = read_state_record(entries)
    if current.pack_normalized and not record.pack_normalized:
        raise StateRegressionError(
            "Refusing to reset packNormalized after normalization", archive_path
        )

    data = record.to_bytes()
    result = list(entries)
    for index, entry in enumerate(result):
        if entry.path.upper() == ECLIPSE_INF_PATH.upper():
            result[index] = entry.with_data(data)
            return result

    result.append(
        ArchiveEntry(ECLIPSE_INF_PATH, data, date_time=latest_date_time(entries))
    )
    return result


__all__ = [
    "ECLIPSE_INF_PATH",
    "PACK_NORMALIZED",
    "SHOULD_PACK",
    "StateRecord",
    "read_state_record",
    "write_state_record",
]
