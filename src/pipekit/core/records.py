"""Captured step failures.

``ErrorLog`` is an append-only, insertion-ordered multimap from label to
exception. Labels are not unique: capturing twice under the same label
keeps both records.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator


@dataclass(frozen=True, slots=True)
class ErrorRecord:
    """One captured failure.

    Attributes:
        label: Caller-supplied label, or the pipeline's default label.
        error: The exception the step raised.
        sequence: 1-based position of the chaining call that raised.
    """

    label: str
    error: BaseException
    sequence: int

    def __str__(self) -> str:
        kind = type(self.error).__name__
        return f"[{self.sequence}] {self.label}: {kind}: {self.error}"


class ErrorLog:
    """Ordered record of every failure a pipeline captured."""

    __slots__ = ("_records",)

    def __init__(
        self, records: tuple[ErrorRecord, ...] | list[ErrorRecord] = ()
    ) -> None:
        self._records: list[ErrorRecord] = list(records)

    def append(self, record: ErrorRecord) -> None:
        self._records.append(record)

    def snapshot(self) -> tuple[ErrorRecord, ...]:
        return tuple(self._records)

    def by_label(self) -> dict[str, list[BaseException]]:
        """Group exceptions by label, keeping first-seen label order."""
        grouped: dict[str, list[BaseException]] = {}
        for record in self._records:
            grouped.setdefault(record.label, []).append(record.error)
        return grouped

    def __len__(self) -> int:
        return len(self._records)

    def __bool__(self) -> bool:
        return bool(self._records)

    def __iter__(self) -> Iterator[ErrorRecord]:
        return iter(tuple(self._records))

    def __repr__(self) -> str:
        return f"ErrorLog({len(self._records)} records)"
