"""Data model for pipe-delimited record files."""

from __future__ import annotations

from dataclasses import dataclass, field

DELIMITER = "|"


def split_record(line: str, delimiter: str = DELIMITER) -> list[str]:
    """Split one line into its fields.

    Empty fields are kept, trailing ones included: ``"a||"`` gives
    ``["a", "", ""]`` and an empty line gives ``[""]``.
    """
    return line.split(delimiter)


def join_record(fields: list[str], delimiter: str = DELIMITER) -> str:
    """Join fields back into a line. No escaping is applied."""
    return delimiter.join(fields)


@dataclass
class Record:
    """A single line from the store, with its fields."""

    line: str
    fields: list[str] = field(default_factory=list)

    @classmethod
    def parse(cls, line: str, delimiter: str = DELIMITER) -> Record:
        return cls(line=line, fields=split_record(line, delimiter))

    def get(self, index: int, default: str | None = None) -> str | None:
        """Field at index, or default when the record is shorter."""
        if -len(self.fields) <= index < len(self.fields):
            return self.fields[index]
        return default

    def has_field(self, value: str) -> bool:
        """True when some field equals value exactly."""
        return value in self.fields

    def __len__(self) -> int:
        return len(self.fields)
