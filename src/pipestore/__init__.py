"""Flat-file record store: one pipe-delimited text file, one record per line.

Layout:
    records.txt         # the store (path set in pipestore.toml)
    records.txt.lock    # advisory flock target for writers
    records.txt.tmp     # transient, exists only during update/delete/clear

Record lines:
    alice|admin|2024-01-01
    bob|user|2024-02-15

No header, no escaping: a "|" inside a value starts a new field.

Concurrent writes: appends hold a shared flock and rely on O_APPEND.
update/delete/clear hold an exclusive flock and publish via rename.
"""

from pipestore.config import StoreConfig, init_config, load_config
from pipestore.models import Record, join_record, split_record
from pipestore.store import RecordStore

__all__ = [
    "Record",
    "RecordStore",
    "StoreConfig",
    "init_config",
    "join_record",
    "load_config",
    "split_record",
]
