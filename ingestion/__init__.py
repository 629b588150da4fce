from ingestion.sync import (
    SyncedTransaction,
    ingest_records,
    load_sync_file,
    parse_sync_records,
)

__all__ = [
    "SyncedTransaction",
    "ingest_records",
    "load_sync_file",
    "parse_sync_records",
]
