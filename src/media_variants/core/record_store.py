"""Local record store implementations.

The production record store is the CMS data layer; these stand in for it in
tests, the CLI and the development server.
"""

import json
import threading
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from .exceptions import PersistError
from .models import AssetFilter, ImageMetadata, MediaRecord, SourceAsset, VariantSet


class InMemoryRecordStore:
    """Media rows kept in a dict, in insertion order."""

    def __init__(self, records: Optional[Iterable[MediaRecord]] = None):
        self._lock = threading.Lock()
        self._records: Dict[str, MediaRecord] = {}
        self.update_count = 0
        for record in records or []:
            self._records[record.id] = record

    def add(self, record: MediaRecord) -> None:
        with self._lock:
            self._records[record.id] = record

    def get_record(self, asset_id: str) -> Optional[MediaRecord]:
        with self._lock:
            record = self._records.get(asset_id)
            return record.model_copy(deep=True) if record else None

    def all_records(self) -> List[MediaRecord]:
        with self._lock:
            return [r.model_copy(deep=True) for r in self._records.values()]

    def find_assets_needing_processing(
        self, asset_filter: AssetFilter
    ) -> List[SourceAsset]:
        with self._lock:
            return [
                record.to_source_asset()
                for record in self._records.values()
                if asset_filter.matches(record)
            ]

    def get_asset(self, asset_id: str) -> Optional[SourceAsset]:
        record = self.get_record(asset_id)
        return record.to_source_asset() if record else None

    def update_asset_metadata_and_variants(
        self, asset_id: str, metadata: ImageMetadata, variants: VariantSet
    ) -> None:
        with self._lock:
            record = self._records.get(asset_id)
            if record is None:
                raise PersistError(f"Media {asset_id} not found")
            updated = dict(self._records)
            updated[asset_id] = record.model_copy(
                update={
                    "width": metadata.width,
                    "height": metadata.height,
                    "file_size": metadata.file_size,
                    "mime_type": metadata.mime_type,
                    "variants": dict(variants),
                }
            )
            # Memory only changes once the write has succeeded.
            self._flush(updated)
            self._records = updated
            self.update_count += 1

    def _flush(self, records: Dict[str, MediaRecord]) -> None:
        """Hook for subclasses that persist; called with the lock held."""


class JsonFileRecordStore(InMemoryRecordStore):
    """Media rows loaded from and written back to a JSON array on disk."""

    def __init__(self, path: Path):
        self.path = Path(path)
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise PersistError(f"Cannot read records from {self.path}: {exc}") from exc
        super().__init__(MediaRecord.model_validate(item) for item in raw)

    def _flush(self, records: Dict[str, MediaRecord]) -> None:
        payload = [r.model_dump(mode="json") for r in records.values()]
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            tmp_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
            tmp_path.replace(self.path)
        except OSError as exc:
            raise PersistError(f"Cannot write records to {self.path}: {exc}") from exc
