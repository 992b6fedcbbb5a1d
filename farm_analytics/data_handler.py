import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

import pandas as pd
from pydantic import BaseModel

from . import settings
from . import utils
from .schemas import AnalyticsData

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when an owner's analytics document cannot be read or written."""


def document_name(owner_id: str) -> str:
    """Every owner has exactly one document, named after the owner id."""
    if not owner_id or "/" in owner_id or "\\" in owner_id or owner_id in (".", ".."):
        raise StorageError(f"Invalid owner id: {owner_id!r}")
    return f"{owner_id}.json"


class AnalyticsStore(ABC):
    """
    Blob store holding one {inventory, sales, expenses} JSON document per owner.
    """

    @abstractmethod
    def load(self, owner_id: str) -> Optional[AnalyticsData]:
        """Returns the owner's document, or None if the owner has none yet."""
        pass

    @abstractmethod
    def save(self, owner_id: str, data: AnalyticsData) -> None:
        """Creates or overwrites the owner's document."""
        pass

    @abstractmethod
    def reset(self, owner_id: str) -> None:
        """Removes the owner's document. Missing documents are not an error."""
        pass


def _serialize(data: AnalyticsData) -> str:
    return data.model_dump_json(by_alias=True, indent=2)


class LocalFileStore(AnalyticsStore):
    def __init__(self, directory: Optional[Path] = None):
        self.directory = Path(directory) if directory is not None else settings.DATA_DIR

    def _path(self, owner_id: str) -> Path:
        return self.directory / document_name(owner_id)

    def load(self, owner_id: str) -> Optional[AnalyticsData]:
        path = self._path(owner_id)
        if not path.exists():
            logger.info(f"No analytics document for '{owner_id}' yet (new user).")
            return None
        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Could not read {path}: {e}") from e
        return AnalyticsData.model_validate_json(raw)

    def save(self, owner_id: str, data: AnalyticsData) -> None:
        path = self._path(owner_id)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            path.write_text(_serialize(data), encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Could not write {path}: {e}") from e
        logger.info(f"✅ Analytics data saved to: {path}")

    def reset(self, owner_id: str) -> None:
        path = self._path(owner_id)
        path.unlink(missing_ok=True)
        logger.info(f"Analytics data for '{owner_id}' reset.")


def _is_not_found(error: Exception) -> bool:
    message = str(error).lower()
    return "not found" in message or "not_found" in message


class SupabaseStore(AnalyticsStore):
    """Stores documents in a Supabase Storage bucket."""

    def __init__(self, client, bucket: Optional[str] = None):
        self.client = client
        self.bucket = bucket or settings.SUPABASE_BUCKET

    def _bucket(self):
        return self.client.storage.from_(self.bucket)

    def load(self, owner_id: str) -> Optional[AnalyticsData]:
        try:
            raw = self._bucket().download(document_name(owner_id))
        except Exception as e:
            if _is_not_found(e):
                logger.info(f"No analytics document for '{owner_id}' yet (new user).")
                return None
            raise StorageError(f"Failed to load data: {e}") from e
        return AnalyticsData.model_validate_json(raw)

    def save(self, owner_id: str, data: AnalyticsData) -> None:
        try:
            self._bucket().upload(
                document_name(owner_id),
                _serialize(data).encode("utf-8"),
                file_options={
                    "content-type": "application/json",
                    "cache-control": "3600",
                    "upsert": "true",
                },
            )
        except Exception as e:
            raise StorageError(f"Failed to save data: {e}") from e
        logger.info(f"✅ Analytics data saved to bucket '{self.bucket}'.")

    def reset(self, owner_id: str) -> None:
        try:
            self._bucket().remove([document_name(owner_id)])
        except Exception as e:
            if not _is_not_found(e):
                raise StorageError(f"Failed to reset data: {e}") from e
        logger.info(f"Analytics data for '{owner_id}' reset.")


def create_store(backend: Optional[str] = None) -> AnalyticsStore:
    """Creates the storage backend named in settings.STORAGE_BACKEND."""
    backend = backend or settings.STORAGE_BACKEND

    match backend:
        case "local":
            return LocalFileStore(settings.DATA_DIR)
        case "supabase":
            if not settings.SUPABASE_URL or not settings.SUPABASE_KEY:
                raise StorageError(
                    "SUPABASE_URL and SUPABASE_KEY must be set to use the supabase backend."
                )
            from supabase import create_client

            return SupabaseStore(
                create_client(settings.SUPABASE_URL, settings.SUPABASE_KEY),
                settings.SUPABASE_BUCKET,
            )
        case _:
            raise StorageError(
                f"Unknown storage backend: {backend!r} (expected 'local' or 'supabase')"
            )


def save_outputs(validated_data: list[BaseModel], report_name: str) -> Optional[Path]:
    """Saves report rows to a dated CSV and, if configured, to JSON. Returns the CSV path."""
    if not validated_data:
        logger.warning(f"No rows to save for {report_name}.")
        return None

    settings.OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
    date_suffix = utils.get_date_suffix_for_filename()

    csv_path = settings.OUTPUT_DIR / f"{report_name}_{date_suffix}.csv"
    json_path = settings.OUTPUT_DIR / f"{report_name}_{date_suffix}.json"

    rows = [item.model_dump(mode="json", by_alias=True) for item in validated_data]
    pd.DataFrame(rows).to_csv(csv_path, index=False)
    logger.info(f"✅ Report saved to: {csv_path}")

    if settings.SAVE_JSON_OUTPUT:
        with open(json_path, "w", encoding="utf-8") as f:
            json.dump(rows, f, indent=2)
        logger.info(f"✅ JSON output saved to: {json_path}")
    else:
        logger.info("INFO: Skipping JSON file save as per configuration.")

    return csv_path
