"""JSON export of stored records as self-contained documents."""

import json
import logging
from pathlib import Path
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class Exportable(Protocol):
    def to_dict(self) -> dict[str, Any]: ...


def to_document(record: Exportable) -> dict[str, Any]:
    """Return the full serializable document for a stored record."""
    return record.to_dict()


def dumps(document: dict[str, Any] | list[Any]) -> str:
    """Serialize a document to indented JSON text."""
    return json.dumps(document, indent=2, ensure_ascii=False, default=str)


def export_json(record: Exportable, filepath: Path) -> Path:
    """Write a record's export document to ``filepath``.

    Args:
        record: Any model with a ``to_dict`` method
        filepath: Destination file; parent directories are created

    Returns:
        The path written to

    """
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)
    with open(filepath, "w", encoding="utf-8") as f:
        f.write(dumps(to_document(record)))
    logger.info(f"Exported {type(record).__name__} to {filepath}")
    return filepath
