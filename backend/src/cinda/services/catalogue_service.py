"""Read-only shoe catalogue, loaded once per process."""

import json
import logging
from pathlib import Path
from types import MappingProxyType
from typing import Iterable, Iterator, Optional

from cinda.models.profile import OwnedShoe
from cinda.models.shoe import Shoe

logger = logging.getLogger(__name__)


class CatalogueUnavailableError(RuntimeError):
    """Raised when the shoe catalogue is missing or empty."""


class CatalogueService:
    """Immutable collection of catalogue shoes shared by every request."""

    def __init__(
        self,
        knowledge_dir: Optional[Path] = None,
        filename: str = "shoes.json",
        shoes: Optional[Iterable[Shoe]] = None,
    ):
        if knowledge_dir is None:
            knowledge_dir = Path(__file__).parents[4] / "knowledge"
        self.knowledge_dir = Path(knowledge_dir)
        self.filename = filename
        if shoes is None:
            loaded = self._load_data()
        else:
            loaded = list(shoes)
        self._shoes: tuple[Shoe, ...] = self._dedupe(loaded)
        self._by_id = MappingProxyType({shoe.shoe_id: shoe for shoe in self._shoes})

    @classmethod
    def from_settings(cls, settings) -> "CatalogueService":
        """Load the catalogue from the configured knowledge directory."""
        knowledge_dir = Path(settings.knowledge_dir) if settings.knowledge_dir else None
        return cls(knowledge_dir, settings.catalogue_file)

    def _load_data(self) -> list[Shoe]:
        """Load and validate catalogue records."""
        path = self.knowledge_dir / self.filename
        if not path.exists():
            logger.warning(f"Shoe catalogue not found at {path}")
            return []

        try:
            with open(path) as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Could not read shoe catalogue {path}: {e}")
            return []

        records = data.get("shoes", []) if isinstance(data, dict) else data
        if not isinstance(records, list):
            logger.error(f"Shoe catalogue {path} has no list of shoes")
            return []

        shoes: list[Shoe] = []
        for record in records:
            if not isinstance(record, dict):
                logger.warning(f"Skipping non-object catalogue record: {record!r}")
                continue
            try:
                shoes.append(Shoe.from_dict(record))
            except (ValueError, TypeError) as e:
                logger.warning(f"Skipping invalid catalogue record: {e}")

        logger.info(f"Loaded {len(shoes)} shoes from {path}")
        return shoes

    @staticmethod
    def _dedupe(shoes: list[Shoe]) -> tuple[Shoe, ...]:
        seen: set[str] = set()
        unique: list[Shoe] = []
        for shoe in shoes:
            if shoe.shoe_id in seen:
                logger.warning(f"Duplicate catalogue shoe_id {shoe.shoe_id}, keeping first")
                continue
            seen.add(shoe.shoe_id)
            unique.append(shoe)
        return tuple(unique)

    @property
    def shoes(self) -> tuple[Shoe, ...]:
        return self._shoes

    @property
    def is_available(self) -> bool:
        return bool(self._shoes)

    def ensure_available(self) -> None:
        """Raise CatalogueUnavailableError if there is nothing to recommend from."""
        if not self._shoes:
            raise CatalogueUnavailableError("Shoe catalogue unavailable")

    def get(self, shoe_id: str) -> Optional[Shoe]:
        return self._by_id.get(shoe_id)

    def resolve(self, owned_shoes: Iterable[OwnedShoe]) -> list[tuple[OwnedShoe, Shoe]]:
        """Pair owned shoes with their catalogue records, skipping unknown ids."""
        resolved = []
        for owned in owned_shoes:
            shoe = self._by_id.get(owned.shoe_id)
            if shoe is None:
                logger.debug(f"Owned shoe {owned.shoe_id} not in catalogue")
                continue
            resolved.append((owned, shoe))
        return resolved

    def brands(self) -> list[str]:
        return sorted({shoe.brand for shoe in self._shoes})

    def __len__(self) -> int:
        return len(self._shoes)

    def __iter__(self) -> Iterator[Shoe]:
        return iter(self._shoes)

    def __contains__(self, shoe_id: object) -> bool:
        return shoe_id in self._by_id
