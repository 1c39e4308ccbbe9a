"""Repository interfaces for the mirrored dataset."""

from abc import ABC, abstractmethod
from collections.abc import Mapping

from site_history.dataset.domain.value_objects import DatasetSnapshot, EntityKey


class EntityStorage(ABC):
    """Interface mapping mirrored entities to files of the repository."""

    @abstractmethod
    def key_for_path(self, file_path: str) -> EntityKey | None:
        """
        Get the entity stored in a file.

        Args:
            file_path: Path relative to repository root

        Returns:
            The entity key, or None if the file does not hold an entity
        """
        ...

    @abstractmethod
    def path_for_key(self, key: EntityKey) -> str:
        """Get the path, relative to repository root, of the file holding an entity."""
        ...

    @abstractmethod
    def is_mirrored_path(self, file_path: str) -> bool:
        """Check whether a path lies inside the mirror directory."""
        ...

    @abstractmethod
    def parse(self, key: EntityKey, content: str) -> dict[str, str]:
        """
        Parse the content of an entity file.

        Args:
            key: Entity stored in the file
            content: File content

        Returns:
            Field values of the entity
        """
        ...

    @abstractmethod
    def serialize(self, key: EntityKey, fields: Mapping[str, str]) -> str:
        """Render field values of an entity as file content."""
        ...

    @abstractmethod
    def load_snapshot(self) -> DatasetSnapshot:
        """Read every entity from the working tree."""
        ...
