"""INI-file implementation of the mirrored dataset storage."""

import configparser
import io
import logging
import re
from collections.abc import Mapping
from pathlib import Path, PurePosixPath

from site_history.dataset.domain.value_objects import DatasetSnapshot, EntityKey
from site_history.dataset.repositories.interfaces import EntityStorage

logger = logging.getLogger(__name__)

_ESCAPES = str.maketrans({"\\": "\\\\", '"': '\\"', "\n": "\\n", "\r": "\\r", "\t": "\\t"})
_UNESCAPES = {"n": "\n", "r": "\r", "t": "\t"}
_ESCAPE_PATTERN = re.compile(r"\\(.)", re.DOTALL)


class IniEntityStorage(EntityStorage):
    """Entities stored one per file as ``<mirror_dir>/<entity_type>/<entity_id>.ini``.

    Each file holds a single section named after the entity id. Keys are written
    in sorted order so that a field change touches exactly one line. Values that
    configparser would not keep verbatim (line breaks, tabs, surrounding
    whitespace, a leading quote) are written double-quoted with backslash escapes.
    """

    FILE_SUFFIX = ".ini"

    def __init__(self, repo_path: Path, mirror_dir: str = "db") -> None:
        """
        Initialize IniEntityStorage.

        Args:
            repo_path: Path to the git repository
            mirror_dir: Directory, relative to repository root, holding the entities
        """
        self._repo_path = Path(repo_path)
        self._mirror_dir = PurePosixPath(mirror_dir)

    def key_for_path(self, file_path: str) -> EntityKey | None:
        path = PurePosixPath(file_path)
        if not self.is_mirrored_path(file_path) or path.suffix != self.FILE_SUFFIX:
            return None
        relative = path.relative_to(self._mirror_dir)
        if len(relative.parts) != 2 or relative.name.startswith("."):
            return None
        return EntityKey(entity_type=relative.parts[0], entity_id=relative.stem)

    def path_for_key(self, key: EntityKey) -> str:
        return str(self._mirror_dir / key.entity_type / f"{key.entity_id}{self.FILE_SUFFIX}")

    def is_mirrored_path(self, file_path: str) -> bool:
        return PurePosixPath(file_path).is_relative_to(self._mirror_dir)

    def parse(self, key: EntityKey, content: str) -> dict[str, str]:
        parser = self._new_parser()
        try:
            parser.read_string(content, source=self.path_for_key(key))
        except configparser.Error as e:
            raise ValueError(f"Invalid entity file for {key}: {e}") from e
        if not parser.has_section(key.entity_id):
            return {}
        return {
            name: self._decode_value(value)
            for name, value in parser.items(key.entity_id, raw=True)
        }

    def serialize(self, key: EntityKey, fields: Mapping[str, str]) -> str:
        parser = self._new_parser()
        parser.add_section(key.entity_id)
        for name in sorted(fields):
            parser.set(key.entity_id, name, self._encode_value(fields[name]))
        buffer = io.StringIO()
        parser.write(buffer)
        return buffer.getvalue()

    def load_snapshot(self) -> DatasetSnapshot:
        root = self._repo_path / self._mirror_dir
        entities: dict[EntityKey, Mapping[str, str]] = {}
        if not root.is_dir():
            return DatasetSnapshot(entities=entities)

        for file in sorted(root.glob(f"*/*{self.FILE_SUFFIX}")):
            relative = file.relative_to(self._repo_path).as_posix()
            key = self.key_for_path(relative)
            if key is None:
                continue
            try:
                entities[key] = self.parse(key, file.read_text(encoding="utf-8"))
            except ValueError as e:
                logger.warning(f"Loading {relative} without its fields: {e}")
                entities[key] = {}
        logger.debug(f"Loaded {len(entities)} entities from {root}")
        return DatasetSnapshot(entities=entities)

    @staticmethod
    def _encode_value(value: str) -> str:
        if value == value.strip() and not value.startswith('"') and value.isprintable():
            return value
        return '"' + value.translate(_ESCAPES) + '"'

    @staticmethod
    def _decode_value(value: str) -> str:
        if len(value) < 2 or not (value.startswith('"') and value.endswith('"')):
            return value
        return _ESCAPE_PATTERN.sub(lambda m: _UNESCAPES.get(m[1], m[1]), value[1:-1])

    @staticmethod
    def _new_parser() -> configparser.ConfigParser:
        parser = configparser.ConfigParser(
            interpolation=None,
            default_section="\x00",
            delimiters=("=",),
            comment_prefixes=(),
            inline_comment_prefixes=None,
        )
        parser.optionxform = str  # type: ignore[assignment, method-assign]
        return parser
