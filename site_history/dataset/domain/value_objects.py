"""Value objects for the mirrored site dataset."""

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field


@dataclass(frozen=True, order=True)
class EntityKey:
    """Identity of a mirrored entity."""

    entity_type: str
    entity_id: str

    def __str__(self) -> str:
        return f"{self.entity_type}/{self.entity_id}"


@dataclass(frozen=True)
class DatasetSnapshot:
    """State of every mirrored entity at one point in history.

    Attributes:
        entities: Field values of each entity, by key
    """

    entities: Mapping[EntityKey, Mapping[str, str]] = field(default_factory=dict)

    def contains(self, key: EntityKey) -> bool:
        return key in self.entities

    def get(self, key: EntityKey) -> Mapping[str, str] | None:
        return self.entities.get(key)

    def items(self) -> Iterator[tuple[EntityKey, Mapping[str, str]]]:
        return iter(self.entities.items())

    def overlay(
        self, changes: Iterable[tuple[EntityKey, Mapping[str, str] | None]]
    ) -> "DatasetSnapshot":
        """
        Get a new snapshot with the given entities replaced.

        Args:
            changes: Pairs of key and new field values; None removes the entity

        Returns:
            The resulting snapshot; this one is left untouched
        """
        entities = dict(self.entities)
        for key, fields in changes:
            if fields is None:
                entities.pop(key, None)
            else:
                entities[key] = fields
        return DatasetSnapshot(entities=entities)

    def __len__(self) -> int:
        return len(self.entities)


@dataclass(frozen=True)
class RelationRule:
    """A field of one entity type that references an entity of another type."""

    source_type: str
    field: str
    target_type: str

    # Values meaning "no reference", like WordPress's zero foreign keys.
    NULL_VALUES = frozenset({"", "0"})

    def referenced_key(self, fields: Mapping[str, str]) -> EntityKey | None:
        value = fields.get(self.field, "").strip()
        if value in self.NULL_VALUES:
            return None
        return EntityKey(self.target_type, value)


@dataclass(frozen=True)
class DatasetSchema:
    """Relation rules of the mirrored dataset."""

    rules: tuple[RelationRule, ...]

    def rules_for(self, entity_type: str) -> tuple[RelationRule, ...]:
        return tuple(rule for rule in self.rules if rule.source_type == entity_type)

    def referencing_types(self, target_type: str) -> frozenset[str]:
        return frozenset(rule.source_type for rule in self.rules if rule.target_type == target_type)


WORDPRESS_SCHEMA = DatasetSchema(
    rules=(
        RelationRule("post", "post_author", "user"),
        RelationRule("post", "post_parent", "post"),
        RelationRule("comment", "comment_post_ID", "post"),
        RelationRule("comment", "comment_parent", "comment"),
        RelationRule("comment", "user_id", "user"),
        RelationRule("postmeta", "vp_post_id", "post"),
        RelationRule("commentmeta", "vp_comment_id", "comment"),
        RelationRule("usermeta", "vp_user_id", "user"),
        RelationRule("term_taxonomy", "vp_term_id", "term"),
        RelationRule("term_relationship", "vp_object_id", "post"),
        RelationRule("term_relationship", "vp_term_taxonomy_id", "term_taxonomy"),
    )
)


@dataclass(frozen=True)
class IntegrityViolation:
    """A reference that would point to a missing entity."""

    source: EntityKey
    field: str
    missing: EntityKey

    def __str__(self) -> str:
        return f"{self.source}.{self.field} references missing {self.missing}"
