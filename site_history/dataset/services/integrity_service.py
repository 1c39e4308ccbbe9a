"""Referential integrity validation of proposed dataset states."""

import logging

from site_history.dataset.domain.value_objects import (
    WORDPRESS_SCHEMA,
    DatasetSchema,
    DatasetSnapshot,
    EntityKey,
    IntegrityViolation,
)

logger = logging.getLogger(__name__)


class ReferentialIntegrityChecker:
    """Detects references a revert would leave dangling.

    Only the difference between the live and the target state is inspected:
    entities that the revert writes must reference entities present in the
    target state, and entities that the revert removes must not be referenced
    by anything left in the target state. Dangling references that already
    exist in the live state are not reported.
    """

    def __init__(self, schema: DatasetSchema = WORDPRESS_SCHEMA) -> None:
        """
        Initialize ReferentialIntegrityChecker.

        Args:
            schema: Relation rules of the dataset
        """
        self._schema = schema

    def check(self, target: DatasetSnapshot, live: DatasetSnapshot) -> bool:
        """Check that the target state introduces no dangling references."""
        return not self.find_violations(target, live)

    def find_violations(
        self, target: DatasetSnapshot, live: DatasetSnapshot
    ) -> tuple[IntegrityViolation, ...]:
        """
        List references that would become dangling in the target state.

        Args:
            target: Proposed state after the revert
            live: Current state

        Returns:
            Violations sorted by source entity and field
        """
        written: list[EntityKey] = []
        removed: set[EntityKey] = set()
        for key in set(target.entities) | set(live.entities):
            target_fields = target.get(key)
            if target_fields == live.get(key):
                continue
            if target_fields is None:
                removed.add(key)
            else:
                written.append(key)

        violations: set[IntegrityViolation] = set()
        for key in written:
            violations.update(self._dangling_references(key, target))

        if removed:
            removed_types = {key.entity_type for key in removed}
            referencing_types = set().union(
                *(self._schema.referencing_types(t) for t in removed_types)
            )
            for key, fields in target.items():
                if key.entity_type not in referencing_types:
                    continue
                for rule in self._schema.rules_for(key.entity_type):
                    referenced = rule.referenced_key(fields)
                    if referenced in removed:
                        violations.add(
                            IntegrityViolation(source=key, field=rule.field, missing=referenced)
                        )

        if violations:
            logger.info(f"Found {len(violations)} referential integrity violations")
        return tuple(sorted(violations, key=lambda v: (v.source, v.field)))

    def _dangling_references(
        self, key: EntityKey, target: DatasetSnapshot
    ) -> list[IntegrityViolation]:
        fields = target.get(key) or {}
        violations = []
        for rule in self._schema.rules_for(key.entity_type):
            referenced = rule.referenced_key(fields)
            if referenced is not None and not target.contains(referenced):
                violations.append(
                    IntegrityViolation(source=key, field=rule.field, missing=referenced)
                )
        return violations
