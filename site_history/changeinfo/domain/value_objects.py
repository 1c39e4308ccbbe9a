"""Value objects describing what a commit means.

Every commit message decodes to exactly one ChangeInfo. The variants form a
closed set; code that needs per-variant behaviour dispatches on the variant in
a single ``match`` statement instead of subclass overrides.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Union

ACTION_TAG = "VP-Action"
PLUGIN_NAME_TAG = "VP-Plugin-Name"
THEME_NAME_TAG = "VP-Theme-Name"


@dataclass(frozen=True)
class EntityChangeInfo:
    """A tracked database entity was created, edited or deleted."""

    entity_name: str
    action: str
    entity_id: str
    custom_tags: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class PluginChangeInfo:
    """A plugin was installed, activated, updated or removed."""

    action: str
    plugin_file: str
    custom_tags: Mapping[str, str] = field(default_factory=dict)

    @property
    def plugin_name(self) -> str:
        return self.custom_tags.get(PLUGIN_NAME_TAG, self.plugin_file)


@dataclass(frozen=True)
class ThemeChangeInfo:
    """A theme was installed, switched to, updated or removed."""

    action: str
    theme_id: str
    custom_tags: Mapping[str, str] = field(default_factory=dict)

    @property
    def theme_name(self) -> str:
        return self.custom_tags.get(THEME_NAME_TAG, self.theme_id)


@dataclass(frozen=True)
class WordPressUpdateChangeInfo:
    """WordPress core was updated."""

    new_version: str


@dataclass(frozen=True)
class RevertChangeInfo:
    """A previous commit was undone, or the site was rolled back to it."""

    action: str
    commit_hash: str


@dataclass(frozen=True)
class TrackingChangeInfo:
    """Change tracking itself was activated or deactivated."""

    action: str


@dataclass(frozen=True)
class UntrackedChangeInfo:
    """A commit whose message carries no recognised change description."""

    message: str


TrackedChangeInfo = Union[
    EntityChangeInfo,
    PluginChangeInfo,
    ThemeChangeInfo,
    WordPressUpdateChangeInfo,
    RevertChangeInfo,
    TrackingChangeInfo,
]


@dataclass(frozen=True)
class ChangeInfoEnvelope:
    """Several changes recorded by a single commit, in message order."""

    change_infos: tuple[Union[TrackedChangeInfo, UntrackedChangeInfo], ...]


ChangeInfo = Union[TrackedChangeInfo, UntrackedChangeInfo, ChangeInfoEnvelope]

_PAST_TENSE = {
    "create": "Created",
    "edit": "Edited",
    "delete": "Deleted",
    "trash": "Trashed",
    "untrash": "Restored",
    "install": "Installed",
    "activate": "Activated",
    "deactivate": "Deactivated",
    "update": "Updated",
    "switch": "Switched to",
    "approve": "Approved",
    "unapprove": "Unapproved",
    "spam": "Marked as spam",
    "unspam": "Marked as not spam",
}

# Tags holding a human readable title of the changed entity, by entity name.
_TITLE_TAGS = {
    "post": "VP-Post-Title",
    "comment": "VP-Comment-Author",
    "user": "VP-User-Login",
    "term": "VP-Term-Name",
    "option": "VP-Option-Name",
}


def _past_tense(action: str) -> str:
    return _PAST_TENSE.get(action, action.replace("-", " ").capitalize())


def describe(change_info: ChangeInfo) -> str:
    """Render the human readable description of a change."""
    match change_info:
        case EntityChangeInfo(entity_name=name, action=action, entity_id=entity_id):
            title = change_info.custom_tags.get(_TITLE_TAGS.get(name, ""), "")
            subject = f"'{title}'" if title else entity_id
            return f"{_past_tense(action)} {name.replace('_', ' ')} {subject}"
        case PluginChangeInfo(action=action):
            return f"{_past_tense(action)} plugin '{change_info.plugin_name}'"
        case ThemeChangeInfo(action=action):
            return f"{_past_tense(action)} theme '{change_info.theme_name}'"
        case WordPressUpdateChangeInfo(new_version=version):
            return f"WordPress updated to version {version}"
        case RevertChangeInfo(action="rollback", commit_hash=commit_hash):
            return f"Rollback to {commit_hash[:7]}"
        case RevertChangeInfo(commit_hash=commit_hash):
            return f"Reverted change {commit_hash[:7]}"
        case TrackingChangeInfo(action=action):
            return f"{_past_tense(action)} change tracking"
        case UntrackedChangeInfo(message=message):
            lines = message.strip().splitlines()
            return lines[0] if lines else "Untracked change"
        case ChangeInfoEnvelope(change_infos=change_infos):
            if not change_infos:
                return "Untracked change"
            description = describe(change_infos[0])
            if len(change_infos) > 1:
                description += f" (and {len(change_infos) - 1} more)"
            return description
    raise TypeError(f"Unknown change info: {change_info!r}")


def to_change_payload(change_info: TrackedChangeInfo | UntrackedChangeInfo) -> dict:
    """Render a single change as a JSON-ready dict with type, action, tags and name."""
    match change_info:
        case EntityChangeInfo():
            return {
                "type": change_info.entity_name,
                "action": change_info.action,
                "tags": dict(change_info.custom_tags),
                "name": change_info.entity_id,
            }
        case PluginChangeInfo():
            return {
                "type": "plugin",
                "action": change_info.action,
                "tags": dict(change_info.custom_tags),
                "name": change_info.plugin_name,
            }
        case ThemeChangeInfo():
            return {
                "type": "theme",
                "action": change_info.action,
                "tags": dict(change_info.custom_tags),
                "name": change_info.theme_name,
            }
        case WordPressUpdateChangeInfo():
            return {
                "type": "wordpress",
                "action": "update",
                "tags": {},
                "name": change_info.new_version,
            }
        case RevertChangeInfo():
            return {
                "type": "versionpress",
                "action": change_info.action,
                "tags": {},
                "name": change_info.commit_hash,
            }
        case TrackingChangeInfo():
            return {"type": "versionpress", "action": change_info.action, "tags": {}}
        case UntrackedChangeInfo():
            return {}
    raise TypeError(f"Unknown change info: {change_info!r}")


def list_changes(change_info: ChangeInfo) -> tuple[TrackedChangeInfo, ...]:
    """Get the tracked changes carried by a commit, in message order."""
    match change_info:
        case ChangeInfoEnvelope(change_infos=change_infos):
            return tuple(c for c in change_infos if not isinstance(c, UntrackedChangeInfo))
        case UntrackedChangeInfo():
            return ()
    return (change_info,)
