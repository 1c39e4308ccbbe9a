"""Decoding of commit messages into ChangeInfo values."""

import logging
import re
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass

from site_history.changeinfo.domain.value_objects import (
    ACTION_TAG,
    ChangeInfo,
    ChangeInfoEnvelope,
    EntityChangeInfo,
    PluginChangeInfo,
    RevertChangeInfo,
    ThemeChangeInfo,
    TrackedChangeInfo,
    TrackingChangeInfo,
    UntrackedChangeInfo,
    WordPressUpdateChangeInfo,
)

logger = logging.getLogger(__name__)

_TRAILER_PATTERN = re.compile(r"^(?P<key>(?:X-)?VP-[A-Za-z0-9-]+):\s*(?P<value>.*?)\s*$")


@dataclass(frozen=True)
class ActionBlock:
    """A ``VP-Action`` trailer together with the tags that follow it."""

    action: str
    tags: Mapping[str, str]


@dataclass(frozen=True)
class ChangeInfoRule:
    """Maps actions matching a pattern to a ChangeInfo variant."""

    pattern: re.Pattern[str]
    factory: Callable[[re.Match[str], Mapping[str, str]], TrackedChangeInfo]


DEFAULT_RULES: tuple[ChangeInfoRule, ...] = (
    ChangeInfoRule(
        re.compile(r"^versionpress/(?P<action>undo|rollback)/(?P<hash>[0-9a-fA-F]{4,40})$"),
        lambda m, tags: RevertChangeInfo(action=m["action"], commit_hash=m["hash"]),
    ),
    ChangeInfoRule(
        re.compile(r"^versionpress/(?P<action>[\w-]+)$"),
        lambda m, tags: TrackingChangeInfo(action=m["action"]),
    ),
    ChangeInfoRule(
        re.compile(r"^wordpress/update/(?P<version>\S+)$"),
        lambda m, tags: WordPressUpdateChangeInfo(new_version=m["version"]),
    ),
    ChangeInfoRule(
        re.compile(r"^plugin/(?P<action>[\w-]+)/(?P<file>.+)$"),
        lambda m, tags: PluginChangeInfo(
            action=m["action"], plugin_file=m["file"], custom_tags=tags
        ),
    ),
    ChangeInfoRule(
        re.compile(r"^theme/(?P<action>[\w-]+)/(?P<theme>.+)$"),
        lambda m, tags: ThemeChangeInfo(action=m["action"], theme_id=m["theme"], custom_tags=tags),
    ),
    ChangeInfoRule(
        re.compile(r"^(?P<entity>[\w-]+)/(?P<action>[\w-]+)/(?P<id>[^/\s]+)$"),
        lambda m, tags: EntityChangeInfo(
            entity_name=m["entity"],
            action=m["action"],
            entity_id=m["id"],
            custom_tags=tags,
        ),
    ),
)


class ChangeInfoMatcher:
    """Builds ChangeInfo values from commit messages.

    A message may hold several ``VP-Action`` trailers; each one starts a block
    collecting the ``VP-*`` tags below it. Each block is matched against the rules
    in order and the first matching rule decides the variant. Matching is total:
    anything unrecognised becomes an UntrackedChangeInfo.
    """

    def __init__(self, rules: Sequence[ChangeInfoRule] = DEFAULT_RULES) -> None:
        """
        Initialize ChangeInfoMatcher.

        Args:
            rules: Ordered matching rules, more specific rules first
        """
        self._rules = tuple(rules)

    def with_rule(self, rule: ChangeInfoRule) -> "ChangeInfoMatcher":
        """Get a matcher that tries rule before the existing ones."""
        return ChangeInfoMatcher((rule, *self._rules))

    def build_change_info(self, message: str) -> ChangeInfo:
        """
        Decode a commit message.

        Args:
            message: Full commit message

        Returns:
            A single ChangeInfo, an envelope for several changes, or an
            UntrackedChangeInfo wrapping the raw message
        """
        if not isinstance(message, str):
            return UntrackedChangeInfo(message="" if message is None else str(message))

        blocks = self._split_blocks(message)
        if not blocks:
            return UntrackedChangeInfo(message=message)

        change_infos = tuple(self._match_block(block, message) for block in blocks)
        if len(change_infos) == 1:
            return change_infos[0]
        return ChangeInfoEnvelope(change_infos=change_infos)

    parse = build_change_info

    def _match_block(
        self, block: ActionBlock, message: str
    ) -> TrackedChangeInfo | UntrackedChangeInfo:
        for rule in self._rules:
            match = rule.pattern.match(block.action)
            if match is not None:
                try:
                    return rule.factory(match, block.tags)
                except (KeyError, IndexError, ValueError) as e:
                    logger.debug(f"Rule {rule.pattern.pattern} rejected {block.action!r}: {e}")
        logger.debug(f"No rule matched action {block.action!r}")
        return UntrackedChangeInfo(message=message)

    @staticmethod
    def _split_blocks(message: str) -> list[ActionBlock]:
        blocks: list[ActionBlock] = []
        action: str | None = None
        tags: dict[str, str] = {}
        for line in message.splitlines():
            trailer = _TRAILER_PATTERN.match(line.strip())
            if trailer is None:
                continue
            key, value = trailer["key"], trailer["value"]
            if key == ACTION_TAG:
                if action is not None:
                    blocks.append(ActionBlock(action=action, tags=tags))
                action, tags = value, {}
            elif action is not None:
                tags[key] = value
        if action is not None:
            blocks.append(ActionBlock(action=action, tags=tags))
        return blocks
