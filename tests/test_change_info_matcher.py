"""Tests for ChangeInfoMatcher and the ChangeInfo dispatch functions."""

import re

import pytest

from site_history.changeinfo.domain.value_objects import (
    ChangeInfoEnvelope,
    EntityChangeInfo,
    PluginChangeInfo,
    RevertChangeInfo,
    ThemeChangeInfo,
    TrackingChangeInfo,
    UntrackedChangeInfo,
    WordPressUpdateChangeInfo,
    describe,
    list_changes,
    to_change_payload,
)
from site_history.changeinfo.services.matcher import ChangeInfoMatcher, ChangeInfoRule


@pytest.fixture
def matcher() -> ChangeInfoMatcher:
    return ChangeInfoMatcher()


class TestVariants:
    """Each action syntax decodes to its variant."""

    def test_entity_change_with_tags(self, matcher):
        message = (
            "Edited post 'Hello world'\n\n"
            "VP-Action: post/edit/F0E1D2\n"
            "VP-Post-Title: Hello world\n"
            "VP-Post-Type: post\n"
        )

        change_info = matcher.build_change_info(message)

        assert change_info == EntityChangeInfo(
            entity_name="post",
            action="edit",
            entity_id="F0E1D2",
            custom_tags={"VP-Post-Title": "Hello world", "VP-Post-Type": "post"},
        )
        assert describe(change_info) == "Edited post 'Hello world'"

    def test_entity_change_without_title_uses_id(self, matcher):
        change_info = matcher.build_change_info("VP-Action: comment/create/ABC")

        assert describe(change_info) == "Created comment ABC"

    def test_plugin_change(self, matcher):
        message = "VP-Action: plugin/activate/akismet/akismet.php\nVP-Plugin-Name: Akismet"

        change_info = matcher.build_change_info(message)

        assert isinstance(change_info, PluginChangeInfo)
        assert change_info.plugin_file == "akismet/akismet.php"
        assert change_info.plugin_name == "Akismet"
        assert describe(change_info) == "Activated plugin 'Akismet'"

    def test_theme_change(self, matcher):
        message = "VP-Action: theme/switch/twentyfifteen\nVP-Theme-Name: Twenty Fifteen"

        change_info = matcher.build_change_info(message)

        assert isinstance(change_info, ThemeChangeInfo)
        assert describe(change_info) == "Switched to theme 'Twenty Fifteen'"

    def test_wordpress_update(self, matcher):
        change_info = matcher.build_change_info("VP-Action: wordpress/update/4.5.2")

        assert change_info == WordPressUpdateChangeInfo(new_version="4.5.2")
        assert describe(change_info) == "WordPress updated to version 4.5.2"

    def test_undo_and_rollback(self, matcher):
        undo = matcher.build_change_info("VP-Action: versionpress/undo/0123456789abcdef")
        rollback = matcher.build_change_info("VP-Action: versionpress/rollback/abcdef0")

        assert undo == RevertChangeInfo(action="undo", commit_hash="0123456789abcdef")
        assert describe(undo) == "Reverted change 0123456"
        assert rollback == RevertChangeInfo(action="rollback", commit_hash="abcdef0")
        assert describe(rollback) == "Rollback to abcdef0"

    def test_tracking_change(self, matcher):
        change_info = matcher.build_change_info("VP-Action: versionpress/activate")

        assert change_info == TrackingChangeInfo(action="activate")

    def test_plugin_rule_wins_over_generic_entity_rule(self, matcher):
        change_info = matcher.build_change_info("VP-Action: plugin/install/hello.php")

        assert isinstance(change_info, PluginChangeInfo)


class TestEnvelope:
    def test_multiple_actions_form_an_envelope_in_message_order(self, matcher):
        message = (
            "Several changes\n\n"
            "VP-Action: post/create/AAA\n"
            "VP-Post-Title: First\n"
            "\n"
            "VP-Action: postmeta/create/BBB\n"
            "VP-Action: plugin/update/hello.php\n"
            "VP-Plugin-Name: Hello Dolly\n"
        )

        change_info = matcher.build_change_info(message)

        assert isinstance(change_info, ChangeInfoEnvelope)
        assert [type(c) for c in change_info.change_infos] == [
            EntityChangeInfo,
            EntityChangeInfo,
            PluginChangeInfo,
        ]
        assert change_info.change_infos[0].custom_tags == {"VP-Post-Title": "First"}
        assert change_info.change_infos[1].custom_tags == {}
        assert describe(change_info) == "Created post 'First' (and 2 more)"

    def test_list_changes_payloads(self, matcher):
        message = (
            "VP-Action: post/delete/AAA\n"
            "VP-Action: theme/install/twentysixteen\n"
            "VP-Theme-Name: Twenty Sixteen\n"
            "VP-Action: wordpress/update/4.6"
        )

        payloads = [to_change_payload(c) for c in list_changes(matcher.build_change_info(message))]

        assert payloads == [
            {"type": "post", "action": "delete", "tags": {}, "name": "AAA"},
            {
                "type": "theme",
                "action": "install",
                "tags": {"VP-Theme-Name": "Twenty Sixteen"},
                "name": "Twenty Sixteen",
            },
            {"type": "wordpress", "action": "update", "tags": {}, "name": "4.6"},
        ]


class TestTotality:
    """Parsing never fails; unknown input degrades to an untracked change."""

    @pytest.mark.parametrize(
        "message",
        [
            "",
            "Manual commit by a developer",
            "VP-Action:",
            "VP-Action: nonsense",
            "VP-Action: a/b/c/d/e with spaces",
            "VP-Post-Title: tag without action",
            "\x00\x1f binary \xff",
            "VP-Action: versionpress/undo/not-a-hash",
        ],
    )
    def test_parse_is_total(self, matcher, message):
        change_info = matcher.parse(message)

        assert change_info is not None
        assert isinstance(describe(change_info), str)

    def test_plain_message_keeps_first_line_as_description(self, matcher):
        change_info = matcher.build_change_info("Fix typo\n\nLonger explanation")

        assert change_info == UntrackedChangeInfo(message="Fix typo\n\nLonger explanation")
        assert describe(change_info) == "Fix typo"
        assert list_changes(change_info) == ()

    def test_non_string_message(self, matcher):
        assert matcher.build_change_info(None) == UntrackedChangeInfo(message="")

    def test_unknown_action_becomes_untracked(self, matcher):
        change_info = matcher.build_change_info("Something\n\nVP-Action: nonsense")

        assert isinstance(change_info, UntrackedChangeInfo)
        assert describe(change_info) == "Something"


class TestRegistry:
    def test_custom_rule_takes_priority(self, matcher):
        rule = ChangeInfoRule(
            re.compile(r"^post/(?P<action>\w+)/(?P<id>\w+)$"),
            lambda m, tags: EntityChangeInfo(
                entity_name="article", action=m["action"], entity_id=m["id"], custom_tags=tags
            ),
        )

        change_info = matcher.with_rule(rule).build_change_info("VP-Action: post/edit/X1")

        assert change_info.entity_name == "article"
        assert matcher.build_change_info("VP-Action: post/edit/X1").entity_name == "post"
