"""Unit tests for action item extraction."""

from fellow_mcp_server.extractor import (
    extract_action_items,
    normalize_us_date,
    parse_assignee_and_due_date,
    parse_due_date,
)


class TestLinePatterns:
    """Each line yields at most one item, from the first matching pattern."""

    def test_completed_checkbox_with_mention_and_iso_due(self):
        items = extract_action_items("- [x] Finish report @alice due: 2024-03-01")
        assert len(items) == 1
        item = items[0]
        assert item.is_completed is True
        assert item.content == "Finish report @alice due: 2024-03-01"
        assert item.assignee == "alice"
        assert item.due_date == "2024-03-01"

    def test_open_checkbox_with_us_due_date(self):
        items = extract_action_items("- [ ] Review PR by 3/5/24")
        assert len(items) == 1
        assert items[0].is_completed is False
        assert items[0].due_date == "2024-03-05"
        assert items[0].assignee is None

    def test_uppercase_x_and_star_bullet(self):
        items = extract_action_items("* [X] Ship it")
        assert items[0].is_completed is True
        assert items[0].content == "Ship it"

    def test_labelled_lines(self):
        content = "\n".join(
            [
                "Action Item: call vendor",
                "- Action: book room",
                "todo: write tests",
                "To-Do: clean up",
                "To Do: plan offsite",
            ]
        )
        items = extract_action_items(content)
        assert [i.content for i in items] == [
            "call vendor",
            "book room",
            "write tests",
            "clean up",
            "plan offsite",
        ]
        assert all(not i.is_completed for i in items)

    def test_mention_prefixed_bullet(self):
        items = extract_action_items("- @bob: draft the plan by 3/8/24")
        assert len(items) == 1
        assert items[0].content == "@bob: draft the plan by 3/8/24"
        assert items[0].assignee == "bob"
        assert items[0].due_date == "2024-03-08"

    def test_mention_prefix_with_spaces_keeps_full_name(self):
        items = extract_action_items("- @Jane Doe - send the deck")
        assert items[0].assignee == "Jane Doe"
        assert items[0].content == "@Jane Doe: send the deck"

    def test_checkbox_beats_mention_prefix(self):
        items = extract_action_items("- [ ] @carol: follow up")
        assert len(items) == 1
        assert items[0].content == "@carol: follow up"
        assert items[0].assignee == "carol"

    def test_plain_lines_are_ignored(self):
        content = "# Agenda\n\nWe talked about the launch.\n- a normal bullet\n"
        assert extract_action_items(content) == []

    def test_empty_content(self):
        assert extract_action_items("") == []
        assert extract_action_items(None) == []

    def test_document_order_is_kept(self):
        content = "TODO: first\n- [ ] second\n- @dan: third"
        assert [i.content for i in extract_action_items(content)] == [
            "first",
            "second",
            "@dan: third",
        ]


class TestDueDates:
    """Due date heuristics."""

    def test_iso_wins_over_us(self):
        assert parse_due_date("due 3/9/24 or deadline 2024-03-10") == "2024-03-10"

    def test_four_digit_us_year(self):
        assert parse_due_date("deadline: 12/1/2025") == "2025-12-01"

    def test_keyword_is_case_insensitive(self):
        assert parse_due_date("DUE 2024-07-04") == "2024-07-04"

    def test_date_without_keyword_is_ignored(self):
        assert parse_due_date("meeting on 2024-03-01") is None

    def test_impossible_dates_yield_nothing(self):
        assert parse_due_date("due 2024-13-45") is None
        assert parse_due_date("by 2/30/24") is None

    def test_normalize_us_date(self):
        assert normalize_us_date("3", "5", "24") == "2024-03-05"
        assert normalize_us_date("13", "1", "24") is None

    def test_assignee_is_first_mention(self):
        assert parse_assignee_and_due_date("ping @erin and @frank") == ("erin", None)
