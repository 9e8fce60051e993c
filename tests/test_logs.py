"""Tests for actions_dash.logs: SGR decoding, highlighters, viewport, search and jump."""

import pytest
from rich.color import Color

from actions_dash import styles
from actions_dash.logs import (
    ANSI_PALETTE,
    SearchState,
    TextDocument,
    Viewport,
    decode_sgr,
    find_matches,
    highlight_log_line,
    highlight_yaml,
    marker_style,
    parse_line_number,
    sgr_segments,
    strip_ansi,
    YAML_BOOL,
    YAML_COMMENT,
    YAML_KEY,
    YAML_NUMBER,
    YAML_STRING,
)


def _spans_with(text, style):
    return [(span.start, span.end) for span in text.spans if span.style == style]


def _hundred_line_log():
    lines = [f"step output {i + 1}" for i in range(100)]
    lines[9] = "ERROR: first failure"
    lines[54] = "an error occurred"
    lines[89] = "final Error line"
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# SGR decoding
# ---------------------------------------------------------------------------


class TestSgrDecoding:
    def test_red_then_reset_gives_two_segments(self):
        segments = sgr_segments("\x1b[31mERROR \x1b[0m: failed")

        assert [text for text, _ in segments] == ["ERROR ", ": failed"]
        assert segments[0][1].color == Color.parse(ANSI_PALETTE[31])
        assert segments[1][1] == styles.BASE

    def test_plain_line_passes_through(self):
        text = decode_sgr("no escapes here")
        assert text.plain == "no escapes here"
        assert text.spans == []

    def test_attributes_accumulate(self):
        segments = sgr_segments("\x1b[1m\x1b[4mbold underline")
        style = segments[0][1]
        assert style.bold is True
        assert style.underline is True

    def test_combined_params(self):
        segments = sgr_segments("\x1b[1;92mok")
        style = segments[0][1]
        assert style.bold is True
        assert style.color == Color.parse("#80ff80")

    def test_faint_and_italic(self):
        style = sgr_segments("\x1b[2;3mx")[0][1]
        assert style.dim is True
        assert style.italic is True

    def test_unknown_codes_are_ignored(self):
        segments = sgr_segments("\x1b[7mtext")
        assert segments == [("text", styles.BASE)]

    def test_extended_color_arguments_are_skipped(self):
        # "5;1" must not be read as blink and bold.
        style = sgr_segments("\x1b[38;5;1mtext")[0][1]
        assert not style.bold

    def test_empty_params_reset(self):
        segments = sgr_segments("\x1b[31mred\x1b[mplain")
        assert segments[1] == ("plain", styles.BASE)

    def test_strip_ansi(self):
        assert strip_ansi("\x1b[31mERROR \x1b[0m: failed") == "ERROR : failed"

    def test_decoded_text_is_plain_content(self):
        text = decode_sgr("\x1b[36mhello\x1b[0m world")
        assert text.plain == "hello world"


# ---------------------------------------------------------------------------
# Marker highlighting
# ---------------------------------------------------------------------------


class TestMarkerHighlight:
    @pytest.mark.parametrize(
        "line,color",
        [
            ("[command]/usr/bin/git checkout", "color(33)"),
            ("##[group]Run actions/checkout@v4", "color(129)"),
            ("##[endgroup]", "color(129)"),
            ("##[error]Process completed with exit code 1.", "color(196)"),
            ("##[warning]Node 16 is deprecated", "color(226)"),
        ],
    )
    def test_marker_classes(self, line, color):
        style = marker_style(line)
        assert style is not None
        assert style.bold is True
        assert style.color == Color.parse(color)

    def test_plain_line_has_no_marker(self):
        assert marker_style("just some output") is None

    def test_marker_found_in_trimmed_content(self):
        assert marker_style("   ##[error]indented   ") is not None

    def test_marker_style_wraps_whole_line(self):
        text = highlight_log_line("##[error]boom")
        assert (0, len("##[error]boom")) in _spans_with(text, marker_style("##[error]"))

    def test_marker_detected_after_sgr_decoding(self):
        text = highlight_log_line("\x1b[31m##[error]\x1b[0mboom")
        assert text.plain == "##[error]boom"
        assert _spans_with(text, marker_style("##[error]"))


# ---------------------------------------------------------------------------
# YAML highlighting
# ---------------------------------------------------------------------------


class TestYamlHighlight:
    def test_key(self):
        text = highlight_yaml("name: CI")
        assert _spans_with(text, YAML_KEY) == [(0, 4)]

    def test_list_item_key(self):
        text = highlight_yaml("  - uses: actions/checkout@v4")
        assert _spans_with(text, YAML_KEY) == [(4, 8)]

    def test_number(self):
        text = highlight_yaml("  timeout-minutes: 30")
        assert _spans_with(text, YAML_NUMBER) == [(19, 21)]

    def test_version_like_tokens_are_not_numbers(self):
        text = highlight_yaml("    runs-on: ubuntu-22.04")
        assert _spans_with(text, YAML_NUMBER) == []

    def test_bool_and_null(self):
        text = highlight_yaml("fail-fast: false")
        assert _spans_with(text, YAML_BOOL) == [(11, 16)]
        assert _spans_with(highlight_yaml("value: null"), YAML_BOOL) == [(7, 11)]

    def test_quoted_strings(self):
        text = highlight_yaml("run: echo 'hello' \"world\"")
        assert _spans_with(text, YAML_STRING) == [(10, 17), (18, 25)]

    def test_trailing_comment(self):
        text = highlight_yaml("on: push # trigger")
        assert text.plain == "on: push # trigger"
        assert _spans_with(text, YAML_COMMENT) == [(9, 18)]

    def test_hash_inside_quotes_is_not_a_comment(self):
        text = highlight_yaml('run: echo "a # b"')
        assert _spans_with(text, YAML_COMMENT) == []

    def test_full_line_comment(self):
        text = highlight_yaml("# comment only")
        assert _spans_with(text, YAML_COMMENT) == [(0, 14)]
        assert _spans_with(text, YAML_KEY) == []

    def test_blank_line(self):
        assert highlight_yaml("   ").spans == []

    def test_carriage_return_is_dropped(self):
        assert highlight_yaml("name: CI\r").plain == "name: CI"


# ---------------------------------------------------------------------------
# Viewport
# ---------------------------------------------------------------------------


class TestViewport:
    def test_max_offset(self):
        assert Viewport(height=10, line_count=25).max_offset == 15
        assert Viewport(height=10, line_count=5).max_offset == 0

    def test_scroll_operations_stay_in_bounds(self):
        for line_count in (0, 1, 5, 30):
            for height in (0, 1, 7, 40):
                for start in range(0, 35, 6):
                    vp = Viewport(height=height, line_count=line_count)
                    vp.show_line(start)
                    for op in (
                        lambda: vp.scroll(1),
                        lambda: vp.scroll(-1),
                        vp.page_up,
                        vp.page_down,
                        vp.home,
                        vp.end,
                        lambda: vp.scroll(1000),
                        lambda: vp.scroll(-1000),
                    ):
                        op()
                        assert 0 <= vp.offset <= max(0, line_count - height)

    def test_page_moves_by_height(self):
        vp = Viewport(height=10, line_count=100)
        vp.page_down()
        assert vp.offset == 10
        vp.page_up()
        assert vp.offset == 0

    def test_home_and_end(self):
        vp = Viewport(height=10, line_count=100)
        vp.end()
        assert vp.offset == 90
        vp.home()
        assert vp.offset == 0

    def test_shrinking_reclamps(self):
        vp = Viewport(height=10, line_count=100)
        vp.end()
        vp.set_line_count(20)
        assert vp.offset == 10
        vp.resize(30)
        assert vp.offset == 0


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------


class TestSearchState:
    def test_find_matches_is_case_insensitive(self):
        assert find_matches(["Error", "fine", "an ERROR"], "error") == [0, 2]

    def test_empty_query_matches_nothing(self):
        assert find_matches(["a", "b"], "") == []

    def test_next_and_previous_cycle(self):
        search = SearchState()
        search.run(["x", "hit", "y", "hit", "hit"], "hit")
        assert search.current == 1
        assert [search.next() for _ in range(3)] == [3, 4, 1]
        assert [search.previous() for _ in range(3)] == [4, 3, 1]

    def test_cursor_never_leaves_range(self):
        search = SearchState()
        search.run(["a1", "a2", "b", "a3"], "a")
        for _ in range(10):
            search.next()
            assert 0 <= search.cursor < len(search.matches)
        for _ in range(10):
            search.previous()
            assert 0 <= search.cursor < len(search.matches)

    def test_no_matches(self):
        search = SearchState()
        assert search.run(["a", "b"], "zzz") is None
        assert search.cursor == -1
        assert search.next() is None
        assert search.previous() is None
        assert search.match_label() == "no matches"

    def test_match_label(self):
        search = SearchState()
        search.run(["hit", "hit"], "hit")
        assert search.match_label() == "match 1/2"


class TestTextDocumentSearch:
    def test_hundred_line_scenario(self):
        doc = TextDocument()
        doc.resize(20)
        doc.set_text(_hundred_line_log())

        doc.confirm_search("error")

        assert doc.search.matches == [9, 54, 89]
        assert doc.viewport.offset == min(9, doc.viewport.max_offset)

    def test_next_match_clamps_to_max_offset(self):
        doc = TextDocument()
        doc.resize(20)
        doc.set_text(_hundred_line_log())
        doc.confirm_search("error")

        doc.next_match()
        assert doc.viewport.offset == 54
        doc.next_match()
        assert doc.viewport.offset == 80
        doc.next_match()
        assert doc.viewport.offset == 9

    def test_previous_match_wraps(self):
        doc = TextDocument()
        doc.resize(20)
        doc.set_text(_hundred_line_log())
        doc.confirm_search("error")

        doc.previous_match()
        assert doc.search.current == 89

    def test_empty_query_clears_matches_and_highlight(self):
        doc = TextDocument()
        doc.resize(20)
        doc.set_text(_hundred_line_log())
        doc.confirm_search("error")

        doc.confirm_search("")

        assert doc.search.matches == []
        assert doc.search.cursor == -1
        assert not doc.search.active
        rows = doc.render(80)
        assert all(span.style != styles.SEARCH_MATCH for row in rows for span in row.spans)

    def test_search_ignores_escape_sequences(self):
        doc = TextDocument()
        doc.resize(5)
        doc.set_text("\x1b[31mfa\x1b[0miled\nok")
        doc.confirm_search("failed")
        assert doc.search.matches == [0]

    def test_search_rerun_when_text_replaced(self):
        doc = TextDocument()
        doc.resize(5)
        doc.set_text("a\nhit")
        doc.confirm_search("hit")
        doc.set_text("hit\nb\nhit")
        assert doc.search.matches == [0, 2]


class TestLineJump:
    def test_parse_line_number(self):
        assert parse_line_number("42") == 42
        assert parse_line_number("") is None
        assert parse_line_number("0") is None
        assert parse_line_number("4a") is None

    def test_jump_beyond_end_clamps(self):
        doc = TextDocument()
        doc.resize(20)
        doc.set_text("\n".join(str(i) for i in range(100)))

        assert doc.jump("500") is True
        assert doc.viewport.offset == doc.viewport.max_offset == 80

    def test_jump_to_line(self):
        doc = TextDocument()
        doc.resize(20)
        doc.set_text("\n".join(str(i) for i in range(100)))
        doc.jump("12")
        assert doc.viewport.offset == 11

    def test_invalid_jump_is_noop(self):
        doc = TextDocument()
        doc.resize(20)
        doc.set_text("\n".join(str(i) for i in range(100)))
        doc.jump("30")
        assert doc.jump("") is False
        assert doc.jump("0") is False
        assert doc.viewport.offset == 29


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


class TestRender:
    def test_line_numbers_are_right_aligned(self):
        doc = TextDocument()
        doc.resize(3)
        doc.set_text("\n".join(f"line {i}" for i in range(1, 101)))

        rows = doc.render(80)

        assert [row.plain for row in rows] == ["  1 | line 1", "  2 | line 2", "  3 | line 3"]

    def test_rows_follow_offset(self):
        doc = TextDocument()
        doc.resize(2)
        doc.set_text("a\nb\nc\nd")
        doc.viewport.end()
        assert [row.plain for row in doc.render()] == ["3 | c", "4 | d"]

    def test_rule_above_step_group_counts_toward_height(self):
        doc = TextDocument()
        doc.resize(3)
        doc.set_text("setup\n##[group]Run actions/checkout@v4\nfetching\nmore")

        rows = doc.render(40)

        assert len(rows) == 3
        assert rows[0].plain == "1 | setup"
        assert set(rows[1].plain) == {"─"}
        assert rows[2].plain.startswith("2 | ##[group]Run")

    @pytest.fixture
    def grouped(self):
        """20 lines with a step group starting at line 15, 10 rows tall."""
        doc = TextDocument()
        doc.resize(10)
        doc.set_text("\n".join("##[group]Run step" if i == 15 else f"l{i}" for i in range(1, 21)))
        return doc

    def test_end_shows_last_line_below_a_rule(self, grouped):
        grouped.viewport.end()

        rows = [row.plain for row in grouped.render(40)]

        assert grouped.viewport.offset == 11
        assert len(rows) == 10
        assert rows[0] == "12 | l12"
        assert set(rows[3]) == {"─"}
        assert rows[4].startswith("15 | ##[group]Run")
        assert rows[-1] == "20 | l20"

    def test_page_down_and_jump_reach_last_line(self, grouped):
        grouped.viewport.page_down()
        grouped.viewport.page_down()
        assert grouped.render(40)[-1].plain == "20 | l20"

        grouped.viewport.home()
        grouped.jump("20")
        assert grouped.render(40)[-1].plain == "20 | l20"

    def test_limit_follows_resize(self, grouped):
        grouped.resize(5)
        grouped.viewport.end()
        assert grouped.viewport.offset == 15
        assert grouped.render(40)[-1].plain == "20 | l20"

    def test_rule_skipped_when_its_line_would_not_fit(self):
        doc = TextDocument()
        doc.resize(1)
        doc.set_text("a\n##[group]Run x")
        doc.viewport.end()

        rows = doc.render(40)

        assert len(rows) == 1
        assert rows[0].plain.startswith("2 | ##[group]Run")

    def test_no_rule_without_marker(self):
        doc = TextDocument(highlighter=highlight_yaml, rule_marker=None)
        doc.resize(3)
        doc.set_text("##[group]Run x\nb")
        assert not any(set(row.plain) == {"─"} for row in doc.render(40))

    def test_first_occurrence_highlighted(self):
        doc = TextDocument()
        doc.resize(5)
        doc.set_text("an error and another error")
        doc.confirm_search("ERROR")

        row = doc.render(80)[0]

        prefix = len("1 | ")
        assert _spans_with(row, styles.SEARCH_MATCH) == [(prefix + 3, prefix + 8)]

    def test_live_query_overrides_confirmed_query(self):
        doc = TextDocument()
        doc.resize(5)
        doc.set_text("alpha beta")
        row = doc.render(80, highlight="beta")[0]
        assert _spans_with(row, styles.SEARCH_MATCH) == [(4 + 6, 4 + 10)]

    def test_underlying_text_not_mutated(self):
        doc = TextDocument()
        doc.resize(5)
        doc.set_text("needle here")
        doc.confirm_search("needle")
        doc.render(80)
        assert doc.lines == ["needle here"]

    def test_empty_log(self):
        doc = TextDocument()
        doc.resize(10)
        doc.set_text("")
        doc.viewport.end()
        assert doc.viewport.offset == 0
        assert doc.render(80) == []

    def test_zero_height(self):
        doc = TextDocument()
        doc.resize(0)
        doc.set_text("a\nb")
        assert doc.render(80) == []

    def test_rows_cropped_to_width(self):
        doc = TextDocument()
        doc.resize(1)
        doc.set_text("x" * 200)
        assert len(doc.render(50)[0].plain) == 50
