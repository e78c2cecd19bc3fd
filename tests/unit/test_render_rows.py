"""Tree row, outcome, and preview rendering tests."""

from __future__ import annotations

import unittest
from datetime import datetime, timezone
from pathlib import Path

from stashtree.git.commands import CommandOutcome, CommandTranscript
from stashtree.preview import decode_content, looks_binary, render_content, sanitize_terminal_text
from stashtree.render import (
    DEFAULT_THEME,
    PLAIN_THEME,
    format_file_row,
    format_outcome,
    format_stash_row,
    render_tree_rows,
    resolve_theme,
)
from stashtree.stash_node.model import FileEntity, MessageEntity, RepositoryEntity, StashEntity

REPO = Path("/work/app")


def make_stash() -> StashEntity:
    repository = RepositoryEntity(REPO, "app")
    stash = StashEntity(
        index=1,
        hash="abc1234",
        short_hash="abc1234",
        date=datetime(2024, 5, 6, 7, 8, tzinfo=timezone.utc),
        subject="On main: wip",
        description="wip",
        parent=repository,
        branch="main",
    )
    repository.children = [stash]
    return stash


class TreeRowTests(unittest.TestCase):
    def test_plain_rows_are_indented_by_depth(self) -> None:
        stash = make_stash()
        file = FileEntity("src/a.py", "modified", stash)

        text = render_tree_rows(
            [(0, stash.parent), (1, stash), (2, file), (1, MessageEntity("No stashes found."))],
            PLAIN_THEME,
        )

        self.assertEqual(
            text.splitlines(),
            [
                "app (1) /work/app",
                "  stash@{1} main: wip (abc1234, 2024-05-06 07:08)",
                "    [M] a.py src/",
                "  No stashes found.",
            ],
        )

    def test_renamed_row_mentions_old_name(self) -> None:
        file = FileEntity("b.py", "renamed", make_stash(), old_name="a.py")

        self.assertEqual(format_file_row(file, PLAIN_THEME), "[R] b.py ← a.py")

    def test_badge_mode_none_hides_badge(self) -> None:
        file = FileEntity("a.py", "added", make_stash())

        self.assertEqual(format_file_row(file, PLAIN_THEME, "none"), "a.py")

    def test_color_mode_paints_name_without_badge(self) -> None:
        file = FileEntity("a.py", "added", make_stash())

        row = format_file_row(file, DEFAULT_THEME, "color")

        self.assertNotIn("[A]", row)
        self.assertIn("\033[", row)

    def test_stash_row_without_branch_uses_subject(self) -> None:
        stash = make_stash()
        stash.branch = None
        stash.subject = "autostash"

        self.assertTrue(format_stash_row(stash, PLAIN_THEME).startswith("stash@{1} autostash "))

    def test_no_color_resolves_plain_theme(self) -> None:
        self.assertIs(resolve_theme("ocean", no_color=True), PLAIN_THEME)
        self.assertIs(resolve_theme("unknown"), DEFAULT_THEME)


class OutcomeRenderTests(unittest.TestCase):
    def test_failure_includes_transcript(self) -> None:
        outcome = CommandOutcome(
            kind="failure",
            summary="bad ref",
            transcript=CommandTranscript(REPO, ("stash", "drop", "stash@{9}"), "error: bad ref"),
        )

        text = format_outcome(outcome, PLAIN_THEME)

        self.assertEqual(text.splitlines(), ["bad ref", f"$ git stash drop stash@{{9}}  ({REPO})", "error: bad ref"])

    def test_success_is_one_line_unless_verbose(self) -> None:
        outcome = CommandOutcome("success", "Stash dropped", CommandTranscript(REPO, ("stash", "drop"), "Dropped"))

        self.assertEqual(format_outcome(outcome, PLAIN_THEME), "Stash dropped\n")
        self.assertIn("Dropped", format_outcome(outcome, PLAIN_THEME, verbose=True))


class PreviewTests(unittest.TestCase):
    def test_control_bytes_are_escaped(self) -> None:
        self.assertEqual(sanitize_terminal_text("a\x1b[2Jb\tc\n"), "a\\x1b[2Jb\tc\n")

    def test_decode_falls_back_to_latin1(self) -> None:
        self.assertEqual(decode_content("café".encode("latin-1")), "café")

    def test_binary_content_is_summarized(self) -> None:
        self.assertTrue(looks_binary(b"\x89PNG\0\0"))
        self.assertEqual(render_content(b"ab\0cd", "x.bin"), "<binary content, 5 bytes>\n")

    def test_plain_render_appends_trailing_newline(self) -> None:
        self.assertEqual(render_content(b"print(1)", "a.py", colorize=False), "print(1)\n")

    def test_colorized_render_uses_ansi(self) -> None:
        self.assertIn("\x1b[", render_content(b"def f():\n    return 1\n", "a.py", style="no-such-style"))


if __name__ == "__main__":
    unittest.main()
