"""Diff resolver tests: pane selection, placement, and image materialization."""

from __future__ import annotations

import tempfile
import unittest
from datetime import datetime, timezone
from pathlib import Path

from fake_git import FakeGitRunner
from stashtree.content_uri import parse_content_uri
from stashtree.diff import (
    DiffMode,
    DiffResolver,
    MissingResource,
    SingleFileView,
    StashContentResource,
    TempFileResource,
    TwoPaneView,
    WorkingCopyResource,
)
from stashtree.git.stash_git import FILE_STAGE_CHANGE, FILE_STAGE_PARENT, StashGit
from stashtree.stash_node.model import (
    FILE_KIND_ADDED,
    FILE_KIND_DELETED,
    FILE_KIND_MODIFIED,
    FILE_KIND_RENAMED,
    FILE_KIND_UNTRACKED,
    FileEntity,
    RepositoryEntity,
    StashEntity,
)
from stashtree.stash_node.repository import NodeRepository


async def _no_repositories(search_depth: int) -> list[Path]:
    return []


def make_stash(repo: Path) -> StashEntity:
    return StashEntity(
        index=0,
        hash="abc1234",
        short_hash="abc1234",
        date=datetime(2024, 1, 1, tzinfo=timezone.utc),
        subject="On main: wip",
        description="wip",
        parent=RepositoryEntity(repo, repo.name),
    )


def side_of(resource: object) -> str | None:
    assert isinstance(resource, StashContentResource)
    request = parse_content_uri(resource.uri)
    assert request is not None
    return request.side


class DiffResolverTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.repo = Path(self._tmp.name).resolve()
        self.git = FakeGitRunner()
        self.resolver = DiffResolver(NodeRepository(_no_repositories, StashGit(self.git)))
        self.stash = make_stash(self.repo)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def file(self, name: str, kind: str, old_name: str | None = None) -> FileEntity:
        return FileEntity(name, kind, self.stash, old_name)

    async def test_one_sided_kinds_open_a_single_pane(self) -> None:
        for kind in (FILE_KIND_ADDED, FILE_KIND_UNTRACKED, FILE_KIND_DELETED):
            with self.subTest(kind=kind):
                view = await self.resolver.resolve(self.file("a.py", kind))
                self.assertIsInstance(view, SingleFileView)

    async def test_deleted_single_pane_shows_parent_content(self) -> None:
        view = await self.resolver.resolve_stash_diff(self.file("a.py", FILE_KIND_DELETED))

        assert isinstance(view, SingleFileView)
        self.assertEqual(side_of(view.resource), FILE_STAGE_PARENT)

    async def test_two_sided_kinds_put_parent_left_and_stash_right(self) -> None:
        for file in (self.file("a.py", FILE_KIND_MODIFIED), self.file("new.py", FILE_KIND_RENAMED, "old.py")):
            with self.subTest(kind=file.kind):
                view = await self.resolver.resolve(file)

                self.assertIsInstance(view, TwoPaneView)
                assert isinstance(view, TwoPaneView)
                self.assertEqual(side_of(view.left), FILE_STAGE_PARENT)
                self.assertEqual(side_of(view.right), FILE_STAGE_CHANGE)
                self.assertEqual(view.warnings, ())

    async def test_working_copy_placement_only_swaps_sides(self) -> None:
        (self.repo / "a.py").write_text("current\n", encoding="utf-8")
        file = self.file("a.py", FILE_KIND_MODIFIED)

        right_view = await self.resolver.resolve(file, DiffMode(compare_working_copy=True))
        left_view = await self.resolver.resolve(file, DiffMode(compare_working_copy=True, working_copy_on_left=True))

        assert isinstance(right_view, TwoPaneView) and isinstance(left_view, TwoPaneView)
        self.assertEqual(right_view.right, WorkingCopyResource(self.repo / "a.py"))
        self.assertEqual(left_view.left, WorkingCopyResource(self.repo / "a.py"))
        self.assertEqual(side_of(right_view.left), side_of(left_view.right))

    async def test_working_copy_stage_selects_parent_content(self) -> None:
        (self.repo / "a.py").write_text("current\n", encoding="utf-8")

        view = await self.resolver.resolve(
            self.file("a.py", FILE_KIND_MODIFIED),
            DiffMode(compare_working_copy=True, stage=FILE_STAGE_PARENT),
        )

        assert isinstance(view, TwoPaneView)
        self.assertEqual(side_of(view.left), FILE_STAGE_PARENT)

    async def test_renamed_working_copy_uses_old_name(self) -> None:
        (self.repo / "old.py").write_text("current\n", encoding="utf-8")

        view = await self.resolver.resolve(
            self.file("new.py", FILE_KIND_RENAMED, "old.py"),
            DiffMode(compare_working_copy=True),
        )

        assert isinstance(view, TwoPaneView)
        self.assertEqual(view.right, WorkingCopyResource(self.repo / "old.py"))

    async def test_missing_working_copy_for_deleted_file_warns_and_still_opens(self) -> None:
        view = await self.resolver.resolve(
            self.file("gone.py", FILE_KIND_DELETED),
            DiffMode(compare_working_copy=True),
        )

        assert isinstance(view, TwoPaneView)
        self.assertEqual(side_of(view.left), FILE_STAGE_PARENT)
        self.assertEqual(view.right, MissingResource(self.repo / "gone.py"))
        self.assertEqual(len(view.warnings), 1)
        self.assertIn("gone.py", view.warnings[0])

    async def test_images_are_written_to_fresh_temp_files(self) -> None:
        self.git.respond(("show", "stash@{0}:logo.PNG"), raw=b"\x89PNG-new")
        self.git.respond(("show", "stash@{0}^1:logo.PNG"), raw=b"\x89PNG-old")

        first = await self.resolver.resolve(self.file("logo.PNG", FILE_KIND_MODIFIED))
        second = await self.resolver.resolve(self.file("logo.PNG", FILE_KIND_MODIFIED))

        assert isinstance(first, TwoPaneView) and isinstance(second, TwoPaneView)
        self.assertIsInstance(first.left, TempFileResource)
        assert isinstance(first.left, TempFileResource) and isinstance(first.right, TempFileResource)
        assert isinstance(second.right, TempFileResource)
        self.assertEqual(first.left.path.read_bytes(), b"\x89PNG-old")
        self.assertEqual(first.right.path.read_bytes(), b"\x89PNG-new")
        self.assertTrue(first.right.path.name.startswith("stashtree-"))
        self.assertEqual(first.right.path.suffix, ".PNG")
        self.assertNotEqual(first.right.path, second.right.path)


if __name__ == "__main__":
    unittest.main()
