from __future__ import annotations

import unittest
from datetime import datetime, timezone
from pathlib import Path

from fake_git import FakeGitRunner
from stashtree.content_uri import (
    CONTENT_SCHEME,
    EMPTY_URI,
    build_content_uri,
    parse_content_uri,
    resolve_content_uri,
)
from stashtree.git.stash_git import FILE_STAGE_PARENT, StashGit
from stashtree.stash_node.model import FileEntity, RepositoryEntity, StashEntity

REPO = Path("/work/my repo")


def renamed_file(index: int = 3) -> FileEntity:
    stash = StashEntity(
        index=index,
        hash="abc1234",
        short_hash="abc1234",
        date=datetime(2024, 1, 1, tzinfo=timezone.utc),
        subject="On main: wip",
        description="wip",
        parent=RepositoryEntity(REPO),
    )
    return FileEntity("src/new name.py", "renamed", stash, old_name="src/old&name.py")


class ContentUriTests(unittest.TestCase):
    def test_round_trip_keeps_special_characters(self) -> None:
        uri = build_content_uri(renamed_file(), FILE_STAGE_PARENT)

        self.assertTrue(uri.startswith(f"{CONTENT_SCHEME}:"))
        request = parse_content_uri(uri)
        assert request is not None
        self.assertEqual(request.cwd, str(REPO))
        self.assertEqual(request.index, 3)
        self.assertEqual(request.path, "src/new name.py")
        self.assertEqual(request.old_path, "src/old&name.py")
        self.assertEqual(request.kind, "renamed")
        self.assertEqual(request.side, FILE_STAGE_PARENT)

    def test_empty_and_malformed_uris_do_not_parse(self) -> None:
        self.assertIsNone(parse_content_uri(EMPTY_URI))
        self.assertIsNone(parse_content_uri(f"{CONTENT_SCHEME}:/x?cwd=/r&index=-1&path=a&type=added"))
        self.assertIsNone(parse_content_uri(f"{CONTENT_SCHEME}:/x?cwd=/r&index=0&path=a&type=copied"))
        self.assertIsNone(parse_content_uri(f"{CONTENT_SCHEME}:/x?cwd=/r&index=0&path=a&type=renamed"))


class ResolveContentUriTests(unittest.IsolatedAsyncioTestCase):
    async def test_renamed_parent_side_reads_old_path(self) -> None:
        git = FakeGitRunner()
        git.respond(("show", "stash@{3}^1:src/old&name.py"), raw=b"old bytes")

        content = await resolve_content_uri(build_content_uri(renamed_file(), FILE_STAGE_PARENT), StashGit(git))

        self.assertEqual(content, b"old bytes")
        self.assertEqual(git.calls[0][1], REPO)

    async def test_empty_uri_resolves_without_git(self) -> None:
        git = FakeGitRunner()

        self.assertEqual(await resolve_content_uri(EMPTY_URI, StashGit(git)), b"")
        self.assertEqual(await resolve_content_uri("gitstash-stashed-contents:/nope", StashGit(git)), b"")
        self.assertEqual(git.calls, [])


if __name__ == "__main__":
    unittest.main()
