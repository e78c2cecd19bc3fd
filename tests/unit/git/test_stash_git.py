from __future__ import annotations

import unittest
from pathlib import Path

from fake_git import (
    STASH_LIST_ARGS,
    STASH_METADATA_ARGS,
    FakeGitRunner,
    missing_third_parent,
    name_status_args,
    untracked_args,
)
from stashtree.errors import CommandError
from stashtree.git.stash_git import StashGit, is_missing_parent_error, stash_ref

REPO = Path("/repo")
FULL_HASH = "abc1234" + "0" * 33


class StashRefTests(unittest.TestCase):
    def test_plain_and_parent_references(self) -> None:
        self.assertEqual(stash_ref(2), "stash@{2}")
        self.assertEqual(stash_ref(0, 3), "stash@{0}^3")

    def test_missing_parent_markers(self) -> None:
        self.assertTrue(is_missing_parent_error(missing_third_parent(0)))
        self.assertFalse(is_missing_parent_error(CommandError(128, "", "fatal: unable to read tree 1234")))


class StashGitListingTests(unittest.IsolatedAsyncioTestCase):
    async def test_stashes_merge_listing_with_metadata(self) -> None:
        git = FakeGitRunner()
        git.respond(STASH_LIST_ARGS, "2024-01-01 10:00:00 +0000 abc1234 On main: wip\n")
        git.respond(STASH_METADATA_ARGS, f"{FULL_HASH} 1111111 2222222\tnote text\n\0")

        stashes = await StashGit(git).get_stashes(REPO)

        self.assertEqual(len(stashes), 1)
        stash = stashes[0]
        self.assertEqual(stash.index, 0)
        self.assertEqual(stash.hash, FULL_HASH)
        self.assertEqual(stash.short_hash, "abc1234")
        self.assertEqual(stash.branch, "main")
        self.assertEqual(stash.description, "wip")
        self.assertEqual(stash.note, "note text")
        self.assertEqual(stash.parent_hashes, ("1111111", "2222222"))

    async def test_empty_listing_skips_metadata_call(self) -> None:
        git = FakeGitRunner()
        git.respond(STASH_LIST_ARGS, "")

        self.assertEqual(await StashGit(git).get_stashes(REPO), [])
        self.assertEqual(git.count(STASH_METADATA_ARGS), 0)

    async def test_metadata_out_of_step_falls_back_to_short_hash(self) -> None:
        git = FakeGitRunner()
        git.respond(STASH_LIST_ARGS, "2024-01-01 10:00:00 +0000 abc1234 On main: wip\n")
        git.respond(STASH_METADATA_ARGS, "fff0000" + "0" * 33 + " 1111111\t\0")

        stash = (await StashGit(git).get_stashes(REPO))[0]

        self.assertEqual(stash.hash, "abc1234")
        self.assertEqual(stash.parent_hashes, ())

    async def test_raw_listing_is_none_without_stashes(self) -> None:
        git = FakeGitRunner()
        git.respond(("stash", "list"), "\n")

        self.assertIsNone(await StashGit(git).get_raw_stash(REPO))


class StashGitFilesTests(unittest.IsolatedAsyncioTestCase):
    async def test_missing_third_parent_means_no_untracked_files(self) -> None:
        git = FakeGitRunner()
        git.fail(untracked_args(0), missing_third_parent(0))

        self.assertEqual(await StashGit(git).get_untracked(REPO, 0), [])

    async def test_other_untracked_errors_are_logged_and_empty(self) -> None:
        git = FakeGitRunner()
        git.fail(untracked_args(0), CommandError(128, "", "fatal: bad object\n"))

        self.assertEqual(await StashGit(git).get_untracked(REPO, 0), [])

    async def test_stashed_files_include_untracked(self) -> None:
        git = FakeGitRunner()
        git.respond(name_status_args(1), "M\0a.py\0A\0b.py\0")
        git.respond(untracked_args(1), "notes.txt\0")

        files = await StashGit(git).get_stashed_files(REPO, 1)

        self.assertEqual(files.modified, ["a.py"])
        self.assertEqual(files.added, ["b.py"])
        self.assertEqual(files.untracked, ["notes.txt"])

    async def test_contents_use_revision_path_addressing(self) -> None:
        git = FakeGitRunner()
        git.respond(("show", "stash@{0}:a.py"), raw=b"stashed")
        git.respond(("show", "stash@{0}^1:a.py"), raw=b"parent")
        git.respond(("show", "stash@{0}^3:n.txt"), raw=b"untracked")
        stash_git = StashGit(git)

        self.assertEqual(await stash_git.get_stash_contents(REPO, 0, "a.py"), b"stashed")
        self.assertEqual(await stash_git.get_parent_contents(REPO, 0, "a.py"), b"parent")
        self.assertEqual(await stash_git.get_third_parent_contents(REPO, 0, "n.txt"), b"untracked")


if __name__ == "__main__":
    unittest.main()
