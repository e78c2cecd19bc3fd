"""Command-line front door for stashtree.

Parses CLI options, loads settings, wires the git layer to the node
repository, and dispatches one subcommand. Read-only commands print the stash
tree or file previews; mutating commands print their classified outcome and
exit nonzero on failure.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import os
import re
import sys
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import TextIO

from .config import (
    DECORATION_MODES,
    ITEM_DISPLAY_MODES,
    StashConfig,
    load_config_data,
    load_stash_config,
    save_config_data,
    with_overrides,
)
from .content_uri import resolve_content_uri
from .diff import (
    DiffMode,
    DiffResolver,
    DiffResource,
    DiffView,
    MissingResource,
    SingleFileView,
    StashContentResource,
    write_temp_file,
)
from .errors import CommandError, StashTreeError
from .git.commands import OUTCOME_FAILURE, STASH_TYPE_FLAGS, CommandOutcome, StashCommands
from .git.runner import CommandRunner, GitRunner
from .git.stash_git import FILE_STAGE_CHANGE, FILE_STAGE_PARENT
from .git.workspace import Workspace, WorkspaceGit
from .logger import LOG_LEVELS, configure_logging, get_logger
from .preview import render_content
from .refresh import RefreshScheduler
from .render import (
    StashTheme,
    available_theme_names,
    format_outcome,
    format_stash_row,
    render_tree_rows,
    resolve_theme,
)
from .stash_node import (
    FILE_KIND_UNTRACKED,
    FileEntity,
    NodeRepository,
    RepositoryEntity,
    StashEntity,
    StashTreeNode,
    StashTreeProvider,
)
from .watch import build_stash_watch_signature, resolve_git_dir

logger = get_logger(__name__)

_STASH_REF_RE = re.compile(r"^(?:stash@\{(?P<braced>\d+)\}|(?P<bare>\d+))$")


@dataclass
class CliContext:
    config: StashConfig
    git: GitRunner
    workspace: Workspace
    workspace_git: WorkspaceGit
    node_repository: NodeRepository
    commands: StashCommands
    theme: StashTheme
    colorize: bool
    style: str
    out: TextIO


def _stash_index(value: str) -> int:
    """argparse type accepting ``N`` or ``stash@{N}``."""
    match = _STASH_REF_RE.match(value.strip())
    if match is None:
        raise argparse.ArgumentTypeError(f"invalid stash reference: {value!r}")
    return int(match.group("braced") or match.group("bare"))


def _non_negative_float(value: str) -> float:
    try:
        parsed = float(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid number: {value!r}") from exc
    if parsed < 0:
        raise argparse.ArgumentTypeError("value must be >= 0")
    return parsed


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stashtree",
        description="Browse and manage git stashes across the repositories of a workspace.",
    )
    parser.add_argument("--config", type=Path, default=None, help="Settings file (default: user config dir).")
    parser.add_argument(
        "-w",
        "--workspace",
        action="append",
        type=Path,
        default=None,
        help="Workspace folder; repeatable. Defaults to the current directory.",
    )
    parser.add_argument(
        "--depth",
        type=int,
        default=None,
        help="Repository search depth: 0 folders only, <0 ancestors, >0 subdirectories.",
    )
    parser.add_argument("--eager", action="store_true", help="Load every repository's stashes up front.")
    parser.add_argument("--display", choices=ITEM_DISPLAY_MODES, default=None, help="Empty-state display mode.")
    parser.add_argument("--decorations", choices=DECORATION_MODES, default=None, help="File badge/color mode.")
    parser.add_argument("--git", default=None, help="Git executable.")
    parser.add_argument("--style", default="monokai", help="Pygments style name for previews.")
    parser.add_argument(
        "--theme",
        default=None,
        help=f"UI theme name ({', '.join(available_theme_names())}).",
    )
    parser.add_argument("--no-color", action="store_true", help="Disable color output even on TTY.")
    parser.add_argument("--log-level", choices=LOG_LEVELS, default="warning")
    parser.add_argument("--log-format", choices=("pretty", "json"), default=None)

    sub = parser.add_subparsers(dest="command", required=True)

    list_parser = sub.add_parser("list", help="Print the repository and stash tree.")
    list_parser.add_argument("--files", action="store_true", help="Also list each stash's changed files.")

    show = sub.add_parser("show", help="List a stash's files, or show one file's stashed changes.")
    show.add_argument("stash", type=_stash_index)
    show.add_argument("file", nargs="?", default=None)
    show.add_argument("--repo", type=Path, default=Path("."))

    diff_current = sub.add_parser("diff-current", help="Compare a stashed file with the working copy.")
    diff_current.add_argument("stash", type=_stash_index)
    diff_current.add_argument("file")
    diff_current.add_argument("--parent", action="store_true", help="Use the pre-stash content.")
    diff_current.add_argument("--current-left", action="store_true", help="Place the working copy on the left.")
    diff_current.add_argument("--repo", type=Path, default=Path("."))

    stash = sub.add_parser("stash", help="Create a stash.")
    stash.add_argument("-m", "--message", default=None)
    stash.add_argument("--type", dest="stash_type", choices=tuple(STASH_TYPE_FLAGS), default="simple")
    stash.add_argument("--repo", type=Path, default=Path("."))

    push = sub.add_parser("push", help="Stash only the given files.")
    push.add_argument("files", nargs="+", type=Path)
    push.add_argument("-m", "--message", default=None)

    for name, help_text in (("pop", "Pop a stash."), ("apply", "Apply a stash.")):
        command = sub.add_parser(name, help=help_text)
        command.add_argument("stash", type=_stash_index)
        command.add_argument("--index", action="store_true", help="Also restore the index.")
        command.add_argument("--repo", type=Path, default=Path("."))

    drop = sub.add_parser("drop", help="Drop a stash.")
    drop.add_argument("stash", type=_stash_index)
    drop.add_argument("--repo", type=Path, default=Path("."))

    branch = sub.add_parser("branch", help="Create a branch from a stash.")
    branch.add_argument("stash", type=_stash_index)
    branch.add_argument("name")
    branch.add_argument("--repo", type=Path, default=Path("."))

    clear = sub.add_parser("clear", help="Remove every stash of a repository.")
    clear.add_argument("--yes", action="store_true", help="Confirm clearing the stash list.")
    clear.add_argument("--repo", type=Path, default=Path("."))

    apply_file = sub.add_parser("apply-file", help="Restore one stashed file into the working copy.")
    apply_file.add_argument("stash", type=_stash_index)
    apply_file.add_argument("file")
    apply_file.add_argument("--repo", type=Path, default=Path("."))

    watch = sub.add_parser("watch", help="Reprint stash lists when they change.")
    watch.add_argument("--interval", type=_non_negative_float, default=0.5, help="Poll interval in seconds.")
    watch.add_argument("--count", type=int, default=0, help="Stop after N polls (0: run until interrupted).")

    config = sub.add_parser("config", help="Print effective settings, or persist one setting.")
    config.add_argument("key", nargs="?", default=None)
    config.add_argument("value", nargs="?", default=None)

    return parser


def build_context(args: argparse.Namespace, out: TextIO) -> CliContext:
    config = with_overrides(
        load_stash_config(args.config),
        git_executable=args.git,
        repository_search_depth=args.depth,
        eager_load_stashes=True if args.eager else None,
        item_display_mode=args.display,
        decorations=args.decorations,
    )
    git = GitRunner(CommandRunner(config.encoding), config.git_executable)
    workspace = Workspace(args.workspace or [Path.cwd()])
    colorize = not args.no_color and out.isatty() and "NO_COLOR" not in os.environ
    return CliContext(
        config=config,
        git=git,
        workspace=workspace,
        workspace_git=WorkspaceGit(workspace, git),
        node_repository=NodeRepository.for_workspace(workspace, git, config.repository_search_depth),
        commands=StashCommands(git),
        theme=resolve_theme(args.theme, no_color=not colorize),
        colorize=colorize,
        style=args.style,
        out=out,
    )


async def _repository(ctx: CliContext, directory: Path) -> RepositoryEntity:
    try:
        root = await ctx.workspace_git.repository_root(directory.resolve())
    except CommandError as exc:
        raise SystemExit(f"Not a git repository: {directory}") from exc
    if root is None:
        raise SystemExit(f"Not a git repository: {directory}")
    return ctx.node_repository.create_repository_node(root)


async def _stash(ctx: CliContext, directory: Path, index: int) -> StashEntity:
    repository = await _repository(ctx, directory)
    stashes = await ctx.node_repository.list_stashes(repository)
    repository.children = stashes
    for stash in stashes:
        if stash.index == index:
            return stash
    raise SystemExit(f"No stash@{{{index}}} in {repository.path}")


async def _file(ctx: CliContext, stash: StashEntity, name: str) -> FileEntity:
    files = await ctx.node_repository.list_files(stash)
    stash.children = files
    candidates = {name, name.replace(os.sep, "/")}
    for file in files:
        if file.name in candidates or file.old_name in candidates:
            return file
    raise SystemExit(f"{name} is not part of stash@{{{stash.index}}}")


async def _resource_bytes(ctx: CliContext, resource: DiffResource) -> bytes:
    if isinstance(resource, StashContentResource):
        return await resolve_content_uri(resource.uri, ctx.node_repository.stash_git)
    if isinstance(resource, MissingResource):
        return b""
    return resource.path.read_bytes()


async def _resource_path(ctx: CliContext, resource: DiffResource, name: str) -> Path:
    if isinstance(resource, StashContentResource):
        return write_temp_file(await _resource_bytes(ctx, resource), name)
    if isinstance(resource, MissingResource):
        return Path(os.devnull)
    return resource.path


async def emit_view(ctx: CliContext, view: DiffView) -> None:
    """Print a single-file preview, or hand both panes to ``git diff --no-index``."""
    for warning in view.warnings:
        sys.stderr.write(f"warning: {warning}\n")
    ctx.out.write(f"# {view.title}\n")

    if isinstance(view, SingleFileView):
        content = await _resource_bytes(ctx, view.resource)
        ctx.out.write(
            render_content(
                content,
                view.file.name,
                colorize=ctx.colorize,
                style=ctx.style,
                encoding=ctx.config.encoding,
            )
        )
        return

    left = await _resource_path(ctx, view.left, view.file.old_name or view.file.name)
    right = await _resource_path(ctx, view.right, view.file.name)
    color = "always" if ctx.colorize else "never"
    args = ["diff", "--no-index", f"--color={color}", "--", str(left), str(right)]
    try:
        result = await ctx.git.git(args, view.file.repository_path)
        output = result.stdout
    except CommandError as exc:
        # exit code 1 means the sides differ
        if exc.exit_code != 1:
            raise
        output = exc.stdout
    ctx.out.write(output)


async def collect_tree_rows(
    provider: StashTreeProvider,
    expand_files: bool,
) -> list[tuple[int, StashTreeNode]]:
    rows: list[tuple[int, StashTreeNode]] = []
    for repository in await provider.get_children(None):
        rows.append((0, repository))
        if not isinstance(repository, RepositoryEntity):
            continue
        for stash in await provider.get_children(repository):
            rows.append((1, stash))
            if expand_files and isinstance(stash, StashEntity):
                rows.extend((2, file) for file in await provider.get_children(stash))
    return rows


async def _print_tree(ctx: CliContext, expand_files: bool) -> None:
    provider = StashTreeProvider(ctx.node_repository, ctx.config)
    rows = await collect_tree_rows(provider, expand_files)
    ctx.out.write(render_tree_rows(rows, ctx.theme, ctx.config.decorations))


async def _print_repository(ctx: CliContext, path: Path) -> None:
    repository = ctx.node_repository.create_repository_node(path)
    provider = StashTreeProvider(ctx.node_repository, ctx.config)
    rows: list[tuple[int, StashTreeNode]] = [(0, repository)]
    rows.extend((1, stash) for stash in await provider.get_children(repository))
    ctx.out.write(render_tree_rows(rows, ctx.theme, ctx.config.decorations))
    ctx.out.flush()


def _report(ctx: CliContext, outcomes: list[CommandOutcome], verbose: bool = False) -> int:
    for outcome in outcomes:
        ctx.out.write(format_outcome(outcome, ctx.theme, verbose=verbose))
    return 1 if any(outcome.kind == OUTCOME_FAILURE for outcome in outcomes) else 0


async def _watch(ctx: CliContext, interval: float, count: int) -> int:
    roots = await ctx.node_repository.discover_roots(ctx.config.repository_search_depth)
    git_dirs = {root: await resolve_git_dir(root, ctx.git) for root in roots}
    signatures = {root: build_stash_watch_signature(git_dir) for root, git_dir in git_dirs.items()}

    renders: set[asyncio.Task[None]] = set()

    def on_render(path: Path | None) -> None:
        coroutine = _print_tree(ctx, False) if path is None else _print_repository(ctx, path)
        task = asyncio.get_running_loop().create_task(coroutine)
        renders.add(task)
        task.add_done_callback(renders.discard)

    scheduler = RefreshScheduler(ctx.node_repository.get_raw_listing, on_render, ctx.config)
    for root in roots:
        scheduler.seed_listing(root, await ctx.node_repository.get_raw_listing(root))
    scheduler.trigger_force()

    polls = 0
    try:
        while count <= 0 or polls < count:
            await asyncio.sleep(interval)
            polls += 1
            for root, git_dir in git_dirs.items():
                signature = build_stash_watch_signature(git_dir)
                if signature != signatures[root]:
                    signatures[root] = signature
                    scheduler.trigger_passive(root)
        await asyncio.sleep(max(ctx.config.force_refresh_delay, ctx.config.passive_refresh_delay))
        await scheduler.wait_idle()
        if renders:
            await asyncio.gather(*list(renders))
    finally:
        scheduler.cancel_all()
    return 0


def _config_command(ctx: CliContext, args: argparse.Namespace) -> int:
    if args.key is None:
        ctx.out.write(json.dumps(asdict(ctx.config), indent=2) + "\n")
        return 0
    if args.key not in StashConfig.__dataclass_fields__:
        raise SystemExit(f"Unknown setting: {args.key}")
    if args.value is None:
        raise SystemExit(f"Missing value for {args.key}")
    try:
        value: object = json.loads(args.value)
    except json.JSONDecodeError:
        value = args.value
    data = load_config_data(args.config)
    data[args.key] = value
    save_config_data(data, args.config)
    return 0


async def run(args: argparse.Namespace, ctx: CliContext) -> int:
    command = args.command
    if command == "list":
        await _print_tree(ctx, args.files)
        return 0
    if command == "config":
        return _config_command(ctx, args)
    if command == "watch":
        return await _watch(ctx, args.interval, args.count)
    if command == "push":
        roots = await ctx.node_repository.discover_roots(ctx.config.repository_search_depth)
        for file_path in args.files:
            try:
                root = await ctx.workspace_git.repository_root(file_path.resolve().parent)
            except CommandError:
                continue
            if root is not None and root not in roots:
                roots.append(root)
        outcomes = await ctx.commands.push_files(roots, args.files, args.message)
        if not outcomes:
            raise SystemExit("No files inside a git repository.")
        return _report(ctx, outcomes)
    if command == "stash":
        repository = await _repository(ctx, args.repo)
        return _report(ctx, [await ctx.commands.stash(repository, args.stash_type, args.message)])
    if command == "clear":
        if not args.yes:
            raise SystemExit("Refusing to clear the stash list without --yes.")
        repository = await _repository(ctx, args.repo)
        return _report(ctx, [await ctx.commands.clear(repository)])

    stash = await _stash(ctx, args.repo, args.stash)
    if command == "show":
        if args.file is None:
            ctx.out.write(format_stash_row(stash, ctx.theme) + "\n")
            files = await ctx.node_repository.list_files(stash)
            ctx.out.write(render_tree_rows([(1, file) for file in files], ctx.theme, ctx.config.decorations))
            return 0
        file = await _file(ctx, stash, args.file)
        await emit_view(ctx, await DiffResolver(ctx.node_repository).resolve_stash_diff(file))
        return 0
    if command == "diff-current":
        file = await _file(ctx, stash, args.file)
        mode = DiffMode(
            compare_working_copy=True,
            working_copy_on_left=args.current_left,
            stage=FILE_STAGE_PARENT if args.parent else FILE_STAGE_CHANGE,
        )
        await emit_view(ctx, await DiffResolver(ctx.node_repository).resolve(file, mode))
        return 0
    if command == "pop":
        return _report(ctx, [await ctx.commands.pop(stash, args.index)])
    if command == "apply":
        return _report(ctx, [await ctx.commands.apply(stash, args.index)])
    if command == "drop":
        return _report(ctx, [await ctx.commands.drop(stash)])
    if command == "branch":
        return _report(ctx, [await ctx.commands.branch(stash, args.name)])
    if command == "apply-file":
        file = await _file(ctx, stash, args.file)
        if file.kind == FILE_KIND_UNTRACKED:
            return _report(ctx, [await ctx.commands.create_file(file)])
        return _report(ctx, [await ctx.commands.apply_file(file)])
    raise SystemExit(f"Unknown command: {command}")


def main(argv: list[str] | None = None, out: TextIO | None = None) -> int:
    """Parse CLI arguments, run one subcommand, and return its exit status.

    ``argv`` and ``out`` are primarily for tests; they default to
    ``sys.argv[1:]`` and ``sys.stdout``.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    out = out or sys.stdout
    configure_logging(args.log_level, args.log_format, colors=not args.no_color and sys.stderr.isatty())

    ctx = build_context(args, out)
    try:
        return asyncio.run(run(args, ctx))
    except KeyboardInterrupt:
        return 130
    except StashTreeError as exc:
        logger.debug("command aborted", command=args.command, error=repr(exc))
        sys.stderr.write(f"stashtree: {exc}\n")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
