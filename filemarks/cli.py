"""Command-line front door for filemarks.

Plays the editor-host role in a terminal: keys and paths come from
arguments, overwrite confirmations from stdin, and bulk edits go through
``$EDITOR`` (or the configured list opener).
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .config import FilemarksConfig, load_user_config
from .editor import edit_listing
from .errors import ConfigError, FilemarksError, MarkNotFoundError
from .service import ActionResult, ConfirmOverwrite, Filemarks


def _confirm_on_stdin(key: str, current: str, new: str) -> bool:
    """Ask on stdin whether ``key`` may be repointed; default is no."""
    try:
        answer = input(f"{key} already points to {current}. Overwrite with {new}? [y/N] ")
    except EOFError:
        return False
    return answer.strip().lower() in {"y", "yes"}


def _accept_overwrite(key: str, current: str, new: str) -> bool:
    return True


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="filemarks",
        description="Per-project bookmarks for files and directories.",
    )
    parser.add_argument("--storage", metavar="PATH", help="Mark storage file (overrides config).")
    parser.add_argument("--config", metavar="PATH", help="JSON config file with option overrides.")
    parser.add_argument(
        "--marker",
        action="append",
        dest="markers",
        metavar="NAME",
        help="Project marker name; repeat for several (default: .git .hg .svn).",
    )
    parser.add_argument(
        "--from",
        dest="path_hint",
        metavar="PATH",
        help="Detect the project from PATH instead of the working directory.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    commands = parser.add_subparsers(dest="command", required=True)

    for name, target_help in (("add", "File to mark."), ("add-dir", "Directory to mark (default: cwd).")):
        sub = commands.add_parser(name, help=f"Mark a {'directory' if name == 'add-dir' else 'file'}.")
        sub.add_argument("key")
        sub.add_argument("path", nargs="?", default=None, help=target_help)
        conflict = sub.add_mutually_exclusive_group()
        conflict.add_argument("--force", action="store_true", help="Overwrite an existing mark without asking.")
        conflict.add_argument("--no-input", action="store_true", help="Never prompt; fail on conflicts.")

    remove = commands.add_parser("remove", help="Remove a mark from the active project.")
    remove.add_argument("key")

    open_cmd = commands.add_parser("open", help="Print the target of a mark.")
    open_cmd.add_argument("key")
    open_cmd.add_argument("--kind", action="store_true", help="Prefix output with file/directory.")

    commands.add_parser("list", help="Print the active project's listing.")
    commands.add_parser("edit", help="Bulk-edit the active project's marks in an editor.")
    commands.add_parser("keys", help="Print every key in use across projects.")
    return parser


def _load_config(args: argparse.Namespace) -> FilemarksConfig:
    overrides = load_user_config(Path(args.config) if args.config else None)
    if args.storage:
        overrides["storage_path"] = args.storage
    if args.markers:
        overrides["project_markers"] = tuple(args.markers)
    return FilemarksConfig.from_mapping(overrides)


def _report(result: ActionResult) -> None:
    stream = sys.stdout if result.ok else sys.stderr
    print(result.message, file=stream)
    if not result.ok:
        raise SystemExit(1)


def _run(service: Filemarks, args: argparse.Namespace) -> None:
    if args.command in {"add", "add-dir"}:
        confirm: ConfirmOverwrite | None = _confirm_on_stdin
        if args.force:
            confirm = _accept_overwrite
        elif args.no_input:
            confirm = None
        if args.command == "add":
            _report(service.add(args.key, args.path, confirm=confirm))
        else:
            _report(service.add_directory(args.key, args.path, confirm=confirm))
        return

    if args.command == "remove":
        _report(service.remove(args.key))
        return

    if args.command == "open":
        target = service.open(args.key)
        if args.kind:
            print(f"{'directory' if target.is_directory else 'file'}\t{target.path}")
        else:
            print(target.path)
        return

    if args.command == "list":
        _project, lines = service.listing()
        print("\n".join(lines))
        return

    if args.command == "edit":
        _report(edit_listing(service, args.path_hint))
        return

    for key in sorted(service.keys_in_use()):
        print(key)


def main(argv: list[str] | None = None) -> None:
    """Parse arguments and run one filemarks command.

    Exits with status 1 when the command fails, finds nothing, or is
    declined.
    """
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = _load_config(args)
    except ConfigError as exc:
        raise SystemExit(f"Invalid configuration: {exc}") from exc

    hint = args.path_hint
    service = Filemarks(config, current_path=lambda: hint)
    try:
        _run(service, args)
    except MarkNotFoundError as exc:
        raise SystemExit(str(exc)) from exc
    except FilemarksError as exc:
        raise SystemExit(f"filemarks: {exc}") from exc


if __name__ == "__main__":
    main()
