"""installstate CLI: probe, check, diff, record and watch commands."""

import argparse
import asyncio
import logging
import sys
from importlib.metadata import version as get_version, PackageNotFoundError
from pathlib import Path


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _print_result(result, force_install_message: str) -> None:
    from .codes import CheckStatus

    if result.status is CheckStatus.UP_TO_DATE:
        print("[OK] node_modules is up to date")
    elif result.status is CheckStatus.STALE:
        print("[STALE] node_modules is stale - run npm i")
        print("  Changed:")
        for entry in result.changes:
            print(f"  - {entry.label}")
        print(f"  {force_install_message}")
    elif result.status is CheckStatus.INSTALLING:
        print("[INSTALLING] npm install is running...")
    else:
        print("[UNKNOWN] Install state unavailable")


async def _run_watch(settings, quiet: bool) -> None:
    from .monitor import StalenessMonitor

    def publish(result) -> None:
        if not quiet:
            _print_result(result, settings.force_install_message)
            sys.stdout.flush()

    monitor = StalenessMonitor(settings, publish)
    monitor.start()
    try:
        await asyncio.Event().wait()
    finally:
        monitor.stop()


def main():
    """Main CLI entry point for installstate commands."""
    try:
        installstate_version = get_version("installstate")
    except PackageNotFoundError:
        installstate_version = "dev"

    parser = argparse.ArgumentParser(
        prog="installstate",
        description="installstate: detect when installed npm dependencies are out of date"
    )
    parser.add_argument("--version", action="version", version=f"installstate {installstate_version}")
    # Common arguments
    parent_parser = argparse.ArgumentParser(add_help=False)
    parent_parser.add_argument(
        "--root",
        type=Path,
        default=None,
        help="Project root (defaults to INSTALLSTATE_ROOT or the current directory)"
    )
    parent_parser.add_argument(
        "--runtime-version",
        dest="runtime_version",
        default=None,
        help="Runtime version to record instead of asking `node --version`"
    )
    parent_parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress all non-error output."
    )
    parent_parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log debug output to stderr."
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser(
        "state",
        help="Print the current and saved install state as JSON (the probe)",
        parents=[parent_parser]
    )

    check_parser = subparsers.add_parser(
        "check",
        help="Exit 0 if up to date, 1 if stale, 2 if the state is unavailable",
        parents=[parent_parser]
    )
    check_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the result as JSON"
    )

    diff_parser = subparsers.add_parser(
        "diff",
        help="Show what changed in one input file since the last install",
        parents=[parent_parser]
    )
    diff_parser.add_argument(
        "file",
        help="Input path relative to the project root (e.g. package.json)"
    )

    subparsers.add_parser(
        "record",
        help="Record the current state as installed (run after a successful install)",
        parents=[parent_parser]
    )

    subparsers.add_parser(
        "watch",
        help="Watch the install inputs and report staleness as it changes",
        parents=[parent_parser]
    )

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    from .config import load_settings
    from ._internal.canonical_json import canonical_dumps

    try:
        settings = load_settings(root=args.root, runtime_version=args.runtime_version)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    _configure_logging("DEBUG" if args.verbose else settings.log_level)

    if args.command == "state":
        try:
            from .probe import build_install_state
            from .kernel.state import RuntimeVersionError

            state = build_install_state(settings)
            print(canonical_dumps(state.to_record()))
            sys.exit(0)
        except RuntimeVersionError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
        except Exception as e:
            print(f"Unexpected error: {e}", file=sys.stderr)
            import traceback
            traceback.print_exc()
            sys.exit(1)
    elif args.command == "check":
        from .api import check
        from .codes import CheckStatus, ExitCode

        result = check(settings)
        if args.json:
            print(canonical_dumps(result.to_dict()))
        elif not args.quiet:
            _print_result(result, settings.force_install_message)

        if result.status is CheckStatus.UP_TO_DATE:
            sys.exit(ExitCode.UP_TO_DATE.value)
        elif result.status is CheckStatus.STALE:
            sys.exit(ExitCode.STALE.value)
        sys.exit(ExitCode.UNKNOWN.value)
    elif args.command == "diff":
        from .api import diff_file

        diff = diff_file(args.file, settings)
        if not args.quiet:
            if diff.changed:
                print(diff.unified(), end="")
            else:
                print(f"No changes in {diff.file} since the last install")
        sys.exit(0)
    elif args.command == "record":
        try:
            from .api import record
            from .kernel.state import RuntimeVersionError

            state = record(settings)
            if not args.quiet:
                print("[OK] Install state recorded")
                print(f"  State: {settings.state_file}")
                print(f"  Contents: {settings.state_contents_file}")
                print(f"  Files: {len(state.file_hashes)}")
            sys.exit(0)
        except (RuntimeVersionError, OSError) as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
    elif args.command == "watch":
        try:
            asyncio.run(_run_watch(settings, args.quiet))
        except KeyboardInterrupt:
            pass
        sys.exit(0)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
