"""Main CLI entry point for bundleport.

Provides commands: import-bundle
"""

import argparse
import logging
import sys
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

from bundleport.cli.import_bundle import import_bundle_command

logger = logging.getLogger("bundleport.cli")


def setup_logging(
    verbose: bool = False,
    console: Optional[Console] = None,
    log_file: Optional[str] = None,
) -> None:
    """Setup logging configuration with Rich integration.

    Args:
        verbose: Enable verbose logging.
        console: Rich Console instance for coordinated output (optional).
        log_file: Also write log records to this file (optional).
    """
    if verbose:
        level = logging.DEBUG
    else:
        level = logging.WARNING

    handler = RichHandler(
        console=console,
        show_time=True,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
        tracebacks_show_locals=verbose,
        log_time_format="[%H:%M:%S]",
    )
    handlers: list[logging.Handler] = [handler]

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s [%(name)s] [%(levelname)s] %(message)s")
        )
        handlers.append(file_handler)

    logging.basicConfig(
        level=level,
        format="[%(name)s] [%(levelname)s] %(message)s",
        handlers=handlers,
    )


def main() -> int:
    """Main CLI entry point.

    Returns:
        int: Exit code.
    """
    parser = argparse.ArgumentParser(
        description="Bundleport - import OSGi bundles into Maven projects",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    import_parser = subparsers.add_parser(
        "import-bundle",
        help="Import a bundle and its provided dependencies into the project",
    )
    import_parser.add_argument(
        "-g",
        "--group-id",
        help=(
            "GroupId of the bundle to import. When omitted, the local project "
            "tree is searched for the artifactId, else groupId = artifactId."
        ),
    )
    import_parser.add_argument(
        "-a",
        "--artifact-id",
        required=True,
        help="ArtifactId of the bundle to import",
    )
    import_parser.add_argument(
        "--version",
        help="Version of the bundle (default: latest release; RELEASE and LATEST also select it)",
    )
    import_parser.add_argument(
        "-e",
        "--exclusions",
        help="Comma-separated artifacts (groupId:artifactId, or artifactId) that must not be imported",
    )
    import_parser.add_argument(
        "-p",
        "--provision-id",
        help="Id of the provisioning POM (default: provision)",
    )
    import_parser.add_argument(
        "-t",
        "--target-dir",
        help="Project directory to import into (default: current directory)",
    )
    import_parser.add_argument(
        "--transitive",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Also import provided dependencies of imported bundles",
    )
    import_parser.add_argument(
        "--optional",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Also import optional dependencies",
    )
    import_parser.add_argument(
        "--widen-scope",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Treat compile and runtime dependencies as provided",
    )
    import_parser.add_argument(
        "--test-metadata",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Check jars for OSGi metadata before importing them",
    )
    import_parser.add_argument(
        "--deploy",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Provision imported bundles (--no-deploy marks them optional)",
    )
    import_parser.add_argument(
        "--overwrite",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Replace existing dependency entries instead of failing",
    )
    import_parser.add_argument(
        "-c",
        "--config",
        help=(
            "Optional import configuration. Can be a path to a TOML/JSON file "
            "or an inline TOML/JSON string. Command-line switches win."
        ),
    )
    import_parser.add_argument(
        "--local-repo",
        help="Local Maven repository (default: ~/.m2/repository)",
    )
    import_parser.add_argument(
        "--repo",
        action="append",
        help="Remote repository URL; repeat for several (default: Maven Central)",
    )
    import_parser.add_argument(
        "--offline",
        action="store_true",
        default=None,
        help="Only use the local repository",
    )
    import_parser.add_argument(
        "-r",
        "--report",
        help="Write the import graph to this JSON file",
    )
    import_parser.add_argument(
        "--log-file",
        help="Output log to file (optional). When specified, logs are written to this file in addition to console.",
    )

    args = parser.parse_args()

    setup_logging(args.verbose, log_file=getattr(args, "log_file", None))

    if args.command == "import-bundle":
        return import_bundle_command(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
