"""
Command-line interface for the artifact resolver.
"""

import argparse
import logging
import sys
from pathlib import Path

from .config import ResolutionConfig
from .errors import ResolverError
from .models import Scope
from .reporting import export_resolved_csv, print_summary, save_errors_json, save_graph_json
from .resolver import ResolutionContext


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="artifact-resolver",
        description="Resolve artifact coordinates into a classpath and dependency graph"
    )

    parser.add_argument(
        "notations",
        nargs="*",
        metavar="NOTATION",
        help="Coordinates to resolve (group:artifact[:type[:classifier]]:version)"
    )

    parser.add_argument(
        "--scope",
        default="compile",
        choices=[scope.value for scope in Scope],
        help="Scope of the given coordinates. Default: compile"
    )

    parser.add_argument(
        "--repository",
        action="append",
        default=[],
        metavar="URL",
        help="Additional remote repository url, may be repeated"
    )

    parser.add_argument(
        "--no-central",
        action="store_true",
        help="Do not register Maven Central"
    )

    parser.add_argument(
        "--local-repo",
        default=None,
        help="Local repository path. Default: ~/.m2/repository"
    )

    parser.add_argument(
        "--build-artifact",
        action="append",
        nargs="+",
        default=[],
        metavar="ARG",
        help="Locally built artifact: NOTATION PATH [DESCRIPTOR], may be repeated"
    )

    parser.add_argument(
        "--no-download",
        action="store_true",
        help="Resolve the graph without downloading artifacts"
    )

    parser.add_argument(
        "--lenient",
        action="store_true",
        help="Continue when metadata is missing and report the failures"
    )

    parser.add_argument(
        "--strict-acyclic",
        action="store_true",
        help="Fail on dependency cycles"
    )

    parser.add_argument(
        "--ignore-optional-subtrees",
        action="store_true",
        help="Do not expand optional dependencies"
    )

    parser.add_argument(
        "--exclude-optional",
        action="store_true",
        help="Leave optional dependencies off the classpath"
    )

    parser.add_argument(
        "--scope-filter",
        action="append",
        default=None,
        choices=[scope.value for scope in Scope],
        help="Keep only these scopes in the result, may be repeated"
    )

    parser.add_argument(
        "--concurrency",
        type=int,
        default=4,
        help="Parallel metadata fetches and downloads. Default: 4"
    )

    parser.add_argument(
        "--timeout",
        type=float,
        default=30.0,
        help="Timeout in seconds for a single fetch. Default: 30"
    )

    parser.add_argument(
        "--output-dir",
        default=None,
        help="Write the graph JSON and resolved CSV to this directory"
    )

    parser.add_argument(
        "--name",
        default="resolution",
        help="File name prefix for --output-dir exports. Default: resolution"
    )

    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging"
    )

    return parser


def main(argv=None):
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    if not args.notations:
        parser.error("at least one NOTATION is required")

    for spec in args.build_artifact:
        if len(spec) not in (2, 3):
            parser.error("--build-artifact takes NOTATION PATH [DESCRIPTOR]")

    try:
        config = ResolutionConfig(
            download_artifacts=not args.no_download,
            lenient_metadata=args.lenient,
            strict_acyclic=args.strict_acyclic,
            ignore_optional_subtrees=args.ignore_optional_subtrees,
            fetch_concurrency=args.concurrency,
            scope_filter=args.scope_filter,
            fetch_timeout=args.timeout,
            include_optional_in_classpath=not args.exclude_optional,
        )
    except ValueError as e:
        parser.error(str(e))

    try:
        context = ResolutionContext(
            config=config,
            local_repo_path=args.local_repo,
            include_central=not args.no_central,
        )
        for url in args.repository:
            context.add_remote_repository_by_url(url)
        for spec in args.build_artifact:
            context.add_build_artifact(*spec)
        for notation in args.notations:
            context.add_dependency(notation, args.scope)

        result = context.resolve_dependencies()
    except ResolverError as e:
        logger.error("Resolution failed: %s", e)
        sys.exit(1)

    print_summary(result)
    for error in result.errors:
        logger.warning("Metadata error: %s", error)

    if args.output_dir:
        output_dir = Path(args.output_dir)
        graph_file = save_graph_json(context.dependencies_graph(), output_dir, args.name)
        csv_file = export_resolved_csv(result, output_dir, args.name)
        logger.info("Graph saved to: %s", graph_file)
        logger.info("Resolved dependencies saved to: %s", csv_file)
        errors_file = save_errors_json(result, output_dir, args.name)
        if errors_file is not None:
            logger.info("Metadata errors saved to: %s", errors_file)

    print(context.resolved_classpath())


if __name__ == "__main__":
    main()
