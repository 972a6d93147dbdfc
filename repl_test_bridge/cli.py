"""CLI entry point for the REPL test bridge."""

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from repl_test_bridge.aggregator import ReportAggregator
from repl_test_bridge.channels.loading import load_channel_manifest
from repl_test_bridge.commands import BridgeCommands
from repl_test_bridge.config import load_project_config_or_default
from repl_test_bridge.controller import Notice
from repl_test_bridge.errors import BridgeError
from repl_test_bridge.models.annotation import ProblemAnnotation
from repl_test_bridge.paths import namespace_of

STATUS_SYMBOLS = {
    "success": "✅",
    "failure": "❌",
    "error": "❗",
}


def log_results_summary(
    log: logging.Logger,
    aggregator: ReportAggregator,
    annotations: Sequence[ProblemAnnotation],
) -> None:
    """Log the run summary followed by one line per annotation."""
    log.info("=" * 80)
    log.info(
        "%s %s", STATUS_SYMBOLS.get(aggregator.classify(), "?"), aggregator.format()
    )
    log.info("=" * 80)

    for annotation in annotations:
        log.info(
            "%s:%d: %s: %s",
            annotation.file,
            annotation.line,
            annotation.severity,
            annotation.message,
        )


def format_output(
    aggregator: ReportAggregator, annotations: Sequence[ProblemAnnotation]
) -> dict[str, Any]:
    """Format the run for JSON output."""
    summary = aggregator.summary
    return {
        "status": aggregator.classify(),
        "filter": summary.filter_expression,
        "tests": summary.test_count,
        "passed": summary.pass_count,
        "failed": summary.fail_count,
        "errors": summary.error_count,
        "elapsed_seconds": summary.elapsed_seconds,
        "annotations": [
            {
                "file": str(annotation.file),
                "line": annotation.line,
                "severity": annotation.severity,
                "message": annotation.message,
            }
            for annotation in annotations
        ],
    }


async def run(
    channel_key: str,
    channel_config_json: str,
    project_root: Path,
    filter_expression: str | None = None,
) -> int:
    """Run the test suite in the remote runtime and return exit code."""
    log = logging.getLogger("repl_test_bridge")

    log.info("Loading channel: %s", channel_key)
    manifest = load_channel_manifest(channel_key)
    config = manifest.config_cls(**json.loads(channel_config_json))
    project = load_project_config_or_default(project_root)

    notices: list[Notice] = []
    async with manifest.channel_factory(config) as channel:
        commands = BridgeCommands.create(
            channel, project_root, project, notify=notices.append
        )
        if filter_expression is not None:
            commands.set_filter(filter_expression)

        if await commands.run_tests() is None:
            for notice in notices:
                log.error("%s", notice.text)
            return 2
        await commands.controller.join()

    for notice in notices:
        if notice.level in {"warning", "error"}:
            log.warning("%s", notice.text)

    store = commands.store
    annotations = [a for file in store.files() for a in store.annotations_for(file)]
    log_results_summary(log, commands.aggregator, annotations)
    print(json.dumps(format_output(commands.aggregator, annotations), indent=2))

    aborted = any(notice.level == "error" for notice in notices)
    return 1 if aborted or commands.aggregator.classify() != "success" else 0


def counterpart(file: Path, project_root: Path, *, to_test: bool) -> Path:
    """Path of the test (or implementation) counterpart of ``file``."""
    project = load_project_config_or_default(project_root)
    mapper = project.path_mapper()
    layout = project.layout(project_root)
    namespace = namespace_of(file)
    if to_test:
        return layout.test_dir / mapper.test_path_for(namespace)
    return layout.source_dir / mapper.implementation_path_for(namespace)


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Run tests in a live runtime and annotate the results"
    )
    parser.add_argument(
        "--project-root",
        type=Path,
        default=Path.cwd(),
        help="Project root holding the source and test trees",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Run all tests")
    run_parser.add_argument(
        "--channel",
        default="http",
        help="Channel key (http)",
    )
    run_parser.add_argument(
        "--channel-config",
        default="{}",
        help="JSON configuration for the channel",
    )
    run_parser.add_argument(
        "--filter",
        default=None,
        help="Regex restricting the namespaces that run",
    )

    for name, help_text in (
        ("jump-to-test", "Print the test file for an implementation file"),
        ("jump-to-implementation", "Print the implementation file for a test file"),
    ):
        jump_parser = subparsers.add_parser(name, help=help_text)
        jump_parser.add_argument("file", type=Path, help="Source file")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    if args.command == "run":
        exit_code = asyncio.run(
            run(
                channel_key=args.channel,
                channel_config_json=args.channel_config,
                project_root=args.project_root,
                filter_expression=args.filter,
            )
        )
        sys.exit(exit_code)

    try:
        path = counterpart(
            args.file, args.project_root, to_test=args.command == "jump-to-test"
        )
    except BridgeError as exc:
        logging.getLogger("repl_test_bridge").error("%s", exc)
        sys.exit(1)
    print(path)


if __name__ == "__main__":  # pragma: no cover
    main()
