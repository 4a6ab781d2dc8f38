"""huntcore command line interface."""

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.logging import RichHandler

from huntcore import engine, ir, javascript, report
from huntcore.config import HuntConfig, load_config
from huntcore.errors import ConfigError, MalformedIRError
from huntcore.semantic import SemanticUnit
from huntcore.text import TextFile, TextUnit, load_text_files

logger = logging.getLogger("huntcore")

console = Console()


def lower_files(files: List[TextFile], fail_fast: bool = False) -> List[ir.File]:
    """Parse and lower the JavaScript files among files.

    A file the IR cannot represent is skipped, or aborts the run when
    fail_fast is set.
    """
    lowered = []
    for f in files:
        if Path(f.display_name).suffix.lower() not in javascript.EXTENSIONS:
            continue
        tree = javascript.parse(f.content, f.display_name)
        try:
            lowered.append(ir.lower(tree))
        except MalformedIRError as e:
            if fail_fast:
                raise
            logger.error("skipping semantic analysis of %s", e)
    return lowered


def scan(target: str, config: HuntConfig) -> tuple:
    """Scan target with the configured rules. Returns (findings, file_count)."""
    files = load_text_files(target, config.extensions, config.exclude_paths)
    logger.info("scanning %d files", len(files))

    units = [
        TextUnit(files=files, max_workers=config.max_workers),
        SemanticUnit(files=lower_files(files, config.fail_fast)),
    ]
    return engine.run(units, config.rules), len(files)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='huntcore',
        description='huntcore - IR and pattern based JavaScript security scanner',
    )
    parser.add_argument('target', help='File or directory to scan')
    parser.add_argument('-v', '--verbose', action='store_true', help='Verbose output')
    parser.add_argument('--output', choices=['text', 'json'], default='text', help='Output format')
    parser.add_argument('-o', '--output-file', help='Save JSON report to file')
    parser.add_argument('--config', help='Path to .huntcore.yml config file')
    parser.add_argument('--workers', type=int, help='Threads used by text rules')
    parser.add_argument('--fail-fast', action='store_true',
                        help='Abort on the first file that cannot be lowered')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )

    if not Path(args.target).exists():
        console.print(f"[bold red]Error: {args.target} does not exist[/bold red]")
        return 2

    try:
        config = load_config(args.target, args.config)
    except ConfigError as e:
        console.print(f"[bold red]Config error: {e}[/bold red]")
        return 2
    if args.workers:
        config.max_workers = args.workers
    if args.fail_fast:
        config.fail_fast = True

    start = time.time()
    try:
        findings, file_count = scan(args.target, config)
    except MalformedIRError as e:
        console.print(f"[bold red]Error: {e}[/bold red]")
        return 2
    elapsed = time.time() - start

    if args.output == 'json' or args.output_file:
        report.output_json(console, findings, args.output_file)
    if args.output == 'text':
        report.output_rich(console, findings, args.target, file_count, elapsed)

    return 1 if findings else 0


if __name__ == '__main__':
    sys.exit(main())
