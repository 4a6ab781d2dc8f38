"""Rendering of findings: rich terminal output and JSON."""

import json
from collections import defaultdict
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from rich import box
from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.rule import Rule
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text

from huntcore import __version__
from huntcore.engine import Finding


def _build_stats_panel(findings: List[Finding], file_count: int, elapsed: float) -> Panel:
    stats = Table(show_header=False, box=None, padding=(0, 1), expand=True)
    stats.add_column("key", style="bold cyan", no_wrap=True, ratio=3)
    stats.add_column("value", style="white", ratio=1)
    stats.add_row("Files Scanned", str(file_count))
    stats.add_row("Total Findings", str(len(findings)))
    stats.add_row("Scan Time", f"{elapsed:.2f}s")
    stats.add_row("", "")

    rule_counts: Dict[str, int] = defaultdict(int)
    for f in findings:
        rule_counts[f.id] += 1
    for rule_id, count in sorted(rule_counts.items(), key=lambda x: -x[1]):
        stats.add_row(Text(rule_id, style="cyan"), str(count))

    return Panel(stats, title="[bold white]Scan Statistics[/bold white]",
                 border_style="cyan", box=box.ROUNDED, padding=(1, 1))


def _source_lines(path: Path, cache: Dict[Path, Optional[List[str]]]) -> Optional[List[str]]:
    if path not in cache:
        try:
            cache[path] = path.read_text(encoding='utf-8', errors='ignore').split('\n')
        except OSError:
            cache[path] = None
    return cache[path]


def _build_finding_panel(f: Finding, lines: Optional[List[str]]) -> Panel:
    loc = f.source_location
    title = Text()
    title.append(f" {f.id} ", style="bold white on red")
    title.append(f" Line {loc.line}, Col {loc.column} ", style="dim")

    if lines and 0 < loc.line <= len(lines):
        start = max(0, loc.line - 3)
        end = min(len(lines), loc.line + 2)
        body = Syntax('\n'.join(lines[start:end]), "javascript", theme="monokai",
                      line_numbers=True, start_line=start + 1,
                      highlight_lines={loc.line})
    else:
        # Absence findings (line 0) have no code to show.
        body = Text("Expected pattern not found in file.", style="italic white")

    return Panel(body, title=title, border_style="red", box=box.ROUNDED, padding=(1, 2))


def output_rich(console: Console, findings: List[Finding], target: str,
                file_count: int, elapsed: float):
    scan_date = datetime.now().strftime('%Y-%m-%d %H:%M:%S')
    header = Text()
    header.append("Target: ", style="bold cyan")
    header.append(f"{target}  ", style="white")
    header.append("Date: ", style="bold cyan")
    header.append(scan_date, style="white")

    console.print(Panel(Align.center(header), title="[bold white]Scan Info[/bold white]",
                        border_style="blue", box=box.ROUNDED))
    console.print()
    console.print(_build_stats_panel(findings, file_count, elapsed))
    console.print()

    if not findings:
        console.print(Panel(
            Align.center(Text("No vulnerabilities found.", style="bold green")),
            border_style="green", box=box.ROUNDED, padding=(1, 4)))
        return

    console.print(Rule("[bold white]Findings[/bold white]", style="red"))
    console.print()

    base = Path(target) if Path(target).is_dir() else Path(target).parent
    source_cache: Dict[Path, Optional[List[str]]] = {}
    by_file: Dict[str, List[Finding]] = defaultdict(list)
    for f in findings:
        by_file[f.source_location.filename].append(f)

    for filename, file_findings in sorted(by_file.items()):
        console.print(Text(f"FILE: {filename}", style="bold underline cyan"))
        console.print()
        path = Path(filename) if Path(filename).is_absolute() else base / filename
        lines = _source_lines(path, source_cache)
        for f in file_findings:
            console.print(_build_finding_panel(f, lines))
            console.print()


def to_json(findings: List[Finding]) -> str:
    data = {
        "scan_date": datetime.now().isoformat(),
        "scanner": f"huntcore {__version__}",
        "total_findings": len(findings),
        "findings": [f.to_dict() for f in findings],
    }
    return json.dumps(data, indent=2)


def output_json(console: Console, findings: List[Finding], file_path: str = None):
    payload = to_json(findings)
    if file_path:
        with open(file_path, 'w', encoding='utf-8') as out:
            out.write(payload)
    else:
        console.print_json(payload)
