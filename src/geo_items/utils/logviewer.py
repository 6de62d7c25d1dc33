"""
Pretty printer for geo_items JSON log files.

    python -m geo_items.utils.logviewer logs/geo_items.log -l WARNING -o radius_query
"""

import argparse
import json
from typing import Iterable, Iterator, List, Optional

from colorama import Fore, Style, init

COLORS = {
    "DEBUG": Fore.BLUE,
    "INFO": Fore.GREEN,
    "WARNING": Fore.YELLOW,
    "ERROR": Fore.RED,
    "CRITICAL": Fore.RED + Style.BRIGHT
}

LEVEL_PRIORITIES = {
    "DEBUG": 0,
    "INFO": 1,
    "WARNING": 2,
    "ERROR": 3,
    "CRITICAL": 4
}

CONTEXT_FIELDS = ["operation", "search_id", "item_id", "status"]


def format_log_entry(entry: str) -> str:
    try:
        data = json.loads(entry)
    except json.JSONDecodeError:
        return entry  # Return the original line if not valid JSON

    level = data.get("level", "INFO")
    color = COLORS.get(level, "")
    reset = Style.RESET_ALL

    timestamp = data.get("timestamp", "")
    message = data.get("message", "")

    # Extract key context fields
    context = [f"{field}={data[field]}" for field in CONTEXT_FIELDS if field in data]

    # Format search metrics if present
    metrics = data.get("metrics")
    if isinstance(metrics, dict):
        context.append(f"ranges={metrics.get('ranges_scanned', 0)}")
        context.append(f"candidates={metrics.get('candidates', 0)}")
        context.append(f"returned={metrics.get('returned', 0)}")

    context_str = " | ".join(context)

    return f"{timestamp} {color}{level.ljust(8)}{reset} {message} [{context_str}]"


def filter_lines(
        lines: Iterable[str],
        level: Optional[str] = None,
        text: Optional[str] = None,
        operation: Optional[str] = None,
        ) -> Iterator[str]:
    """Yield formatted entries that pass the level, text and operation filters."""
    min_priority = LEVEL_PRIORITIES.get(level, 0)
    for line in lines:
        line = line.strip()
        if not line:
            continue

        try:
            data = json.loads(line)
        except json.JSONDecodeError:
            yield line
            continue

        if level and LEVEL_PRIORITIES.get(data.get("level", ""), 0) < min_priority:
            continue
        if text and text.lower() not in line.lower():
            continue
        if operation and data.get("operation", "") != operation:
            continue

        yield format_log_entry(line)


def main(argv: Optional[List[str]] = None):
    init()  # Initialize colorama

    parser = argparse.ArgumentParser(description="Pretty print JSON log files")
    parser.add_argument("logfile", help="Path to the JSON log file")
    parser.add_argument("-l", "--level", choices=list(LEVEL_PRIORITIES),
                        help="Minimum log level to display")
    parser.add_argument("-f", "--filter", help="Only show logs containing this text")
    parser.add_argument("-o", "--operation", help="Filter by operation type")
    args = parser.parse_args(argv)

    with open(args.logfile, 'r') as f:
        for entry in filter_lines(f, level=args.level, text=args.filter, operation=args.operation):
            print(entry)


if __name__ == "__main__":
    main()
