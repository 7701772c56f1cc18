"""Operator-facing output: console tables, CSV files, verbose/warning lines."""
import os
import sys
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd
from tabulate import tabulate


def vprint(verbose: bool, *args, **kwargs):
    """Print arguments only when verbose is True."""
    if verbose:
        print(*args, **kwargs)


def warn(message: str) -> None:
    print(f"WARNING: {message}", file=sys.stderr)


def error(message: str) -> None:
    print(f"ERROR: {message}", file=sys.stderr)


def render_table(rows: List[Dict[str, Any]], title: str = "", footer: str = "",
                 headers: Optional[Sequence[str]] = None) -> None:
    """Print rows as a grid table, with an optional title above and footer below."""
    cols = list(headers) if headers else (list(rows[0].keys()) if rows else [])
    if title:
        print(title)
    print(tabulate([[r.get(c, "") for c in cols] for r in rows], headers=cols, tablefmt="grid"))
    if footer:
        print(footer)
    print()


def write_csv(rows: List[Dict[str, Any]], columns: Sequence[str], path: str) -> str:
    """Write rows to a UTF-8 CSV with a fixed header; the header is written even with no rows."""
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    df = pd.DataFrame(rows, columns=list(columns))
    df.to_csv(path, index=False, encoding="utf-8")
    return path
