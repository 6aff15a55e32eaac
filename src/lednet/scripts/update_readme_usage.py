#!/usr/bin/env python3
"""Regenerate the README Usage section from the CLI's own help output.

The top-level help is followed by the help of every subcommand.
"""

from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path

from markdown_it import MarkdownIt

from lednet.main import build_args

ROOT = Path(__file__).resolve().parents[3]
README_PATH = ROOT / "README.md"
SRC_PATH = ROOT / "src"
USAGE_HEADING = "Usage"


def render_help(argv: list[str]) -> str:
    env = os.environ.copy()
    env["COLUMNS"] = "80"
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(SRC_PATH), env.get("PYTHONPATH")]))
    return subprocess.check_output(
        [sys.executable, "-m", "lednet.main", *argv, "--help"],
        cwd=ROOT,
        env=env,
        text=True,
    ).rstrip()


def subcommand_names() -> list[str]:
    return list(build_args().get_default("commands"))


def build_usage_section() -> list[str]:
    lines = [f"## {USAGE_HEADING}", "", "```text", "$ lednet --help", render_help([]), "```", ""]
    for name in subcommand_names():
        lines += [f"### `{name}`", "", "```text", render_help([name]), "```", ""]
    return lines


def find_section_bounds(readme_text: str, heading: str) -> tuple[int, int]:
    """Return the line span of an h2 section, up to the next h2 or end of file."""
    tokens = MarkdownIt().parse(readme_text)
    h2_starts = [
        (token.map[0], tokens[index + 1].content.strip())
        for index, token in enumerate(tokens)
        if token.type == "heading_open" and token.tag == "h2" and token.map
    ]
    for position, (start, title) in enumerate(h2_starts):
        if title == heading:
            if position + 1 < len(h2_starts):
                return start, h2_starts[position + 1][0]
            return start, len(readme_text.splitlines())
    raise RuntimeError(f"Could not find '## {heading}' in README.md.")


def replace_usage(readme_text: str, usage_lines: list[str]) -> str:
    start, end = find_section_bounds(readme_text, USAGE_HEADING)
    lines = readme_text.splitlines()
    return "\n".join(lines[:start] + usage_lines + lines[end:]).rstrip() + "\n"


def main() -> int:
    readme_text = README_PATH.read_text(encoding="utf-8")
    updated = replace_usage(readme_text, build_usage_section())

    if updated == readme_text:
        print("README usage section is up to date.")
        return 0

    README_PATH.write_text(updated, encoding="utf-8")
    print("Updated README usage section.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
