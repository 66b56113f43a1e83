"""Dotenv parsing, serialization and merging."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class EnvVar:
    """Parsed environment variable."""

    name: str
    value: str
    line_number: int
    raw_line: str

    @property
    def is_empty(self) -> bool:
        """Check if this variable has an empty value."""
        return not self.value


@dataclass
class EnvContent:
    """Parsed .env content."""

    path: Path
    variables: dict[str, EnvVar] = field(default_factory=dict)
    comments: list[str] = field(default_factory=list)

    def get(self, name: str) -> EnvVar | None:
        """Get a variable by name."""
        return self.variables.get(name)

    def to_dict(self) -> dict[str, str]:
        """Return variables as an ordered name -> value mapping."""
        return {name: var.value for name, var in self.variables.items()}

    def __contains__(self, name: str) -> bool:
        """Check if a variable exists."""
        return name in self.variables

    def __len__(self) -> int:
        """Return number of variables."""
        return len(self.variables)


class EnvParser:
    """Parse .env files.

    Handles:
    - Standard KEY=value
    - Optional ``export`` prefix
    - Quoted values: KEY="value" or KEY='value'
    - Inline comments after unquoted values
    - Comments and blank lines (skipped)
    """

    LINE_PATTERN = re.compile(r"^(?:export\s+)?([A-Za-z_][A-Za-z0-9_.]*)\s*=\s*(.*)$")

    def parse(self, path: Path | str) -> EnvContent:
        """Parse .env file and return structured data.

        Raises:
            FileNotFoundError: If the file doesn't exist
        """
        path = Path(path)

        if not path.exists():
            raise FileNotFoundError(f"ENV file not found: {path}")

        content = path.read_text(encoding="utf-8")
        env = self.parse_string(content)
        env.path = path

        return env

    def parse_string(self, content: str) -> EnvContent:
        """Parse .env content from string."""
        env = EnvContent(path=Path())

        for line_num, line in enumerate(content.splitlines(), start=1):
            original_line = line
            line = line.strip()

            if not line:
                continue

            if line.startswith("#"):
                env.comments.append(line)
                continue

            match = self.LINE_PATTERN.match(line)
            if not match:
                continue

            key = match.group(1)
            value = self._parse_value(match.group(2).strip())

            env.variables[key] = EnvVar(
                name=key,
                value=value,
                line_number=line_num,
                raw_line=original_line,
            )

        return env

    def _parse_value(self, value: str) -> str:
        """Unquote a raw value, or strip an inline comment from an unquoted one."""
        if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
            if value[0] == '"':
                try:
                    return json.loads(value)
                except ValueError:
                    pass
            return value[1:-1]

        # Unquoted: anything after " #" is a comment
        comment_at = value.find(" #")
        if comment_at != -1:
            value = value[:comment_at].rstrip()
        return value


_PLAIN_VALUE = re.compile(r"^[^\s#'\"\\]*$")


def serialize(variables: dict[str, str]) -> str:
    """Serialize variables to dotenv text.

    Values that would not survive an unquoted round trip (whitespace,
    quotes, ``#``, backslashes) are written as JSON double-quoted strings.
    """
    lines = []
    for key, value in variables.items():
        if _PLAIN_VALUE.match(value):
            lines.append(f"{key}={value}")
        else:
            lines.append(f"{key}={json.dumps(value)}")
    if not lines:
        return ""
    return "\n".join(lines) + "\n"


def parse(content: str) -> dict[str, str]:
    """Parse dotenv text to an ordered name -> value mapping."""
    return EnvParser().parse_string(content).to_dict()


def normalize(content: str) -> str:
    """Canonicalize dotenv formatting via a parse/serialize pass."""
    return serialize(parse(content))


def merge(primary: dict[str, str], defaults: dict[str, str]) -> dict[str, str]:
    """Merge two variable sets; ``primary`` wins on key collision.

    Keys keep the order of ``primary`` followed by keys only found in
    ``defaults``.
    """
    merged = dict(primary)
    for key, value in defaults.items():
        merged.setdefault(key, value)
    return merged
