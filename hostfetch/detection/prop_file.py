from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional, Sequence, Tuple

from hostfetch.core.identity import IdentityRecord


PropQuery = Tuple[str, str]  # (key token, target attribute name)

_BLANKS = " \t"
_SHELL_UNESCAPE_RE = re.compile(r"\\([\\$\"'`])")


def _match_key(line: str, key: str) -> Optional[int]:
    """
    Match `key` at the start of `line` and return the index right after it.

    Leading blanks of the line are ignored. A run of blanks in the key matches
    any run of blanks in the line, including none ("ID =" matches "ID=x").
    """
    i = 0
    n = len(line)
    while i < n and line[i] in _BLANKS:
        i += 1

    k = 0
    while k < len(key):
        if key[k] in _BLANKS:
            while k < len(key) and key[k] in _BLANKS:
                k += 1
            while i < n and line[i] in _BLANKS:
                i += 1
            continue
        if i >= n or line[i] != key[k]:
            return None
        i += 1
        k += 1
    return i


def _closing_quote(rest: str, quote: str) -> int:
    # Inside double quotes a quote after an odd run of backslashes is escaped;
    # single quotes have no escapes at all.
    end = rest.find(quote, 1)
    if quote == "'":
        return end
    while end != -1:
        j = end - 1
        while j >= 1 and rest[j] == "\\":
            j -= 1
        if (end - 1 - j) % 2 == 0:
            return end
        end = rest.find(quote, end + 1)
    return -1


def _parse_value(rest: str) -> Tuple[str, str]:
    """
    Returns (value, quote); quote is the opening quote character, or "" when unquoted.
    """
    rest = rest.lstrip(_BLANKS).rstrip("\r\n")
    if rest[:1] in ("\"", "'"):
        quote = rest[0]
        end = _closing_quote(rest, quote)
        return (rest[1:] if end == -1 else rest[1:end]), quote
    return rest.rstrip(_BLANKS), ""


def parse_prop_line(line: str, key: str) -> Optional[Tuple[str, str]]:
    end = _match_key(line, key)
    if end is None:
        return None
    value, quote = _parse_value(line[end:])
    if not value:
        return None
    return value, quote


def parse_prop_file_values(
    path: Path,
    queries: Sequence[PropQuery],
    target: Any,
    *,
    shell_unescape: bool = False,
) -> bool:
    """
    Fill empty attributes of `target` from a `KEY=value` style file.

    `target` is usually an IdentityRecord; probes reuse this for toolkit settings files.
    - Only fields that are empty on entry are fillable. Within the file every matching
      line assigns, so the last one wins (shell assignment order).
    - Returns False when the file cannot be read (nothing is filled), True otherwise.
    """
    try:
        with Path(path).open("r", encoding="utf-8", errors="replace") as f:
            lines = f.readlines()
    except OSError:
        return False

    fillable: List[PropQuery] = [(key, field) for key, field in queries if not getattr(target, field)]
    if not fillable:
        return True

    for line in lines:
        for key, field in fillable:
            parsed = parse_prop_line(line, key)
            if parsed is None:
                continue
            value, quote = parsed
            if shell_unescape and quote == "\"":
                value = _SHELL_UNESCAPE_RE.sub(r"\1", value)
            setattr(target, field, value)
    return True


@dataclass(frozen=True)
class Dialect:
    name: str
    queries: Tuple[PropQuery, ...]
    shell_unescape: bool = False

    def parse(self, path: Path, record: IdentityRecord) -> bool:
        return parse_prop_file_values(path, self.queries, record, shell_unescape=self.shell_unescape)


LSB_RELEASE = Dialect(
    name="lsb-release",
    queries=(
        ("DISTRIB_ID =", "id"),
        ("DISTRIB_DESCRIPTION =", "pretty_name"),
        ("DISTRIB_RELEASE =", "version"),
        ("DISTRIB_CODENAME =", "codename"),
    ),
)

OS_RELEASE = Dialect(
    name="os-release",
    queries=(
        ("PRETTY_NAME =", "pretty_name"),
        ("NAME =", "name"),
        ("ID =", "id"),
        ("ID_LIKE =", "id_like"),
        ("VARIANT =", "variant"),
        ("VARIANT_ID =", "variant_id"),
        ("VERSION =", "version"),
        ("VERSION_ID =", "version_id"),
        ("VERSION_CODENAME =", "codename"),
        ("BUILD_ID =", "build_id"),
    ),
    shell_unescape=True,
)


def parse_lsb_release(path: Path, record: IdentityRecord) -> bool:
    return LSB_RELEASE.parse(path, record)


def parse_os_release(path: Path, record: IdentityRecord) -> bool:
    return OS_RELEASE.parse(path, record)
