"""Parsing for nmcli terse (``-t``) output.

Terse mode prints one record per line with fields joined by ``:``.  Colons
and backslashes inside a value are escaped as ``\\:`` and ``\\\\``, and an
empty value is printed as the two-character sentinel ``--``.

Two shapes are handled:

* key/value lines (``nmcli -t device show``)::

      GENERAL.STATE:100 (connected)
      IP4.ADDRESS[1]:192.168.4.2/24

* fixed-field records (``nmcli -t -f SSID,SIGNAL,SECURITY device wifi list``)::

      RoboDog-AP:87:WPA2
"""

from __future__ import annotations

import logging
import re

logger = logging.getLogger(__name__)

DELIMITER = ":"
EMPTY_SENTINEL = "--"

_ESCAPE_RE = re.compile(r"\\(.)")


def _unescape(value: str) -> str:
    return _ESCAPE_RE.sub(r"\1", value)


def normalize_value(value: str | None) -> str | None:
    """Map nmcli's "no value" forms (``--`` or empty) to ``None``."""
    if value is None:
        return None
    value = value.strip()
    if not value or value == EMPTY_SENTINEL:
        return None
    return value


def split_terse_line(line: str) -> list[str]:
    """Split a terse-mode line on unescaped colons and unescape the fields.

    A backslash always escapes the next character, so ``Lab\\\\:80`` is the
    value ``Lab\\`` followed by a delimiter.
    """
    fields: list[str] = []
    current: list[str] = []
    chars = iter(line)
    for ch in chars:
        if ch == "\\":
            # A trailing lone backslash is kept as-is
            current.append(next(chars, "\\"))
        elif ch == DELIMITER:
            fields.append("".join(current))
            current = []
        else:
            current.append(ch)
    fields.append("".join(current))
    return fields


def parse_key_values(text: str) -> list[tuple[str, str]]:
    """Parse ``KEY:VALUE`` lines into ordered pairs.

    Splits on the first delimiter only, so values may contain colons.
    Lines without a delimiter are skipped.
    """
    pairs: list[tuple[str, str]] = []
    for line in text.splitlines():
        if not line.strip():
            continue
        key, sep, value = line.partition(DELIMITER)
        if not sep:
            logger.debug("skipping line without delimiter: %r", line)
            continue
        pairs.append((key.strip(), _unescape(value)))
    return pairs


def parse_records(text: str, fields: int) -> list[list[str]]:
    """Parse fixed-field terse records.

    Args:
        text: Raw nmcli stdout.
        fields: Number of declared columns.  Anything past the last column
            is joined back onto it with ``:``.  Shorter lines are skipped.

    Returns:
        One list of exactly *fields* strings per accepted line.
    """
    if fields < 1:
        raise ValueError("fields must be at least 1")

    records: list[list[str]] = []
    for line in text.splitlines():
        if not line.strip():
            continue
        parts = split_terse_line(line)
        if len(parts) < fields:
            logger.debug("skipping short record (%d < %d): %r", len(parts), fields, line)
            continue
        if len(parts) > fields:
            parts = parts[:fields - 1] + [DELIMITER.join(parts[fields - 1:])]
        records.append(parts)
    return records
