"""Decoding of result literals printed by the remote runtime.

The runtime answers with printed data literals: vectors, lists, maps,
strings, numbers, ``nil``, booleans, keywords and symbols. This module reads
that subset and validates the positional shape of the two payloads the bridge
consumes before anything else looks at them.
"""

import logging
import re
from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from repl_test_bridge.errors import MalformedResultError, MissingMetadataError
from repl_test_bridge.models.result import (
    AssertionKind,
    AssertionOutcome,
    TestResultRecord,
    TestRunSummary,
)

log = logging.getLogger(__name__)

ASSERTION_KINDS: Mapping[str, AssertionKind] = {
    "pass": "pass",
    "fail": "fail",
    "error": "error",
}

_TOKEN = re.compile(
    r"""
    (?P<ws>[\s,]+|;[^\n]*)
    | (?P<open>[\[({])
    | (?P<close>[\])}])
    | (?P<string>"(?:[^"\\]|\\.)*")
    | (?P<atom>[^\s,;()\[\]{}"]+)
    """,
    re.VERBOSE | re.DOTALL,
)
_ESCAPE = re.compile(r"\\(u[0-9a-fA-F]{4}|.)", re.DOTALL)
_ESCAPES = {'"': '"', "\\": "\\", "n": "\n", "t": "\t", "r": "\r", "b": "\b", "f": "\f"}
_INTEGER = re.compile(r"[+-]?\d+N?")
_FLOAT = re.compile(r"[+-]?(?:\d+\.\d*|\.\d+|\d+)(?:[eE][+-]?\d+)?M?")
_CLOSERS = {"[": "]", "(": ")", "{": "}"}


@dataclass(frozen=True)
class Keyword:
    """A keyword atom such as ``:fail``."""

    name: str

    def __str__(self) -> str:
        return f":{self.name}"


@dataclass(frozen=True)
class Symbol:
    """A bare symbol atom."""

    name: str

    def __str__(self) -> str:
        return self.name


def read_literal(raw: str) -> Any:
    """Read exactly one literal from ``raw``.

    Vectors and lists become tuples, maps become dicts, ``nil`` becomes None.

    Raises:
        MalformedResultError: If ``raw`` is not a single well-formed literal

    """
    reader = _Reader(raw)
    value = reader.read()
    reader.expect_end()
    return value


def decode_summary(raw: str) -> TestRunSummary:
    """Decode ``[filter test pass fail error elapsed]`` into a summary.

    Raises:
        MalformedResultError: If arity or field types do not match

    """
    fields = _expect_sequence(_read_payload(raw), "summary", arity=6)
    filter_expression, tests, passed, failed, errors, elapsed = fields

    if filter_expression is not None and not isinstance(filter_expression, str):
        raise MalformedResultError(
            f"Filter expression must be a string or nil, got {filter_expression!r}"
        )

    return TestRunSummary(
        filter_expression=filter_expression,
        test_count=_count(tests, "test count"),
        pass_count=_count(passed, "pass count"),
        fail_count=_count(failed, "fail count"),
        error_count=_count(errors, "error count"),
        elapsed_seconds=_seconds(elapsed),
    )


def decode_details(raw: str) -> Sequence[TestResultRecord | MissingMetadataError]:
    """Decode the per-test details payload.

    Each entry is ``[qualified-name metadata assertions]``. A record without a
    source file is returned as a MissingMetadataError in its place so the
    remaining records stay usable.

    Raises:
        MalformedResultError: If any entry does not have the expected shape

    """
    entries = _expect_sequence(_read_payload(raw), "details")

    decoded: list[TestResultRecord | MissingMetadataError] = []
    for entry in entries:
        try:
            decoded.append(_decode_record(entry))
        except MissingMetadataError as exc:
            log.warning("Skipping test without source file: %s", exc.test_id)
            decoded.append(exc)
    return decoded


def _read_payload(raw: str) -> Any:
    value = read_literal(raw)
    # Results printed with pr-str arrive wrapped in one more string literal.
    if isinstance(value, str):
        value = read_literal(value)
    return value


def _decode_record(entry: Any) -> TestResultRecord:
    qualified_name, metadata, assertions = _expect_sequence(
        entry, "test record", arity=3
    )
    test_id = _name(qualified_name, "qualified test name")
    fields = _metadata(metadata, test_id)
    outcomes = tuple(
        _decode_assertion(assertion, test_id)
        for assertion in _expect_sequence(assertions, f"assertions of {test_id}")
    )

    source_file = fields.get("file")
    if source_file is None or source_file == "":
        raise MissingMetadataError(test_id)
    if not isinstance(source_file, str):
        raise MalformedResultError(
            f"Source file of {test_id} must be a string, got {source_file!r}"
        )

    name = fields.get("name")
    return TestResultRecord(
        test_id=test_id,
        source_file=source_file,
        line=_optional_line(fields.get("line"), test_id),
        name=None if name is None else _name(name, f"name of {test_id}"),
        assertions=outcomes,
    )


def _decode_assertion(value: Any, test_id: str) -> AssertionOutcome:
    kind, message, expected, actual, line = _expect_sequence(
        value, f"assertion of {test_id}", arity=5
    )
    if not isinstance(kind, Keyword) or kind.name not in ASSERTION_KINDS:
        raise MalformedResultError(f"Unknown assertion kind {kind!r} in {test_id}")

    return AssertionOutcome(
        kind=ASSERTION_KINDS[kind.name],
        message=_printed(message, test_id),
        expected=_printed(expected, test_id),
        actual=_printed(actual, test_id),
        line=_optional_line(line, test_id),
    )


def _metadata(value: Any, test_id: str) -> Mapping[str, Any]:
    """Normalize a map, a pair sequence or a flat key/value sequence."""
    pairs: Iterable[tuple[Any, Any]]
    if value is None:
        return {}
    if isinstance(value, dict):
        pairs = value.items()
    elif isinstance(value, tuple) and all(
        isinstance(pair, tuple) and len(pair) == 2 for pair in value
    ):
        pairs = value
    elif isinstance(value, tuple) and len(value) % 2 == 0:
        pairs = zip(value[::2], value[1::2], strict=True)
    else:
        raise MalformedResultError(f"Unreadable metadata for {test_id}: {value!r}")

    return {_name(key, f"metadata key of {test_id}"): item for key, item in pairs}


def _expect_sequence(
    value: Any, what: str, arity: int | None = None
) -> tuple[Any, ...]:
    if not isinstance(value, tuple):
        raise MalformedResultError(f"Expected a sequence for {what}, got {value!r}")
    if arity is not None and len(value) != arity:
        raise MalformedResultError(
            f"Expected {arity} elements in {what}, got {len(value)}"
        )
    return value


def _count(value: Any, what: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise MalformedResultError(f"Invalid {what}: {value!r}")
    return value


def _seconds(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, int | float) or value < 0:
        raise MalformedResultError(f"Invalid elapsed time: {value!r}")
    return float(value)


def _optional_line(value: Any, test_id: str) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise MalformedResultError(f"Invalid line number in {test_id}: {value!r}")
    return value


def _name(value: Any, what: str) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, Keyword | Symbol):
        return value.name
    raise MalformedResultError(f"Invalid {what}: {value!r}")


def _printed(value: Any, test_id: str) -> str | None:
    """Render a scalar the way the runtime would print it."""
    match value:
        case None:
            return None
        case str():
            return value
        case bool():
            return "true" if value else "false"
        case int() | float() | Keyword() | Symbol():
            return str(value)
    raise MalformedResultError(f"Expected a printed value in {test_id}, got {value!r}")


class _Reader:
    """Recursive descent over the token stream of one payload."""

    def __init__(self, raw: str) -> None:
        self._tokens = list(_tokenize(raw))
        self._pos = 0

    def read(self) -> Any:
        if self._pos >= len(self._tokens):
            raise MalformedResultError("Unexpected end of input")
        kind, text, offset = self._tokens[self._pos]
        self._pos += 1

        if kind == "open":
            return self._read_collection(text, offset)
        if kind == "close":
            raise MalformedResultError(f"Unexpected {text!r} at offset {offset}")
        if kind == "string":
            return _unescape(text[1:-1])
        return _read_atom(text, offset)

    def expect_end(self) -> None:
        if self._pos < len(self._tokens):
            _, text, offset = self._tokens[self._pos]
            raise MalformedResultError(f"Trailing input {text!r} at offset {offset}")

    def _read_collection(self, opener: str, offset: int) -> Any:
        closer = _CLOSERS[opener]
        items: list[Any] = []
        while True:
            if self._pos >= len(self._tokens):
                raise MalformedResultError(f"Unclosed {opener!r} at offset {offset}")
            kind, text, _ = self._tokens[self._pos]
            if kind == "close":
                self._pos += 1
                if text != closer:
                    raise MalformedResultError(
                        f"Mismatched {text!r} closing {opener!r} at offset {offset}"
                    )
                break
            items.append(self.read())

        if opener != "{":
            return tuple(items)
        if len(items) % 2:
            raise MalformedResultError(f"Odd number of forms in map at offset {offset}")
        try:
            return dict(zip(items[::2], items[1::2], strict=True))
        except TypeError as exc:
            raise MalformedResultError(
                f"Unhashable map key at offset {offset}"
            ) from exc


def _tokenize(raw: str) -> Iterator[tuple[str, str, int]]:
    pos = 0
    while pos < len(raw):
        match = _TOKEN.match(raw, pos)
        if match is None:
            raise MalformedResultError(
                f"Unexpected character {raw[pos]!r} at offset {pos}"
            )
        pos = match.end()
        if match.lastgroup != "ws":
            yield match.lastgroup or "", match.group(), match.start()


def _read_atom(text: str, offset: int) -> Any:
    if text == "nil":
        return None
    if text in ("true", "false"):
        return text == "true"
    if _INTEGER.fullmatch(text):
        return int(text.rstrip("N"))
    if _FLOAT.fullmatch(text):
        return float(text.rstrip("M"))
    if text.startswith(":") and len(text) > 1:
        return Keyword(text[1:])
    if text[0].isdigit() or text[0] in "#\\@^`~'":
        raise MalformedResultError(f"Unsupported literal {text!r} at offset {offset}")
    return Symbol(text)


def _unescape(body: str) -> str:
    def replace(match: re.Match[str]) -> str:
        escape = match.group(1)
        if escape.startswith("u") and len(escape) == 5:
            return chr(int(escape[1:], 16))
        try:
            return _ESCAPES[escape]
        except KeyError:
            raise MalformedResultError(f"Unsupported escape \\{escape}") from None

    return _ESCAPE.sub(replace, body)
