"""
Turns fluent expression source into a ParsedExpression.

The grammar lives in `grammar/calc_grammar.yaml` and is compiled by koine: a
seed call `Name(number)` followed by zero or more `.Name(argument)` calls.
Stray text between calls is skipped one character at a time. The strict
variant, `grammar/calc_strict_grammar.yaml`, only allows whitespace there.
"""

import math
import re
from pathlib import Path
from typing import Dict

from koine import Parser

from calcchain.calc_datatypes import (
    CallDescriptor, ParsedExpression, ParseError,
    MISSING_OR_INVALID_SEED, UNEXPECTED_TEXT,
)

GRAMMAR_DIR = Path(__file__).parent / "grammar"
PERMISSIVE_GRAMMAR = "calc_grammar.yaml"
STRICT_GRAMMAR = "calc_strict_grammar.yaml"

_NUMERAL = r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)"

NUMBER_RE = re.compile(_NUMERAL + r"(?:[eE][+-]?\d+)?")
# koine reports failures as "... at L<line>:C<col> ..."
_LOCATION_RE = re.compile(r"L(\d+):C(\d+)")


def parse_number(text: str) -> float:
    """Parse a locale-invariant decimal numeral; no grouping, no inf/nan.

    Numerals whose magnitude overflows a float (`1e999`) are rejected too.
    """
    s = text.strip() if isinstance(text, str) else text
    if not isinstance(s, str) or not NUMBER_RE.fullmatch(s):
        raise ValueError(f"not a number: {text!r}")
    v = float(s)
    if not math.isfinite(v):
        raise ValueError(f"number out of range: {text!r}")
    return v


def _absolute_col(source: str, line: int, col: int) -> int:
    """Turn a koine (line, col) pair into a 1-based column over the whole source."""
    if line <= 1:
        return col
    preceding = source.split('\n')[:line - 1]
    return sum(len(text) + 1 for text in preceding) + col


def _error_col(parse_out: dict, source: str):
    node = parse_out.get('error_node') or {}
    if node.get('line') is not None and node.get('col') is not None:
        return _absolute_col(source, node['line'], node['col'])
    m = _LOCATION_RE.search(parse_out.get('message') or '')
    if m is None:
        return None
    return _absolute_col(source, int(m.group(1)), int(m.group(2)))


def _collect(node, tags, found):
    """Gather AST nodes with the given tags, in source order, without entering them."""
    if isinstance(node, list):
        for item in node:
            _collect(item, tags, found)
    elif isinstance(node, dict):
        if node.get('tag') in tags:
            found.append(node)
            return found
        children = node.get('children')
        if isinstance(children, dict):
            children = list(children.values())
        if children:
            _collect(children, tags, found)
    return found


class ExpressionParser:
    # Compiled grammars, shared by every parser instance.
    _parsers: Dict[str, Parser] = {}

    def __init__(self, strict: bool = False):
        self.strict = strict
        self.parser = self._load(STRICT_GRAMMAR if strict else PERMISSIVE_GRAMMAR)

    @classmethod
    def _load(cls, name: str) -> Parser:
        if name not in cls._parsers:
            cls._parsers[name] = Parser.from_file(str(GRAMMAR_DIR / name))
        return cls._parsers[name]

    def parse(self, source: str) -> ParsedExpression:
        if not isinstance(source, str):
            raise TypeError(f"expression source must be str, not {type(source).__name__}")
        parse_out = self.parser.parse(source)
        if parse_out.get('status') == 'success':
            return self._build(parse_out['ast'], source)
        if not self.strict:
            raise self._seed_error(parse_out, source)

        # Tell a broken seed apart from stray text after a good one.
        permissive = self._load(PERMISSIVE_GRAMMAR).parse(source)
        if permissive.get('status') != 'success':
            raise self._seed_error(permissive, source)
        self._build(permissive['ast'], source)
        col = _error_col(parse_out, source)
        raise ParseError(UNEXPECTED_TEXT, f"unexpected text {self._snippet(source, col)!r}", col=col)

    def _build(self, ast, source: str) -> ParsedExpression:
        ctor, seed_arg = _collect(ast, ('ctor', 'seed_arg'), [])
        try:
            seed = parse_number(seed_arg['text'])
        except ValueError:
            raise ParseError(
                MISSING_OR_INVALID_SEED,
                f"invalid seed {seed_arg['text'].strip()!r} in {ctor['text']}(...)",
                col=_absolute_col(source, seed_arg['line'], seed_arg['col']),
            ) from None
        calls = tuple(self._call(node, source) for node in _collect(ast, ('call',), []))
        return ParsedExpression(seed=seed, calls=calls, constructor=ctor['text'])

    @staticmethod
    def _call(node, source: str) -> CallDescriptor:
        name, arg = _collect(node['children'], ('call_name', 'call_arg'), [])
        raw = arg['text'].strip()
        return CallDescriptor(name['text'], raw or None, col=_absolute_col(source, node['line'], node['col']))

    @staticmethod
    def _seed_error(parse_out: dict, source: str) -> ParseError:
        return ParseError(
            MISSING_OR_INVALID_SEED,
            "expected a constructor call with a numeric argument, e.g. Calculator(10)",
            col=_error_col(parse_out, source),
        )

    @staticmethod
    def _snippet(source: str, col) -> str:
        rest = source[col - 1:] if col else source
        return rest.split('.', 1)[0].strip() or rest[:20].strip()


def parse(source: str, strict: bool = False) -> ParsedExpression:
    return ExpressionParser(strict=strict).parse(source)
