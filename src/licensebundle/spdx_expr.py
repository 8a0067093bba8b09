# Copyright 2026 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# SPDX-License-Identifier: Apache-2.0

r"""SPDX license expression parsing and alternative expansion.

Parses declared license expressions (SPDX Specification Annex B) into a
small AST and expands them into the list of alternatives a consumer may
pick from: an OR of AND-groups in disjunctive normal form.

Operator precedence (tightest to loosest)::

    +  >  WITH  >  AND  >  OR

Package metadata in the wild is not always valid SPDX, so
:func:`parse_lax` additionally accepts the legacy ``/`` separator
(``MIT/Apache-2.0``) as OR and falls back to a single opaque
identifier for anything it cannot parse.

Key Concepts (ELI5)::

    ┌─────────────────────┬──────────────────────────────────────────────┐
    │ Concept              │ Plain-English                                │
    ├─────────────────────┼──────────────────────────────────────────────┤
    │ OR (disjunctive)     │ The consumer may choose either license.     │
    │                      │ Each side becomes its own alternative.      │
    ├─────────────────────┼──────────────────────────────────────────────┤
    │ AND (conjunctive)    │ All licenses apply at once. They stay       │
    │                      │ together in one AND-group.                  │
    ├─────────────────────┼──────────────────────────────────────────────┤
    │ WITH (exception)     │ License + exception. Kept as ONE identifier │
    │                      │ (``Apache-2.0 WITH LLVM-exception``) since  │
    │                      │ the combined text has its own template.     │
    └─────────────────────┴──────────────────────────────────────────────┘

Usage::

    from licensebundle.spdx_expr import alternatives, parse_lax

    expr = parse_lax('(MIT OR Apache-2.0) AND Unicode-3.0')
    alternatives(expr)
    # [('MIT', 'Unicode-3.0'), ('Apache-2.0', 'Unicode-3.0')]
"""

from __future__ import annotations

import re
from dataclasses import dataclass

__all__ = [
    'And',
    'ExprNode',
    'LicenseId',
    'LicenseRef',
    'Or',
    'ParseError',
    'With',
    'alternatives',
    'license_ids',
    'parse',
    'parse_lax',
]


# ---------------------------------------------------------------------------
# AST node types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LicenseId:
    """A simple SPDX license identifier, optionally with ``+`` (or-later).

    Attributes:
        id: The SPDX short identifier (e.g. ``"MIT"``, ``"GPL-3.0-only"``).
        or_later: ``True`` if the ``+`` suffix was present.
    """

    id: str
    or_later: bool = False

    def __str__(self) -> str:
        """Return the SPDX identifier, with ``+`` suffix if or-later."""
        return f'{self.id}+' if self.or_later else self.id


@dataclass(frozen=True)
class LicenseRef:
    """A user-defined license reference (``LicenseRef-...``).

    Also used for declared strings that are not SPDX at all
    (``"Custom License"``), so they survive as one opaque identifier.
    """

    ref: str
    document_ref: str = ''

    def __str__(self) -> str:
        """Return the license reference string."""
        if self.document_ref:
            return f'{self.document_ref}:{self.ref}'
        return self.ref


@dataclass(frozen=True)
class With:
    """A license with an exception (``license WITH exception``)."""

    license: LicenseId | LicenseRef
    exception: str

    def __str__(self) -> str:
        """Return ``license WITH exception``."""
        return f'{self.license} WITH {self.exception}'


@dataclass(frozen=True)
class And:
    """Conjunctive combination: both licenses apply."""

    left: ExprNode
    right: ExprNode

    def __str__(self) -> str:
        """Return ``left AND right`` with parentheses around nested OR."""
        left_s = f'({self.left})' if isinstance(self.left, Or) else str(self.left)
        right_s = f'({self.right})' if isinstance(self.right, Or) else str(self.right)
        return f'{left_s} AND {right_s}'


@dataclass(frozen=True)
class Or:
    """Disjunctive combination: either license may be chosen."""

    left: ExprNode
    right: ExprNode

    def __str__(self) -> str:
        """Return ``left OR right``."""
        return f'{self.left} OR {self.right}'


ExprNode = LicenseId | LicenseRef | With | And | Or


class ParseError(ValueError):
    """Raised when an SPDX expression cannot be parsed.

    Attributes:
        expression: The original expression string.
        position: Character offset where the error was detected.
        detail: Human-readable description of the problem.
    """

    def __init__(self, expression: str, position: int, detail: str) -> None:
        """Initialize with expression text, error position, and detail message."""
        self.expression = expression
        self.position = position
        self.detail = detail
        marker = ' ' * position + '^'
        super().__init__(f'SPDX parse error at position {position}: {detail}\n  {expression}\n  {marker}')


# ---------------------------------------------------------------------------
# Tokenizer
# ---------------------------------------------------------------------------

_TOKEN_RE = re.compile(
    r"""
    (?:
        (AND|and)(?![A-Za-z0-9.\-])          # group 1: AND operator
      | (OR|or)(?![A-Za-z0-9.\-])            # group 2: OR operator
      | (WITH|with)(?![A-Za-z0-9.\-])        # group 3: WITH operator
      | (\()                                 # group 4: left paren
      | (\))                                 # group 5: right paren
      | (/)                                  # group 6: legacy OR separator
      | (                                    # group 7: idstring
          (?:DocumentRef-[A-Za-z0-9.\-]+:)?
          (?:LicenseRef-|AdditionRef-)?
          [A-Za-z0-9.\-]+
        )
        (\+)?                                # group 8: or-later suffix
    )
    """,
    re.VERBOSE,
)

_OPERATOR_GROUPS = {1: 'AND', 2: 'OR', 3: 'WITH', 4: '(', 5: ')'}


@dataclass
class _Token:
    kind: str
    value: str
    pos: int
    or_later: bool = False


def _tokenize(expr: str, *, lax: bool) -> list[_Token]:
    tokens: list[_Token] = []
    pos = 0
    while pos < len(expr):
        if expr[pos].isspace():
            pos += 1
            continue
        m = _TOKEN_RE.match(expr, pos)
        if m is None:
            raise ParseError(expr, pos, f'unexpected character {expr[pos]!r}')
        if m.group(6):
            if not lax:
                raise ParseError(expr, pos, "'/' is not an SPDX operator")
            tokens.append(_Token('OR', 'OR', m.start(6)))
        elif m.group(7):
            tokens.append(_Token('ID', m.group(7), m.start(7), or_later=m.group(8) is not None))
        else:
            group = next(g for g in _OPERATOR_GROUPS if m.group(g))
            kind = _OPERATOR_GROUPS[group]
            tokens.append(_Token(kind, kind, m.start(group)))
        pos = m.end()
    tokens.append(_Token('EOF', '', len(expr)))
    return tokens


# ---------------------------------------------------------------------------
# Recursive descent parser
# ---------------------------------------------------------------------------
#
#   expression = and_expr ("OR" and_expr)*
#   and_expr   = with_expr ("AND" with_expr)*
#   with_expr  = simple ("WITH" idstring)?
#   simple     = "(" expression ")" / idstring "+"?


class _Parser:
    def __init__(self, expr: str, tokens: list[_Token]) -> None:
        self._expr = expr
        self._tokens = tokens
        self._pos = 0

    def _peek(self) -> _Token:
        return self._tokens[self._pos]

    def _advance(self) -> _Token:
        tok = self._tokens[self._pos]
        self._pos += 1
        return tok

    def _expect(self, kind: str) -> _Token:
        tok = self._peek()
        if tok.kind != kind:
            raise ParseError(self._expr, tok.pos, f'expected {kind}, got {tok.kind} ({tok.value!r})')
        return self._advance()

    def parse(self) -> ExprNode:
        node = self._expression()
        tok = self._peek()
        if tok.kind != 'EOF':
            raise ParseError(self._expr, tok.pos, f'unexpected token after expression: {tok.kind} ({tok.value!r})')
        return node

    def _expression(self) -> ExprNode:
        left = self._and_expr()
        while self._peek().kind == 'OR':
            self._advance()
            left = Or(left, self._and_expr())
        return left

    def _and_expr(self) -> ExprNode:
        left = self._with_expr()
        while self._peek().kind == 'AND':
            self._advance()
            left = And(left, self._with_expr())
        return left

    def _with_expr(self) -> ExprNode:
        node = self._simple()
        if self._peek().kind == 'WITH':
            self._advance()
            exc_tok = self._expect('ID')
            if not isinstance(node, (LicenseId, LicenseRef)):
                raise ParseError(
                    self._expr, exc_tok.pos, 'WITH operator requires a simple license expression on the left'
                )
            node = With(license=node, exception=exc_tok.value)
        return node

    def _simple(self) -> ExprNode:
        tok = self._peek()
        if tok.kind == '(':
            self._advance()
            node = self._expression()
            self._expect(')')
            return node
        if tok.kind != 'ID':
            raise ParseError(
                self._expr, tok.pos, f'expected license identifier or "(", got {tok.kind} ({tok.value!r})'
            )
        self._advance()
        if 'LicenseRef-' in tok.value or 'AdditionRef-' in tok.value:
            doc_ref, _, ref = tok.value.rpartition(':')
            return LicenseRef(ref=ref, document_ref=doc_ref)
        return LicenseId(id=tok.value, or_later=tok.or_later)


def _parse(expression: str, *, lax: bool) -> ExprNode:
    stripped = expression.strip()
    if not stripped:
        raise ParseError(expression, 0, 'empty expression')
    return _Parser(stripped, _tokenize(stripped, lax=lax)).parse()


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def parse(expression: str) -> ExprNode:
    """Parse a strict SPDX license expression into an AST.

    Raises:
        ParseError: If the expression is syntactically invalid.

    Examples::

        >>> parse('MIT')
        LicenseId(id='MIT', or_later=False)

        >>> parse('Apache-2.0 WITH LLVM-exception')
        With(license=LicenseId(id='Apache-2.0', or_later=False), exception='LLVM-exception')
    """
    return _parse(expression, lax=False)


def parse_lax(expression: str) -> ExprNode:
    """Parse a declared license string the way package metadata writes it.

    Accepts everything :func:`parse` does, plus ``/`` as a legacy OR
    separator.  Strings that still do not parse (``"Custom License
    v2"``) become a single :class:`LicenseRef` holding the trimmed text.

    Raises:
        ParseError: Only for an empty expression.
    """
    try:
        return _parse(expression, lax=True)
    except ParseError:
        if not expression.strip():
            raise
        return LicenseRef(ref=expression.strip())


def alternatives(node: ExprNode) -> list[tuple[str, ...]]:
    """Expand *node* into its OR-alternatives of AND-groups.

    The result is in textual order, each group keeps its identifiers in
    textual order, and duplicates are removed (first occurrence wins).

    Examples::

        >>> alternatives(parse('MIT OR Apache-2.0'))
        [('MIT',), ('Apache-2.0',)]

        >>> alternatives(parse('(MIT OR Apache-2.0) AND Unicode-3.0'))
        [('MIT', 'Unicode-3.0'), ('Apache-2.0', 'Unicode-3.0')]
    """
    result: list[tuple[str, ...]] = []
    for group in _dnf(node):
        deduped = tuple(dict.fromkeys(group))
        if deduped not in result:
            result.append(deduped)
    return result


def _dnf(node: ExprNode) -> list[tuple[str, ...]]:
    if isinstance(node, (LicenseId, LicenseRef, With)):
        return [(str(node),)]
    if isinstance(node, Or):
        return _dnf(node.left) + _dnf(node.right)
    return [left + right for left in _dnf(node.left) for right in _dnf(node.right)]


def license_ids(node: ExprNode) -> list[str]:
    """Return every identifier in *node*, in textual order, without duplicates.

    ``WITH`` expressions are kept whole, matching how templates are keyed.

    Examples::

        >>> license_ids(parse('MIT OR (Apache-2.0 AND MIT)'))
        ['MIT', 'Apache-2.0']
    """
    ids: list[str] = []
    _collect_ids(node, ids)
    return list(dict.fromkeys(ids))


def _collect_ids(node: ExprNode, acc: list[str]) -> None:
    if isinstance(node, (LicenseId, LicenseRef, With)):
        acc.append(str(node))
    else:
        _collect_ids(node.left, acc)
        _collect_ids(node.right, acc)
