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

"""Tests for the SPDX license expression parser."""

from __future__ import annotations

import pytest
from licensebundle.spdx_expr import (
    And,
    LicenseId,
    LicenseRef,
    Or,
    ParseError,
    With,
    alternatives,
    license_ids,
    parse,
    parse_lax,
)

# ── Simple identifiers ───────────────────────────────────────────────────


class TestSimpleLicenseId:
    """Tests for simple License Id."""

    def test_single_id(self) -> None:
        """Test single id."""
        assert parse('MIT') == LicenseId(id='MIT', or_later=False)

    def test_or_later_suffix(self) -> None:
        """Test or later suffix."""
        assert parse('GPL-2.0+') == LicenseId(id='GPL-2.0', or_later=True)

    def test_whitespace_stripped(self) -> None:
        """Test whitespace stripped."""
        assert parse('  MIT  ') == LicenseId(id='MIT')

    def test_license_ref(self) -> None:
        """Test license ref."""
        assert parse('LicenseRef-Custom') == LicenseRef(ref='LicenseRef-Custom')

    def test_document_ref(self) -> None:
        """Test document ref."""
        assert parse('DocumentRef-spdx-tool-1.2:LicenseRef-MIT-Style-2') == LicenseRef(
            ref='LicenseRef-MIT-Style-2',
            document_ref='DocumentRef-spdx-tool-1.2',
        )


# ── Operators ────────────────────────────────────────────────────────────


class TestOperators:
    """Tests for AND, OR and WITH."""

    def test_or(self) -> None:
        """Test or."""
        assert parse('MIT OR Apache-2.0') == Or(LicenseId('MIT'), LicenseId('Apache-2.0'))

    def test_and(self) -> None:
        """Test and."""
        assert parse('MIT AND BSD-3-Clause') == And(LicenseId('MIT'), LicenseId('BSD-3-Clause'))

    def test_lowercase_operators(self) -> None:
        """Test lowercase operators."""
        assert parse('MIT or Apache-2.0 and Zlib') == Or(
            LicenseId('MIT'),
            And(LicenseId('Apache-2.0'), LicenseId('Zlib')),
        )

    def test_with_exception(self) -> None:
        """Test with exception."""
        assert parse('Apache-2.0 with LLVM-exception') == With(
            license=LicenseId('Apache-2.0'),
            exception='LLVM-exception',
        )

    def test_and_binds_tighter_than_or(self) -> None:
        """Test and binds tighter than or."""
        result = parse('LGPL-2.1-only OR BSD-3-Clause AND MIT')
        assert result == Or(
            left=LicenseId('LGPL-2.1-only'),
            right=And(LicenseId('BSD-3-Clause'), LicenseId('MIT')),
        )

    def test_parentheses_override_precedence(self) -> None:
        """Test parentheses override precedence."""
        result = parse('MIT AND (LGPL-2.1-or-later OR BSD-3-Clause)')
        assert result == And(
            left=LicenseId('MIT'),
            right=Or(LicenseId('LGPL-2.1-or-later'), LicenseId('BSD-3-Clause')),
        )

    def test_str_round_trip(self) -> None:
        """Test str round trip."""
        expr = '(MIT OR Apache-2.0) AND Unicode-3.0'
        assert str(parse(expr)) == expr


# ── Errors ───────────────────────────────────────────────────────────────


class TestParseErrors:
    """Tests for strict parse errors."""

    @pytest.mark.parametrize(
        'expr',
        ['', '   ', 'MIT OR', '(MIT', 'MIT)', 'AND MIT', 'MIT/Apache-2.0', '(MIT OR Zlib) WITH X'],
    )
    def test_invalid(self, expr: str) -> None:
        """Test invalid."""
        with pytest.raises(ParseError):
            parse(expr)

    def test_position_reported(self) -> None:
        """Test position reported."""
        with pytest.raises(ParseError) as exc_info:
            parse('MIT OR')
        assert exc_info.value.position == 6
        assert 'MIT OR' in str(exc_info.value)


# ── Lax parsing ──────────────────────────────────────────────────────────


class TestParseLax:
    """Tests for parse_lax()."""

    def test_valid_spdx_unchanged(self) -> None:
        """Test valid spdx unchanged."""
        assert parse_lax('MIT OR Apache-2.0') == parse('MIT OR Apache-2.0')

    def test_slash_is_or(self) -> None:
        """Test slash is or."""
        assert parse_lax('MIT/Apache-2.0') == Or(LicenseId('MIT'), LicenseId('Apache-2.0'))

    def test_slash_mixed_with_operators(self) -> None:
        """Test slash mixed with operators."""
        assert alternatives(parse_lax('MIT/Apache-2.0 AND Zlib')) == [('MIT',), ('Apache-2.0', 'Zlib')]

    def test_unparsable_becomes_single_ref(self) -> None:
        """Test unparsable becomes single ref."""
        assert parse_lax('  Custom License v2 ') == LicenseRef(ref='Custom License v2')

    def test_empty_still_raises(self) -> None:
        """Test empty still raises."""
        with pytest.raises(ParseError):
            parse_lax('  ')


# ── alternatives() ───────────────────────────────────────────────────────


class TestAlternatives:
    """Tests for alternatives()."""

    def test_single(self) -> None:
        """Test single."""
        assert alternatives(parse('MIT')) == [('MIT',)]

    def test_or_in_textual_order(self) -> None:
        """Test or in textual order."""
        assert alternatives(parse('MIT OR Apache-2.0')) == [('MIT',), ('Apache-2.0',)]

    def test_and_group(self) -> None:
        """Test and group."""
        assert alternatives(parse('MIT AND Unicode-3.0')) == [('MIT', 'Unicode-3.0')]

    def test_distributes_and_over_or(self) -> None:
        """Test distributes and over or."""
        result = alternatives(parse('(MIT OR Apache-2.0) AND Unicode-3.0'))
        assert result == [('MIT', 'Unicode-3.0'), ('Apache-2.0', 'Unicode-3.0')]

    def test_cross_product(self) -> None:
        """Test cross product."""
        result = alternatives(parse('(MIT OR Apache-2.0) AND (Zlib OR ISC)'))
        assert result == [
            ('MIT', 'Zlib'),
            ('MIT', 'ISC'),
            ('Apache-2.0', 'Zlib'),
            ('Apache-2.0', 'ISC'),
        ]

    def test_with_kept_whole(self) -> None:
        """Test with kept whole."""
        result = alternatives(parse('Apache-2.0 WITH LLVM-exception OR MIT'))
        assert result == [('Apache-2.0 WITH LLVM-exception',), ('MIT',)]

    def test_duplicates_removed(self) -> None:
        """Test duplicates removed."""
        assert alternatives(parse('MIT OR MIT')) == [('MIT',)]
        assert alternatives(parse('MIT AND MIT')) == [('MIT',)]


# ── license_ids() ────────────────────────────────────────────────────────


class TestLicenseIds:
    """Tests for license_ids()."""

    def test_ordered_and_unique(self) -> None:
        """Test ordered and unique."""
        assert license_ids(parse('MIT OR (Apache-2.0 AND MIT)')) == ['MIT', 'Apache-2.0']

    def test_with(self) -> None:
        """Test with."""
        assert license_ids(parse('GPL-2.0+ WITH Bison-exception-2.2')) == ['GPL-2.0+ WITH Bison-exception-2.2']

    def test_document_ref(self) -> None:
        """Test document ref."""
        assert license_ids(parse('DocumentRef-foo:LicenseRef-Bar')) == ['DocumentRef-foo:LicenseRef-Bar']
