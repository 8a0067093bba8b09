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

"""Preference Resolver: pick one alternative out of an OR expression.

``MIT OR Apache-2.0`` lets the consumer choose. The choice is made by
an explicit, caller-supplied preference list first; when none of its
entries is on offer, by a built-in ranking that puts permissive
licenses before weak copyleft before strong copyleft.

Alternatives are strings: a single identifier (``"MIT"``) or an
AND-group joined with ``" AND "`` (``"MIT AND Unicode-3.0"``).
"""

from __future__ import annotations

from collections.abc import Sequence

__all__ = [
    'DEFAULT_PREFERENCE',
    'choose',
    'rank',
]

#: Built-in ranking, most preferred first.
DEFAULT_PREFERENCE: tuple[str, ...] = (
    # Permissive.
    'MIT',
    'Apache-2.0',
    'Apache-2.0 WITH LLVM-exception',
    'BSD-3-Clause',
    'BSD-2-Clause',
    'ISC',
    'Zlib',
    '0BSD',
    'BSL-1.0',
    'Unlicense',
    'CC0-1.0',
    'Unicode-3.0',
    'Unicode-DFS-2016',
    # Weak copyleft.
    'MPL-2.0',
    'LGPL-2.1-only',
    'LGPL-2.1-or-later',
    'LGPL-3.0-only',
    'LGPL-3.0-or-later',
    # Strong copyleft.
    'GPL-2.0-only',
    'GPL-2.0-or-later',
    'GPL-3.0-only',
    'GPL-3.0-or-later',
    'AGPL-3.0-only',
    'AGPL-3.0-or-later',
)

_DEFAULT_RANK = {license_id: i for i, license_id in enumerate(DEFAULT_PREFERENCE)}


def rank(alternative: str) -> int:
    """Return the built-in rank of *alternative*; lower is preferred.

    An AND-group ranks as its least preferred member. Identifiers
    outside :data:`DEFAULT_PREFERENCE` rank after every known one.
    """
    unknown = len(DEFAULT_PREFERENCE)
    return max(_DEFAULT_RANK.get(member.strip(), unknown) for member in alternative.split(' AND '))


def choose(alternatives: Sequence[str], preference: Sequence[str] | None = None) -> str:
    """Choose exactly one of *alternatives*.

    Args:
        alternatives: Candidate alternatives in declared order.
        preference: Caller preference, most preferred first. The first
            entry present in *alternatives* wins outright.

    Returns:
        One element of *alternatives*. Equal ranks resolve to the one
        declared first.

    Raises:
        ValueError: If *alternatives* is empty.
    """
    if not alternatives:
        raise ValueError('choose() requires at least one alternative')
    offered = set(alternatives)
    for preferred in preference or ():
        if preferred in offered:
            return preferred
    declared = list(alternatives)
    return min(declared, key=lambda alt: (rank(alt), declared.index(alt)))
