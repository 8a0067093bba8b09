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

"""Pure text comparison between candidate license text and templates.

The measure is a bag-of-words divergence: count every lowercase
``\\w+`` word in both texts, sum the absolute per-word count
differences, and divide by the number of words in the template::

    distance = sum(|text[w] - template[w]| for w in words) / len(template)

``0.0`` means word-for-word identical (ignoring order, case,
punctuation and whitespace). Lines holding copyright notices are
dropped from both sides first, so ``Copyright (c) 2019 Jane Doe``
versus the template's ``Copyright (c) <year> <copyright holders>``
costs nothing.

Everything here is a pure function of its arguments.
"""

from __future__ import annotations

import re
from collections import Counter

from licensebundle._types import Confidence

__all__ = [
    'DEFAULT_CONFIDENT_THRESHOLD',
    'DEFAULT_SEMI_THRESHOLD',
    'classify',
    'distance',
    'normalize_words',
    'strip_copyright_lines',
    'word_frequencies',
]

#: Below this distance a text is a confident match.
DEFAULT_CONFIDENT_THRESHOLD = 0.10

#: Below this distance (and at or above the confident one) a text is a
#: semi-confident match.
DEFAULT_SEMI_THRESHOLD = 0.15

_WORD_RE = re.compile(r'\w+')

# "Copyright (c) 2019", "Copyright © <year>", "Copyright [yyyy]",
# "(c) 2019 ...", "All rights reserved". Body sentences that merely
# mention copyright ("copyright notice", "copyright holder nor ...")
# do not match.
_COPYRIGHT_LINE_RE = re.compile(
    r'^\s*(?:copyright\s*(?:\(c\)|©|\d|<|\[|by\b|:)|\(c\)\s*(?:\d|<)|©|all rights reserved)',
    re.IGNORECASE,
)


def strip_copyright_lines(text: str) -> str:
    """Return *text* without copyright notice lines."""
    return '\n'.join(line for line in text.splitlines() if not _COPYRIGHT_LINE_RE.match(line))


def normalize_words(text: str) -> list[str]:
    """Return the lowercase words of *text*, copyright lines removed."""
    return [w.lower() for w in _WORD_RE.findall(strip_copyright_lines(text))]


def word_frequencies(text: str) -> Counter[str]:
    """Return a word → count mapping for *text*."""
    return Counter(normalize_words(text))


def distance(text: str, template: str) -> float:
    """Return the word-frequency divergence of *text* from *template*.

    Words missing from *text* and extra words in *text* both count.
    An empty template matches only an empty text; anything else is
    infinitely far from it.
    """
    template_freq = word_frequencies(template)
    text_freq = word_frequencies(text)
    total = sum(template_freq.values())
    errors = sum(abs(text_freq[w] - template_freq[w]) for w in template_freq.keys() | text_freq.keys())
    if total == 0:
        return 0.0 if errors == 0 else float('inf')
    return errors / total


def classify(
    score: float,
    *,
    confident_threshold: float = DEFAULT_CONFIDENT_THRESHOLD,
    semi_threshold: float = DEFAULT_SEMI_THRESHOLD,
) -> Confidence:
    """Map a :func:`distance` score to a confidence level.

    >>> classify(0.02)
    <Confidence.CONFIDENT: 'confident'>
    >>> classify(0.12)
    <Confidence.SEMI: 'semi'>
    """
    if score < confident_threshold:
        return Confidence.CONFIDENT
    if score < semi_threshold:
        return Confidence.SEMI
    return Confidence.UNSURE
