"""Shortest edit scripts between a word form and its lemma.

The lemmatizer does not predict lemmas directly. It predicts the edit script
that turns the lower-cased, *reversed* word form into the reversed lemma, so
that common suffix rewrites (``-ies`` -> ``-y``) share a single class across
many words.

A script is a concatenation of operations, applied left to right:

* ``R<idx><from><to>``: replace the character at ``idx``.
* ``I<idx><char>``: insert ``char`` at ``idx``.
* ``D<idx><char>``: delete the character ``char`` found at ``idx``.
* ``O``: the word form already is the lemma.

Indices count from the end of the original word. Because both strings are
lower-cased, the upper-case operation letters always mark an operation
boundary, so indices may have any number of digits.
"""
from __future__ import annotations
import re
from typing import List

import numpy as np

__all__ = ["levenshtein_distance", "get_shortest_edit_script", "decode_shortest_edit_script", "IDENTITY_SCRIPT"]

IDENTITY_SCRIPT = "O"

_OPERATION_BOUNDARY = re.compile(r"(?=[RIDO])")


def levenshtein_distance(source: str, target: str) -> np.ndarray:
    """Returns the full ``(len(source)+1, len(target)+1)`` edit distance matrix."""
    distance = np.zeros((len(source) + 1, len(target) + 1), dtype=np.int64)
    distance[:, 0] = np.arange(len(source) + 1)
    distance[0, :] = np.arange(len(target) + 1)

    for i in range(1, len(source) + 1):
        for j in range(1, len(target) + 1):
            cost = 0 if source[i - 1] == target[j - 1] else 1
            distance[i, j] = min(
                distance[i - 1, j] + 1,
                distance[i, j - 1] + 1,
                distance[i - 1, j - 1] + cost,
            )
    return distance


def _backtrace(source: str, target: str, distance: np.ndarray) -> str:
    ops: List[str] = []
    i, j = len(source), len(target)

    while distance[i, j] != 0:
        here = distance[i, j]
        if i > 0 and j > 0 and distance[i - 1, j - 1] < here:
            ops.append(f"R{i - 1}{source[i - 1]}{target[j - 1]}")
            i, j = i - 1, j - 1
        elif j > 0 and distance[i, j - 1] < here:
            ops.append(f"I{i}{target[j - 1]}")
            j -= 1
        elif i > 0 and distance[i - 1, j] < here:
            ops.append(f"D{i - 1}{source[i - 1]}")
            i -= 1
        elif i > 0 and j > 0 and distance[i - 1, j - 1] == here:
            i, j = i - 1, j - 1
        elif i > 0 and distance[i - 1, j] == here:
            i -= 1
        else:
            j -= 1
    return "".join(ops)


def get_shortest_edit_script(word_form: str, lemma: str) -> str:
    """
    Computes the edit script class turning ``word_form`` into ``lemma``.

    Args:
        word_form: The inflected token.
        lemma: Its lemma.

    Returns:
        The script string, or ``"O"`` when both are equal ignoring case.
    """
    reversed_wf = word_form.lower()[::-1]
    reversed_lemma = lemma.lower()[::-1]
    if reversed_wf == reversed_lemma:
        return IDENTITY_SCRIPT
    distance = levenshtein_distance(reversed_wf, reversed_lemma)
    return _backtrace(reversed_wf, reversed_lemma, distance)


def decode_shortest_edit_script(word_form: str, script: str) -> str:
    """
    Applies ``script`` to ``word_form`` and returns the lemma.

    The word form is lower-cased first. A script that does not fit the word
    (an index out of range, or an unparsable operation) leaves the word form
    unchanged.
    """
    chars = list(word_form.lower()[::-1])

    try:
        for op in filter(None, _OPERATION_BOUNDARY.split(script)):
            kind = op[0]
            if kind == IDENTITY_SCRIPT:
                continue
            width = 2 if kind == "R" else 1
            index = int(op[1:-width])
            payload = op[-width:]
            if kind == "R":
                if index >= len(chars):
                    raise IndexError(index)
                chars[index] = payload[1]
            elif kind == "D":
                if index >= len(chars):
                    raise IndexError(index)
                del chars[index]
            elif kind == "I":
                if index > len(chars):
                    raise IndexError(index)
                chars.insert(index, payload)
            else:
                raise ValueError(f"Unknown edit operation {op!r}")
    except (IndexError, ValueError):
        return word_form.lower()

    return "".join(chars)[::-1]
