"""Decides when a freshly captured caption is worth showing."""


class ChangeDetector:
    """Exact-match change detection used by the capture loop."""

    def __init__(self):
        self.last_text = ""

    def accept(self, text):
        """True (and remember text) if text is non-blank and differs from the last accepted caption."""
        if not text or not text.strip():
            return False
        if text == self.last_text:
            return False
        self.last_text = text
        return True

    def reset(self):
        self.last_text = ""


def text_similarity(a, b):
    """
    Similarity in [0, 1] between two caption strings.

    Containment scores 0.95 so a caption growing word by word counts as "nearly
    the same"; everything else falls back to Jaro-Winkler.
    Not used by the capture loop, which only compares exactly.
    """
    if not a and not b:
        return 1.0
    if not a or not b:
        return 0.0
    if a == b:
        return 1.0
    if a in b or b in a:
        return 0.95
    return jaro_winkler(a, b)


def jaro_winkler(s1, s2):
    if s1 == s2:
        return 1.0
    len1, len2 = len(s1), len(s2)
    if len1 == 0 or len2 == 0:
        return 0.0

    window = max(max(len1, len2) // 2 - 1, 0)
    s1_matches = [False] * len1
    s2_matches = [False] * len2

    matches = 0
    for i in range(len1):
        start = max(0, i - window)
        end = min(i + window + 1, len2)
        for j in range(start, end):
            if s2_matches[j] or s1[i] != s2[j]:
                continue
            s1_matches[i] = True
            s2_matches[j] = True
            matches += 1
            break

    if matches == 0:
        return 0.0

    transpositions = 0
    k = 0
    for i in range(len1):
        if not s1_matches[i]:
            continue
        while not s2_matches[k]:
            k += 1
        if s1[i] != s2[k]:
            transpositions += 1
        k += 1

    jaro = (matches / len1 + matches / len2 + (matches - transpositions / 2) / matches) / 3
    if jaro < 0.7:
        return jaro

    prefix = 0
    for i in range(min(4, len1, len2)):
        if s1[i] != s2[i]:
            break
        prefix += 1
    return jaro + 0.1 * prefix * (1 - jaro)
