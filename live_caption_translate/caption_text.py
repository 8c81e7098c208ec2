"""
Caption text helpers: pick the latest sentence out of the live caption buffer,
clean it up and fit it on one overlay line.
"""
import re

SENTENCE_ENDINGS = frozenset('.!?。！？…')
PAUSE_MARKERS = frozenset(',;:，；：、—–\n')
BREAK_CHARS = SENTENCE_ENDINGS | PAUSE_MARKERS

MIN_SENTENCE_CHARS = 10
COMPACT_LENGTH = 35  # bytes; shorter lines are joined with a dash
DISPLAY_BYTE_BUDGET = 200

_ABBREVIATION_RE = re.compile(r"([A-Z])[ \t]*\.[ \t]*([A-Z])(?![A-Za-z])")
_PUNCT_SPACING_RE = re.compile(r"[ \t]*([.!?,])[ \t]*")


def _utf8_len(text):
    return len(text.encode("utf-8"))


def _last_terminator(text):
    """Index of the last sentence ending in text, -1 if none."""
    for i in range(len(text) - 1, -1, -1):
        if text[i] in SENTENCE_ENDINGS:
            return i
    return -1


def extract_latest_sentence(buffer):
    """
    Return the newest sentence (finished or still being spoken) from the buffer.

    A trailing terminator belongs to the current sentence, so the search for the
    boundary skips it. Fragments shorter than MIN_SENTENCE_CHARS are merged with
    the sentence before them.

    >>> extract_latest_sentence("Hello world. How are you?")
    'How are you?'
    >>> extract_latest_sentence("Hi. Ok.")
    'Hi. Ok.'
    """
    if not buffer:
        return ""
    if buffer[-1] in SENTENCE_ENDINGS:
        boundary = _last_terminator(buffer[:-1])
    else:
        boundary = _last_terminator(buffer)
    candidate = buffer[boundary + 1:].strip()
    if boundary > 0 and len(candidate) < MIN_SENTENCE_CHARS:
        boundary = _last_terminator(buffer[:boundary])
        candidate = buffer[boundary + 1:].strip()
    return candidate


def is_asian_character(ch):
    """CJK ideographs (incl. ext. A), kana and Hangul syllables."""
    return ("一" <= ch <= "鿿"
            or "㐀" <= ch <= "䶿"
            or "぀" <= ch <= "ヿ"
            or "가" <= ch <= "힯")


def collapse_whitespace(text):
    """Single spaces inside lines, single newlines between non-empty lines."""
    if not text:
        return ""
    lines = [" ".join(line.split()) for line in re.split(r"[\r\n]+", text)]
    return "\n".join(line for line in lines if line)


def collapse_abbreviations(text):
    """'U. S. A' -> 'USA'. Repeats until nothing changes so chained letters collapse too."""
    prev = None
    while prev != text:
        prev = text
        text = _ABBREVIATION_RE.sub(r"\1\2", text)
    return text


def clean_text(text):
    """Whitespace, abbreviation and punctuation-spacing cleanup (steps 1-3 of normalize)."""
    text = collapse_whitespace(text)
    if not text:
        return ""
    text = collapse_abbreviations(text)
    text = _PUNCT_SPACING_RE.sub(r"\1 ", text)
    return "\n".join(line.strip() for line in text.split("\n"))


def _first_break(text):
    for i, ch in enumerate(text):
        if ch in BREAK_CHARS:
            return i
    return -1


def _drop_leading_word(text):
    parts = text.split(None, 1)
    if len(parts) < 2:
        return None
    return parts[1]


def truncate_by_byte_size(text, max_bytes):
    """
    Drop leading clauses until text fits in max_bytes of UTF-8.

    Clause boundaries are sentence endings and pause markers. If none is left,
    whole leading words are dropped. An unbroken CJK run (ideographs and kana
    have no spaces) loses whole leading characters, one code point at a time.

    A single Latin token that is still too long is kept whole and may exceed
    max_bytes: the byte limit gives way so a word is never cut in half.
    """
    if not text:
        return text
    working = text
    while _utf8_len(working) > max_bytes:
        cut = _first_break(working)
        if 0 <= cut < len(working) - 1:
            working = working[cut + 1:].lstrip()
            continue
        rest = _drop_leading_word(working)
        if rest is not None:
            working = rest
            continue
        # Single unbroken token: only leading Asian characters may go.
        encoded_len = _utf8_len(working)
        i = 0
        while encoded_len > max_bytes and i < len(working) and is_asian_character(working[i]):
            encoded_len -= _utf8_len(working[i])
            i += 1
        if i == 0:
            break
        working = working[i:]
    return working


def join_lines(text, length_threshold=COMPACT_LENGTH):
    """
    Join explicit lines into one display line.

    Long lines end with a full stop ('。' after Asian text, '. ' otherwise),
    short ones with a dash ('——' or '— ').
    """
    if not text:
        return text
    segments = [s.strip() for s in text.split("\n") if s]
    out = []
    for i, seg in enumerate(segments):
        if i < len(segments) - 1 and seg:
            is_long = _utf8_len(seg) >= length_threshold
            if is_asian_character(seg[-1]):
                seg += "。" if is_long else "——"
            else:
                seg += ". " if is_long else "— "
        out.append(seg)
    return "".join(out)


def normalize_caption(text, byte_budget=DISPLAY_BYTE_BUDGET, join_threshold=COMPACT_LENGTH):
    """Clean, fit to byte_budget and join lines. Only a single over-long word can exceed the budget."""
    text = clean_text(text)
    if not text:
        return ""
    text = truncate_by_byte_size(text, byte_budget)
    text = join_lines(text, join_threshold)
    # Separators can push a joined line back over the budget.
    if _utf8_len(text) > byte_budget:
        text = truncate_by_byte_size(text, byte_budget)
    return text.strip()


def wrap_text_to_lines(text, max_line_length=75):
    """Greedy word wrap for console output."""
    if not text or len(text) <= max_line_length:
        return text
    lines = []
    line = ""
    for token in text.split():
        if line and len(line) + len(token) + 1 > max_line_length:
            lines.append(line)
            line = ""
        line = f"{line} {token}" if line else token
    if line:
        lines.append(line)
    return "\n".join(lines)
