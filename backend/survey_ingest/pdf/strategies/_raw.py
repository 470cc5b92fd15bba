"""Raw-byte helpers shared by the pattern-matching strategies.

None of these need a page model: they look at the file as a byte stream and
pull out whatever the text-showing operators left in plain sight.
"""

import re

# PDF literal string: ( ... ) with backslash escapes
LITERAL_RE = re.compile(r"\(((?:\\.|[^\\)])*)\)")
TJ_SINGLE_RE = re.compile(r"\(((?:\\.|[^\\)])*)\)\s*Tj")
TJ_ARRAY_RE = re.compile(r"\[(.*?)\]\s*TJ")
HEX_STRING_RE = re.compile(r"<([0-9A-Fa-f\s]{4,})>")
LONG_RUN_RE = re.compile(r"[A-Za-z][A-Za-z0-9 \t]{10,}")
TEXT_OBJECT_RE = re.compile(r"\bBT\b(.*?)\bET\b", re.S)
LINE_SPLIT_RE = re.compile(r"[\r\n]+")
ALNUM_RE = re.compile(r"[A-Za-z0-9]")

_ESCAPES = {"n": "\n", "r": "\r", "t": "\t", "b": "\b", "f": "\f", "(": "(", ")": ")", "\\": "\\"}
_ESCAPE_RE = re.compile(r"\\([0-7]{1,3}|.)", re.S)


def _table(keep: set[int], *, high: bool, replacement: int | None) -> tuple[bytes, bytes]:
    """Build a bytes.translate table (and delete set) for a byte filter."""
    table = bytearray(range(256))
    delete = bytearray()
    for b in range(256):
        if b in keep or (high and b > 127):
            continue
        if replacement is None:
            delete.append(b)
        else:
            table[b] = replacement
    return bytes(table), bytes(delete)


_PRINTABLE = set(range(32, 127))
_BASIC_TABLE = _table(_PRINTABLE | {10, 13}, high=True, replacement=32)
_LENIENT_TABLE = _table(_PRINTABLE | {9, 10, 13} | set(range(128, 255)), high=False, replacement=32)
_STRICT_TABLE = _table(_PRINTABLE | {9, 10, 13}, high=False, replacement=None)
_AI_TABLE = _table(set(range(9, 127)), high=False, replacement=None)


def _apply(data: bytes, table: tuple[bytes, bytes]) -> str:
    return data.translate(table[0], table[1]).decode("latin-1")


def decode_printable(data: bytes) -> str:
    """Printable ASCII and line breaks kept, high bytes kept as Latin-1, rest -> space."""
    return _apply(data, _BASIC_TABLE)


def decode_lenient(data: bytes) -> str:
    """Like decode_printable but keeps tabs and maps 0xFF to space."""
    return _apply(data, _LENIENT_TABLE)


def decode_strict_ascii(data: bytes) -> str:
    """Printable ASCII plus tab/CR/LF only; everything else dropped."""
    return _apply(data, _STRICT_TABLE)


def decode_ai_sample(data: bytes) -> str:
    """Bytes 9..126 only; the widest view that is still plain text."""
    return _apply(data, _AI_TABLE)


def unescape_literal(raw: str) -> str:
    def repl(m: re.Match) -> str:
        esc = m.group(1)
        if esc[0] in "01234567":
            return chr(int(esc, 8) & 0xFF)
        return _ESCAPES.get(esc, esc)

    return _ESCAPE_RE.sub(repl, raw)


def has_alnum(text: str) -> bool:
    return ALNUM_RE.search(text) is not None


def decode_hex_string(hex_body: str) -> str:
    digits = re.sub(r"\s+", "", hex_body)
    if len(digits) % 2:
        return ""
    out = []
    for i in range(0, len(digits), 2):
        code = int(digits[i:i + 2], 16)
        if 32 <= code <= 126:
            out.append(chr(code))
    return "".join(out)


def literal_fragments(text: str, *, min_len: int = 1) -> list[tuple[int, str]]:
    """(position, text) for every literal string with some alphanumeric content."""
    found = []
    for m in LITERAL_RE.finditer(text):
        value = unescape_literal(m.group(1)).strip()
        if len(value) >= min_len and has_alnum(value):
            found.append((m.start(), value))
    return found


def hex_fragments(text: str) -> list[tuple[int, str]]:
    found = []
    for m in HEX_STRING_RE.finditer(text):
        value = decode_hex_string(m.group(1)).strip()
        if len(value) > 1 and has_alnum(value):
            found.append((m.start(), value))
    return found


def long_runs(line: str) -> list[str]:
    runs = []
    for m in LONG_RUN_RE.finditer(line):
        value = m.group(0).strip()
        if len(value) > 10 and "obj" not in value:
            runs.append(value)
    return runs
