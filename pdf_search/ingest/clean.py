"""Cleanup of raw pypdf page text before sentence segmentation."""
import re
import unicodedata

# list markers pypdf emits at line start; U+F0B7 is the Symbol-font bullet
_BULLET_RE = re.compile("^[ \t]*[\u2022\u25e6\u2023\u25aa\u25b8\u25ba\u25cf\u25cb\u25a0\u25a1\uf0b7][ \t]*", re.M)
_LINE_BREAK_HYPHEN_RE = re.compile(r"(\w)-\n(\w)")
# a lone newline inside a paragraph is layout, a blank line is structure
_WRAPPED_LINE_RE = re.compile(r"(?<=\S)\n(?=\S)")
_REMOVED = str.maketrans("", "", "\x00\u00ad\u200b\ufeff")  # NUL, soft hyphen, zero-width


def normalize_page_text(raw: str) -> str:
    if not raw:
        return ""
    # NFKC folds ligatures ("ﬁ" -> "fi") and no-break spaces
    text = unicodedata.normalize("NFKC", raw).translate(_REMOVED)
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = "\n".join(line.strip() for line in text.split("\n"))
    text = _BULLET_RE.sub("- ", text)
    text = _LINE_BREAK_HYPHEN_RE.sub(r"\1\2", text)
    text = _WRAPPED_LINE_RE.sub(" ", text)
    text = re.sub(r"[ \t]+", " ", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()
