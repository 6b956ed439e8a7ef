import re
from typing import List, Optional
from rapidfuzz.distance import Levenshtein

# Fuzzy matching is name-only; ingredients are compared by signature equality.

EMPTY_SIGNATURE = "empty"
SIGNATURE_PREFIX = "rsig_"

USER_SIMILARITY_THRESHOLD = 0.85
GLOBAL_SIMILARITY_THRESHOLD = 0.9

_ARTICLE_RE = re.compile(r"^(the|a|an)\s+", re.IGNORECASE)
_APOSTROPHE_RE = re.compile("[`‘’´]")
_NAME_JUNK_RE = re.compile(r"[^\w\s']")
_WHITESPACE_RE = re.compile(r"\s+")

_FRACTION_CHARS_RE = re.compile("[½⅓⅔¼¾⅕⅖⅗⅘⅙⅚⅛⅜⅝⅞]")
_SLASH_FRACTION_RE = re.compile(r"\d+/\d+")
_NUMBER_RE = re.compile(r"\d+(\.\d+)?")

# Units, measures and descriptors that never change what the ingredient is
MEASURE_WORDS = (
    "oz", "ml", "cl",
    "dash", "dashes", "splash", "drop", "drops",
    "tsp", "tbsp", r"bar\s*spoon", "cup",
    "slices?", "wedges?", "wheels?", "twists?", "sprigs?",
    "leaf", "leaves", "pieces?", "inch", "cm",
    "fresh", "chilled", "cold", "hot", "warm",
)
_MEASURE_RE = re.compile(r"\b(" + "|".join(MEASURE_WORDS) + r")\b", re.IGNORECASE)
_INGREDIENT_JUNK_RE = re.compile(r"[^\w\s]")


def normalize_recipe_name(name: str) -> str:
    """Canonical form of a recipe title for comparison.

    Lowercases, unifies apostrophes, drops punctuation, collapses whitespace
    and strips a leading "the", "a" or "an". The result is a fixed point:
    ``normalize_recipe_name(normalize_recipe_name(x)) == normalize_recipe_name(x)``.
    """
    if not name:
        return ""
    s = name.lower()
    s = _APOSTROPHE_RE.sub("'", s)
    s = _NAME_JUNK_RE.sub("", s)
    s = _WHITESPACE_RE.sub(" ", s).strip()
    # "the a b" must not leave an article behind for the next pass to strip
    stripped = _ARTICLE_RE.sub("", s, count=1)
    while stripped != s:
        s = stripped
        stripped = _ARTICLE_RE.sub("", s, count=1)
    return s


def levenshtein_distance(str1: str, str2: str) -> int:
    """Single-character insert/delete/substitute edit distance (no transpositions)."""
    return Levenshtein.distance(str1, str2)


def calculate_similarity(str1: str, str2: str) -> float:
    """Return 1.0 for identical strings down to 0.0 for nothing in common.

    ``(max_len - distance) / max_len``; two empty strings are identical.
    """
    return Levenshtein.normalized_similarity(str1, str2)


def are_names_similar(name1: str, name2: str, threshold: float = USER_SIMILARITY_THRESHOLD) -> bool:
    normalized1 = normalize_recipe_name(name1)
    normalized2 = normalize_recipe_name(name2)
    if normalized1 == normalized2:
        return True
    return calculate_similarity(normalized1, normalized2) >= threshold


def _normalize_ingredient_line(line: str) -> str:
    s = line.lower()
    s = _FRACTION_CHARS_RE.sub("", s)
    s = _SLASH_FRACTION_RE.sub("", s)
    s = _NUMBER_RE.sub("", s)
    s = _MEASURE_RE.sub("", s)
    s = _INGREDIENT_JUNK_RE.sub(" ", s)
    words = [w for w in s.split() if len(w) > 2]
    return " ".join(sorted(words))


def _rolling_hash(text: str) -> int:
    # 32-bit signed ``hash * 31 + code`` over UTF-16 code units
    data = text.encode("utf-16-le")
    h = 0
    for i in range(0, len(data), 2):
        code = data[i] | (data[i + 1] << 8)
        h = (h * 31 + code) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return h


def compute_recipe_signature(ingredients: Optional[List[str]]) -> str:
    """Order-, quantity- and descriptor-insensitive fingerprint of an ingredient list.

    Returns ``rsig_<hex>`` or ``"empty"`` when nothing significant is left.
    Distinct ingredient sets can collide on the 32-bit hash; the signature is
    a duplicate hint, not a guarantee.
    """
    if not ingredients:
        return EMPTY_SIGNATURE

    lines = [_normalize_ingredient_line(i) for i in ingredients if isinstance(i, str)]
    joined = "|".join(sorted(line for line in lines if line))
    if not joined:
        return EMPTY_SIGNATURE

    return f"{SIGNATURE_PREFIX}{abs(_rolling_hash(joined)):x}"


def coerce_ingredients(value) -> List[str]:
    """Accept a list of strings or a legacy comma/newline separated string."""
    if isinstance(value, (list, tuple)):
        return [i for i in value if isinstance(i, str)]
    if isinstance(value, str):
        return [part.strip() for part in re.split(r"[,\n]", value) if part.strip()]
    return []
