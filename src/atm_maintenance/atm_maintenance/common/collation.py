from __future__ import annotations

import unicodedata


def collation_key(value: str) -> tuple[str, str]:
    """Sort key approximating a locale-aware comparison.

    Primary level ignores case and diacritics (Arabic harakat included),
    the unmodified text breaks ties so the ordering stays total.
    """
    text = value or ""
    decomposed = unicodedata.normalize("NFKD", text)
    base = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    # tatweel is decorative only
    base = base.replace("ـ", "")
    return base.casefold(), text
