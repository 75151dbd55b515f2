"""
URL slugs for Vietnamese titles.

"Khởi nghĩa Hai Bà Trưng" -> "khoi-nghia-hai-ba-trung"
"""

import re
import unicodedata

# đ does not decompose under NFD, so it needs an explicit mapping
_SPECIAL_CHARS = {
    'đ': 'd',
    'Đ': 'd',
}


def slugify(text: str) -> str:
    """Lowercase ASCII slug with diacritics stripped and spaces turned into dashes."""
    if not text:
        return ""

    result = ''.join(_SPECIAL_CHARS.get(ch, ch) for ch in text.lower())

    # Strip remaining combining marks (tones, breves, circumflexes)
    result = unicodedata.normalize('NFD', result)
    result = ''.join(ch for ch in result if not unicodedata.combining(ch))

    result = re.sub(r'[^\w\s-]', '', result, flags=re.ASCII)
    result = re.sub(r'\s+', '-', result)
    result = re.sub(r'-+', '-', result)
    return result.strip('-')
