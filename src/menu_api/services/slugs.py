import re
import unicodedata


def slugify(value: str) -> str:
    """Lowercase, URL-safe form of a name: ``"Caesar Salad"`` -> ``"caesar-salad"``."""
    if not value:
        return ""

    value = unicodedata.normalize("NFKD", value)
    value = value.encode("ascii", "ignore").decode("ascii")
    value = value.lower()
    value = re.sub(r"[^a-z0-9]+", "-", value)

    return value.strip("-")
