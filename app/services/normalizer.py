import re
import unicodedata


def strip_accents(text: str) -> str:
    text = unicodedata.normalize("NFKD", text)
    return "".join(char for char in text if not unicodedata.combining(char))


def normalize(text: str) -> str:
    if not text:
        return ""
    text = strip_accents(text.lower())
    text = re.sub(r"[-_]", " ", text)
    text = re.sub(r"[^\w\s]", " ", text)
    text = re.sub(r"\s+", " ", text).strip()
    return text


def tokenize(text: str) -> list[str]:
    normalized = normalize(text)
    if not normalized:
        return []
    return normalized.split()


def contains_phrase(normalized_text: str, phrase: str) -> bool:
    """Busca ``phrase`` (já normalizada) como palavra/frase inteira."""
    if not normalized_text or not phrase:
        return False
    return re.search(rf"(?<!\w){re.escape(phrase)}(?!\w)", normalized_text) is not None
