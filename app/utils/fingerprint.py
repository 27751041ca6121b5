import hashlib


def fingerprint(source: bytes, language: str) -> str:
    """Content identifier for an upload: sha256 over the source bytes followed by the language tag."""
    hasher = hashlib.sha256()
    hasher.update(source)
    hasher.update(language.encode("utf-8"))
    return hasher.hexdigest()
