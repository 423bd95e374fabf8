"""缓存键生成."""

from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit


def normalize_cache_key(url: str) -> str:
    """Normalise a request URL into a cache key.

    Scheme and host are lower-cased, the fragment is dropped and query
    parameters are sorted so that equivalent requests share one entry.
    """
    parts = urlsplit(url)
    query = urlencode(sorted(parse_qsl(parts.query, keep_blank_values=True)))
    path = parts.path or "/"
    return urlunsplit((parts.scheme.lower(), parts.netloc.lower(), path, query, ""))
