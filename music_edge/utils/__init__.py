from urllib.parse import urlsplit, urlunsplit


def strip_query(url: str) -> str:
    """Drop query and fragment so upstream URLs can be logged without parameters."""
    parts = urlsplit(str(url))
    return urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))
