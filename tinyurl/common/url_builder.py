"""Composition of public short URLs."""


def build_short_url(short_code: str, base_url: str, path_prefix: str = "") -> str:
    """Join the public base URL, an optional prefix and the code.

    ``build_short_url("aB3_x", "https://t.example/", "/s/")`` gives
    ``https://t.example/s/aB3_x``; stray slashes on either side are ignored.

    Args:
        short_code: Code stored with the record
        base_url: Public origin of the redirect route
        path_prefix: Mount point of the redirect route, if not at the root

    Returns:
        The ``short_url`` stored on the record
    """
    parts = [base_url.rstrip("/"), path_prefix.strip("/"), short_code]
    return "/".join(part for part in parts if part)
