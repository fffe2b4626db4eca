from urllib.parse import quote_plus


def gateway_url(gateway_base: str, cid: str, extension: str | None) -> str:
    """Public gateway URL for a CID.

    ``gateway_base`` always ends with ``/``. The ``filename`` hint lets the
    gateway serve a sensible Content-Disposition; it is omitted when the
    blob has no extension.
    """

    url = gateway_base + cid
    if extension:
        url += "?filename=" + quote_plus("file" + extension)
    return url
