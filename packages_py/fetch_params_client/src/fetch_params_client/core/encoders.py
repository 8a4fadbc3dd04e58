"""
Wire encodings for flattened parameters.

Three independent encoders consume a Pair list: the query string, the
application/x-www-form-urlencoded body and the multipart/form-data body.
"""
import codecs
import logging
import secrets
from typing import List, Optional, Tuple
from urllib.parse import quote

from ..errors import SerializationFailedError
from ..types import Pair

logger = logging.getLogger("fetch_params_client.encoders")

CRLF = "\r\n"
BOUNDARY_PREFIX = "Boundary+"


def charset_name(encoding: str) -> str:
    """Canonical charset name for a Python codec name (``utf-8`` for UTF-8)."""
    return codecs.lookup(encoding).name


def escape(text: str, encoding: str = "utf-8") -> str:
    """Percent-encode everything except ASCII letters, digits, ``-``, ``_``, ``~``.

    Reserved characters such as ``[ ] . : / ? & = ; + ! @ # $ ( ) ' , *`` are
    always escaped, so bracketed keys survive as a single query component.

    Raises:
        SerializationFailedError: ``text`` cannot be represented in ``encoding``.
    """
    try:
        escaped = quote(text, safe="", encoding=encoding)
    except UnicodeEncodeError as e:
        raise SerializationFailedError(f"Cannot encode {text!r} as {encoding}: {e}") from e
    # quote() never escapes ".", which is reserved here
    return escaped.replace(".", "%2E")


def quote_escape(name: str) -> str:
    """Escape quotes so a name fits inside a quoted header parameter."""
    return name.replace('"', "%22").replace("'", "%27")


def encode_pair(pair: Pair, encoding: str = "utf-8") -> str:
    value = escape(pair.text, encoding)
    if pair.key is None:
        return value
    return f"{escape(pair.key, encoding)}={value}"


def encode_query_string(pairs: List[Pair], encoding: str = "utf-8") -> str:
    """Join escaped pairs with ``&``. Upload values use their string form."""
    return "&".join(encode_pair(pair, encoding) for pair in pairs)


def append_query_string(url: str, query: str) -> str:
    """Append ``query`` to ``url`` with ``?`` or ``&``; no-op for an empty query."""
    if not query:
        return url
    base, hash_sign, fragment = url.partition("#")
    separator = "&" if "?" in base else "?"
    return f"{base}{separator}{query}{hash_sign}{fragment}"


def encode_urlencoded_body(pairs: List[Pair], encoding: str = "utf-8") -> Tuple[bytes, str]:
    """Return the form-encoded body and its content type."""
    body = encode_query_string(pairs, encoding).encode(encoding)
    content_type = f"application/x-www-form-urlencoded; charset={charset_name(encoding)}"
    return body, content_type


def make_boundary() -> str:
    """Unguessable boundary from two independent random 32-bit values."""
    return f"{BOUNDARY_PREFIX}{secrets.randbits(32)}{secrets.randbits(32)}"


def multipart_part_header(
    name: str,
    file_name: Optional[str] = None,
    mime_type: Optional[str] = None,
) -> str:
    header = f'Content-Disposition: form-data; name="{quote_escape(name)}"'
    if file_name is not None:
        header += f'; filename="{quote_escape(file_name)}"'
    header += CRLF
    if mime_type is not None:
        header += f"Content-Type: {mime_type}{CRLF}"
    header += CRLF
    return header


def encode_multipart(
    pairs: List[Pair],
    encoding: str = "utf-8",
    boundary: Optional[str] = None,
) -> Tuple[bytes, str]:
    """Return the multipart/form-data body and its content type.

    Keyless pairs are skipped. Upload bytes are resolved here, which may read
    from disk (blocking).

    Raises:
        MissingUploadSourceError: an upload could not be resolved.
        UnicodeEncodeError: a name or value cannot be represented in ``encoding``.
    """
    boundary = boundary or make_boundary()
    delimiter = f"{CRLF}--{boundary}".encode(encoding)
    chunks = [f"--{boundary}".encode(encoding)]

    for pair in pairs:
        if pair.key is None:
            logger.debug(f"encode_multipart: skipping keyless value {pair.text!r}")
            continue
        chunks.append(CRLF.encode(encoding))
        upload = pair.upload
        if upload is not None:
            data = upload.get_data()
            chunks.append(
                multipart_part_header(pair.key, upload.file_name, upload.mime_type).encode(encoding)
            )
            chunks.append(data)
        else:
            chunks.append(multipart_part_header(pair.key).encode(encoding))
            chunks.append(pair.text.encode(encoding))
        chunks.append(delimiter)

    chunks.append(b"--")
    content_type = f"multipart/form-data; boundary={boundary}"
    return b"".join(chunks), content_type
