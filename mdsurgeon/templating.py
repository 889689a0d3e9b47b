"""Magic token expansion for user-supplied text.

Tokens in braces are replaced before text reaches an edit:

- ``{datetime}`` / ``{dt}``: local time, ISO-8601 with offset
- ``{datetime:short}`` / ``{dt:short}``: ``YYYY-MM-DD HH:MM``
- ``{date}``: ``YYYY-MM-DD``
- ``{time}``: ``HH:MM:SS``
- ``{meta:key.path}``: a value from the document's frontmatter

Unknown tokens are left as written.
"""

import re
from datetime import datetime
from typing import Any

from mdsurgeon.meta.codec import MetadataCodec, default_codec

TOKEN_PATTERN = re.compile(r"\{([^}]+)\}")


def expand_magic(
    text: str,
    meta: dict[str, Any] | None = None,
    codec: MetadataCodec | None = None,
    now: datetime | None = None,
) -> str:
    """Expand magic tokens in ``text``.

    Args:
        text: Input text
        meta: Decoded frontmatter for ``{meta:...}`` lookups
        codec: Codec used for path lookup and value formatting
        now: Clock override; defaults to the current local time with its offset

    Returns:
        Text with known tokens replaced

    Examples:
        >>> expand_magic("v{meta:version}", {"version": 2})
        'v2'
        >>> expand_magic("{unknown}")
        '{unknown}'
    """
    codec = codec or default_codec
    moment = now or datetime.now().astimezone()

    def replace(match: re.Match) -> str:
        token = match.group(1).strip()
        if token in ("datetime", "dt"):
            return moment.isoformat(timespec="seconds")
        if token in ("datetime:short", "dt:short"):
            return moment.strftime("%Y-%m-%d %H:%M")
        if token == "date":
            return moment.strftime("%Y-%m-%d")
        if token == "time":
            return moment.strftime("%H:%M:%S")
        if token.startswith("meta:") and meta is not None:
            return codec.format_value(codec.get_path(meta, token[5:]))
        return match.group(0)

    return TOKEN_PATTERN.sub(replace, text)
