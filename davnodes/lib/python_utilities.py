from typing import Optional
from typing import Union


def to_wire(text: Union[str, bytes, None]) -> Optional[bytes]:
    """Encode text for the request body, leaving bytes untouched"""
    if text is None:
        return None
    if isinstance(text, str):
        text = bytes(text, "utf-8")
    return text


def to_normal_str(text: Union[str, bytes, None]) -> Optional[str]:
    if text is None:
        return text
    if not isinstance(text, str):
        text = text.decode("utf-8", errors="replace")
    text = text.replace("\r\n", "\n")
    return text


def to_unicode(text: Union[str, bytes, None]) -> Optional[str]:
    if text and isinstance(text, bytes):
        return text.decode("utf-8")
    return text
