from .names import name_to_array, name_to_id, strip
from .sanitize import BLACKLISTED_TAGS, clean
from .tokens import Token, TokenKind, tokenize
from .truncate import limit

__all__ = [
    "limit",
    "clean",
    "strip",
    "name_to_id",
    "name_to_array",
    "tokenize",
    "Token",
    "TokenKind",
    "BLACKLISTED_TAGS",
]
