import os
from typing import Annotated, NewType

from annotated_types import Predicate


def _is_glob(path) -> bool:
    if not isinstance(path, str):
        return False
    return any(c in path for c in "*?[]")


def _is_extension(name: str) -> bool:
    return name.startswith(".") and os.path.sep not in name


TGlob = Annotated[NewType("TGlob", str), Predicate(_is_glob)]
TExtension = Annotated[NewType("TExtension", str), Predicate(_is_extension)]
"""
TExtension is a dot-prefixed extension such as '.py'. Case is normalized by
`classify.normalize_extension` unless matching is case-sensitive.
"""
