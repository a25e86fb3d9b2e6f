"""
Note entries shown in the keywords panel's notes list.

One model per entry kind, discriminated on `kind`.  `content` is already
HTML-escaped with its delimiters stripped.  `key` identifies the entry for
the dismissed checkbox; it is derived from kind and normalised content, so
it survives edits elsewhere in the document.
"""
from __future__ import annotations

import hashlib
import html
from collections import Counter
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class _Entry(BaseModel):
    model_config = ConfigDict(frozen=True)

    content: str
    position: int = Field(ge=-1)     # -1 for entries without a document anchor
    key: str


class NoteEntry(_Entry):
    kind: Literal["note"] = "note"
    line_index: int


class SynopsisEntry(_Entry):
    kind: Literal["synopsis"] = "synopsis"
    line_index: int


class OmittedEntry(_Entry):
    kind: Literal["omitted"] = "omitted"


class BoneyardEntry(_Entry):
    kind: Literal["boneyard"] = "boneyard"
    header: str = ""


class NotepadEntry(_Entry):
    kind: Literal["notepad"] = "notepad"
    offset: int = 0


Entry = Annotated[
    Union[NoteEntry, SynopsisEntry, OmittedEntry, BoneyardEntry, NotepadEntry],
    Field(discriminator="kind"),
]
EntryList = TypeAdapter(list[Entry])


def escape(text: str) -> str:
    return html.escape(text, quote=True)


class KeyFactory:
    """Hands out `kind:digest:n` keys; `n` counts repeats of identical content."""

    def __init__(self) -> None:
        self._seen: Counter[tuple[str, str]] = Counter()

    def __call__(self, kind: str, raw_content: str) -> str:
        normalized = " ".join(raw_content.split()).lower()
        digest = hashlib.sha1(normalized.encode("utf-8")).hexdigest()[:12]
        n = self._seen[(kind, digest)]
        self._seen[(kind, digest)] += 1
        return f"{kind}:{digest}:{n}"
