import re
from dataclasses import dataclass
from typing import List, Optional
from xlfsync.xliff_obj import TranslationUnit

# "Table 2328808854 - Field 1296262074 - Property 2879900210"
ID_PART_REGEX = re.compile(r"(\w+) (\d+)(?: - |$)")

# "Table Customer - Field \"No. 2\" - Property OptionCaption"
NAME_PART_REGEX = re.compile(r'(\w+) ("(?:[^"]|"")*"|.*?)(?: - |$)')

OPTION_CAPTION = "OptionCaption"


@dataclass(frozen=True)
class XliffIdToken:
    type: str
    id: str
    name: Optional[str] = None

    def is_option_caption(self) -> bool:
        return self.type == "Property" and self.name == OPTION_CAPTION

    def is_label(self) -> bool:
        return self.type == "NamedType"


def _unquote(name: str) -> str:
    if len(name) >= 2 and name.startswith('"') and name.endswith('"'):
        return name[1:-1].replace('""', '"')
    return name


def parse_xliff_id(unit: TranslationUnit) -> List[XliffIdToken]:
    """
    Builds the structural key of a trans-unit: the (type, id) path from the
    unit id, named from the "Xliff Generator" note when it lines up.
    """
    id_parts = ID_PART_REGEX.findall(unit.id or "")
    note = unit.description_note()
    names = []
    if note is not None and note.text:
        names = [(t, _unquote(n)) for t, n in NAME_PART_REGEX.findall(note.text) if t]

    if len(names) != len(id_parts) or any(n[0] != p[0] for n, p in zip(names, id_parts)):
        names = [(p[0], None) for p in id_parts]

    return [XliffIdToken(type=p[0], id=p[1], name=n[1]) for p, n in zip(id_parts, names)]


def last_token(unit: TranslationUnit) -> Optional[XliffIdToken]:
    tokens = parse_xliff_id(unit)
    return tokens[-1] if tokens else None
