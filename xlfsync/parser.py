from lxml import etree
from typing import Optional
import os
import re
from xlfsync.xliff_obj import LocalizationDocument, TranslationUnit, Target, Note
from xlfsync.errors import InvalidXliffError
from xlfsync.logger import get_logger

logger = get_logger(__name__)

XLIFF_NS = "urn:oasis:names:tc:xliff:document:1.2"
XSI_NS = "http://www.w3.org/2001/XMLSchema-instance"
XML_NS = "http://www.w3.org/XML/1998/namespace"
SCHEMA_LOCATION = "urn:oasis:names:tc:xliff:document:1.2 xliff-core-1.2-transitional.xsd"

XML_DECLARATION = '<?xml version="1.0" encoding="utf-8"?>'
UTF8_BOM = b"\xef\xbb\xbf"

# Anything outside the XML 1.0 Char production
INVALID_XML_CHAR_REGEX = re.compile("[^\x09\x0A\x0D\x20-\uD7FF\uE000-\uFFFD\U00010000-\U0010FFFF]")

SELF_CLOSING_TAG_REGEX = re.compile(r"<([A-Za-z_][\w:.-]*)((?:\s+[^<>]*?)?)\s*/>")


def _local(node) -> str:
    return etree.QName(node).localname


def _children(node, localname: str):
    return [c for c in node if isinstance(c.tag, str) and _local(c) == localname]


def _text_content(node) -> str:
    return "".join(node.itertext()) if node is not None else ""


def _byte_offset(text: str, char_index: int) -> int:
    return len(text[:char_index].encode("utf-8"))


class XliffParser:
    def __init__(self, file_path: str = None):
        self.file_path = file_path
        self.document: Optional[LocalizationDocument] = None

    def load(self) -> LocalizationDocument:
        """Parses the XLIFF file into a LocalizationDocument."""
        if not os.path.exists(self.file_path):
            raise FileNotFoundError(f"File not found: {self.file_path}")

        with open(self.file_path, "rb") as f:
            data = f.read()

        self.document = self.from_bytes(data, os.path.basename(self.file_path))
        self.document.path = self.file_path
        return self.document

    @classmethod
    def from_string(cls, xml: str, file_name: str = None) -> LocalizationDocument:
        return cls.from_bytes(xml.encode("utf-8"), file_name)

    @classmethod
    def from_bytes(cls, data: bytes, file_name: str = None) -> LocalizationDocument:
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise InvalidXliffError(f"invalid utf-8 byte sequence ({e.reason})", e.start, file_name)

        match = INVALID_XML_CHAR_REGEX.search(text)
        if match:
            raise InvalidXliffError(
                f"character U+{ord(match.group(0)):04X} is not allowed in xml",
                _byte_offset(text, match.start()),
                file_name,
            )

        parser = etree.XMLParser(remove_blank_text=False, resolve_entities=False)
        try:
            root = etree.fromstring(data, parser)
        except etree.XMLSyntaxError as e:
            line, column = e.position if e.position else (1, 1)
            lines = text.split("\n")
            char_index = sum(len(l) + 1 for l in lines[:max(line - 1, 0)]) + max(column - 1, 0)
            raise InvalidXliffError(e.msg, _byte_offset(text, char_index), file_name)

        document = cls._read_document(root)
        document.line_ending = "\r\n" if "\r\n" in text else "\n"
        document.utf8_bom = data.startswith(UTF8_BOM)
        return document

    @staticmethod
    def _read_document(root) -> LocalizationDocument:
        document = LocalizationDocument(version=root.get("version", "1.2"))

        files = root.xpath('//*[local-name()="file"]')
        if files:
            file_node = files[0]
            document.datatype = file_node.get("datatype", "xml")
            document.source_language = file_node.get("source-language", "")
            document.target_language = file_node.get("target-language", "")
            document.original = file_node.get("original", "")

        groups = root.xpath('//*[local-name()="group"]')
        document.group_id = groups[0].get("id") if groups else None

        for tu in root.xpath('//*[local-name()="trans-unit"]'):
            document.add_unit(XliffParser._read_unit(tu))

        return document

    @staticmethod
    def _read_unit(tu) -> TranslationUnit:
        source_nodes = _children(tu, "source")
        max_width = tu.get("maxwidth")

        unit = TranslationUnit(
            id=tu.get("id"),
            source=_text_content(source_nodes[0]) if source_nodes else "",
            translate=tu.get("translate", "yes").lower() != "no",
            max_width=int(max_width) if max_width else None,
            size_unit=tu.get("size-unit"),
            xml_space=tu.get(f"{{{XML_NS}}}space"),
            al_object_target=tu.get("al-object-target"),
        )
        for target_node in _children(tu, "target"):
            unit.targets.append(Target.from_persisted(
                _text_content(target_node),
                state=target_node.get("state"),
                state_qualifier=target_node.get("state-qualifier"),
            ))
        for note_node in _children(tu, "note"):
            unit.notes.append(Note(
                from_=note_node.get("from", ""),
                text=_text_content(note_node),
                annotates=note_node.get("annotates", "general"),
                priority=note_node.get("priority", "2"),
            ))
        return unit

    # --- Writing ---

    @staticmethod
    def _build_tree(document: LocalizationDocument):
        root = etree.Element(f"{{{XLIFF_NS}}}xliff", nsmap={None: XLIFF_NS, "xsi": XSI_NS})
        root.set("version", document.version)
        root.set(f"{{{XSI_NS}}}schemaLocation", SCHEMA_LOCATION)

        file_node = etree.SubElement(root, f"{{{XLIFF_NS}}}file")
        file_node.set("datatype", document.datatype)
        file_node.set("source-language", document.source_language)
        file_node.set("target-language", document.target_language)
        file_node.set("original", document.original)

        parent = etree.SubElement(file_node, f"{{{XLIFF_NS}}}body")
        if document.group_id is not None:
            parent = etree.SubElement(parent, f"{{{XLIFF_NS}}}group", id=document.group_id)

        for unit in document.units:
            XliffParser._write_unit(parent, unit)
        return root

    @staticmethod
    def _write_unit(parent, unit: TranslationUnit):
        tu = etree.SubElement(parent, f"{{{XLIFF_NS}}}trans-unit", id=unit.id)
        if unit.max_width is not None:
            tu.set("maxwidth", str(unit.max_width))
        if unit.size_unit is not None:
            tu.set("size-unit", unit.size_unit)
        tu.set("translate", "yes" if unit.translate else "no")
        if unit.xml_space is not None:
            tu.set(f"{{{XML_NS}}}space", unit.xml_space)
        if unit.al_object_target is not None:
            tu.set("al-object-target", unit.al_object_target)

        source = etree.SubElement(tu, f"{{{XLIFF_NS}}}source")
        if unit.source:
            source.text = unit.source

        for target in unit.targets:
            target_node = etree.SubElement(tu, f"{{{XLIFF_NS}}}target")
            if target.state is not None:
                target_node.set("state", str(getattr(target.state, "value", target.state)))
            if target.state_qualifier is not None:
                target_node.set("state-qualifier", str(getattr(target.state_qualifier, "value", target.state_qualifier)))
            if target.persisted_text:
                target_node.text = target.persisted_text

        for note in unit.notes:
            note_node = etree.SubElement(tu, f"{{{XLIFF_NS}}}note")
            note_node.set("from", note.from_)
            note_node.set("annotates", note.annotates)
            note_node.set("priority", note.priority)
            if note.text:
                note_node.text = note.text

    @staticmethod
    def to_string(document: LocalizationDocument, replace_self_closing_tags: bool = False) -> str:
        root = XliffParser._build_tree(document)
        body = etree.tostring(root, encoding="unicode", pretty_print=True)
        if replace_self_closing_tags:
            body = SELF_CLOSING_TAG_REGEX.sub(r"<\1\2></\1>", body)
        xml = XML_DECLARATION + "\n" + body.rstrip("\n") + "\n"
        if document.line_ending != "\n":
            xml = xml.replace("\n", document.line_ending)
        return xml

    def save(self, document: LocalizationDocument = None, output_path: str = None,
             replace_self_closing_tags: bool = False):
        """Serializes the document and writes it to output_path (default: the loaded file)."""
        document = document if document is not None else self.document
        save_path = output_path or document.path or self.file_path
        data = self.to_string(document, replace_self_closing_tags).encode("utf-8")
        if document.utf8_bom:
            data = UTF8_BOM + data
        with open(save_path, "wb") as f:
            f.write(data)
        logger.debug(f"Wrote {len(document.units)} trans-units to {save_path}")


def load_document(file_path: str) -> LocalizationDocument:
    return XliffParser(file_path).load()


def save_document(document: LocalizationDocument, file_path: str = None, replace_self_closing_tags: bool = False):
    XliffParser(file_path or document.path).save(document, file_path, replace_self_closing_tags)
