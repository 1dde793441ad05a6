"""
Recursive-descent parser and encoder for feature type spec strings.

Spec grammar:

    spec        := attribute ("," attribute)* (";" featureopts)?
    attribute   := ["*"] name ":" type (":" key "=" value)*
    type        := geometry | list | map | simple
    list        := ("List" | "list" | "java.util.List") ["[" simple "]"]
    map         := ("Map" | "map" | "java.util.Map") ["[" simple "," simple "]"]
    featureopts := "table.splitter.class=" cls
                   ["," "table.splitter.options=" k ":" v ("," k ":" v)*]

Example:
    >>> spec = parse_spec("id:Integer,*geom:Point:srid=4326,dtg:Date")
    >>> [a.name for a in spec.attributes]
    ['id', 'geom', 'dtg']
    >>> encode_spec(spec.attributes)
    'id:Integer,*geom:Point:srid=4326,dtg:Date'

Type keywords are matched longest-first and must end on a token boundary,
so ``count:Int`` is an integer and ``count:Integers`` is an error.
"""

import re
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from featurebin.errors import ParseError
from featurebin.schema.attributes import (
    DEFAULT_SRID,
    OPT_CARDINALITY,
    OPT_INDEX,
    OPT_INDEX_VALUE,
    OPT_SRID,
    TABLE_SPLITTER,
    TABLE_SPLITTER_OPTIONS,
    AttributeSpec,
    FeatureOption,
    FeatureSpec,
    GeometryAttributeSpec,
    ListAttributeSpec,
    MapAttributeSpec,
    SimpleAttributeSpec,
    Splitter,
)
from featurebin.schema.types import (
    GEOMETRY_KEYWORDS_ORDERED,
    GEOMETRY_TYPE_KEYWORDS,
    LIST_KEYWORDS_ORDERED,
    MAP_KEYWORDS_ORDERED,
    SIMPLE_KEYWORDS_ORDERED,
    SIMPLE_TYPE_KEYWORDS,
    SimpleType,
    parse_cardinality,
    parse_index_coverage,
)

_NAME = re.compile(r"[^:,;]+")
_OPTION_KEY = re.compile(r"[a-zA-Z_.-]+")
_OPTION_VALUE = re.compile(r"[^:,;]+")
_SPLITTER_CLASS = re.compile(r"[^,]*")
_SPLITTER_KEY = re.compile(r"[^,:]*")
_SPLITTER_VALUE = re.compile(r"[^,]*")
_WHITESPACE = re.compile(r"\s+")
_MARGIN = re.compile(r"^\s*\|", re.MULTILINE)

# characters that may follow a type keyword
_TYPE_BOUNDARY = frozenset(":,;[]")

_BOOLEANS = {"true": True, "false": False}


def strip_spec(text: str) -> str:
    """Remove ``|`` margins and all whitespace from spec text."""
    return _WHITESPACE.sub("", _MARGIN.sub("", text))


class SpecParser:
    """
    Single-use parser over one stripped spec string.

    Each ``_parse_*`` method consumes input from ``self.pos`` and either
    returns a value or ``None`` without consuming (for alternatives), or
    raises ParseError for input that cannot be valid.
    """

    def __init__(self, text: str):
        self.source = text
        self.text = strip_spec(text)
        self.pos = 0

    # -------------------------------------------------------------------------
    # Entry point
    # -------------------------------------------------------------------------

    def parse(self) -> FeatureSpec:
        attributes: List[AttributeSpec] = []
        options: List[FeatureOption] = []

        if not self._at_end() and not self._peek(";"):
            attributes.append(self._parse_attribute())
            while self._accept(","):
                attributes.append(self._parse_attribute())

        if self._accept(";"):
            if not self._at_end():
                options.append(self._parse_splitter())

        if not self._at_end():
            self._fail("Unexpected input")

        return FeatureSpec(tuple(attributes), tuple(options))

    # -------------------------------------------------------------------------
    # Attributes
    # -------------------------------------------------------------------------

    def _parse_attribute(self) -> AttributeSpec:
        default = self._accept("*")
        name = self._expect_regex(_NAME, "Expected attribute name")
        if not self._accept(":"):
            self._fail(f"Expected ':' and a type after attribute name '{name}'")

        geometry = self._match_keyword(GEOMETRY_KEYWORDS_ORDERED)
        if geometry is not None:
            options = self._parse_options()
            srid_text = options.get(OPT_SRID, str(DEFAULT_SRID))
            try:
                srid = int(srid_text)
            except ValueError:
                self._fail(f"Invalid srid '{srid_text}' for attribute '{name}'")
            return GeometryAttributeSpec(name, GEOMETRY_TYPE_KEYWORDS[geometry], srid, default)

        element = self._parse_list_type()
        if element is not None:
            options = self._parse_options()
            return ListAttributeSpec(
                name,
                element,
                index=parse_index_coverage(options.get(OPT_INDEX)),
                cardinality=parse_cardinality(options.get(OPT_CARDINALITY)),
            )

        map_types = self._parse_map_type()
        if map_types is not None:
            options = self._parse_options()
            return MapAttributeSpec(
                name,
                map_types[0],
                map_types[1],
                index=parse_index_coverage(options.get(OPT_INDEX)),
                cardinality=parse_cardinality(options.get(OPT_CARDINALITY)),
            )

        simple = self._match_keyword(SIMPLE_KEYWORDS_ORDERED)
        if simple is not None:
            options = self._parse_options()
            return SimpleAttributeSpec(
                name,
                SIMPLE_TYPE_KEYWORDS[simple],
                index=parse_index_coverage(options.get(OPT_INDEX)),
                index_value=self._to_bool(options.get(OPT_INDEX_VALUE, "false"), OPT_INDEX_VALUE),
                cardinality=parse_cardinality(options.get(OPT_CARDINALITY)),
            )

        self._fail(f"Unknown type for attribute '{name}'")

    def _parse_simple_type(self) -> SimpleType:
        keyword = self._match_keyword(SIMPLE_KEYWORDS_ORDERED)
        if keyword is None:
            self._fail("Expected a simple type")
        return SIMPLE_TYPE_KEYWORDS[keyword]

    def _parse_list_type(self) -> Optional[SimpleType]:
        if self._match_keyword(LIST_KEYWORDS_ORDERED) is None:
            return None
        if not self._accept("["):
            return SimpleType.STRING
        element = self._parse_simple_type()
        self._expect("]")
        return element

    def _parse_map_type(self) -> Optional[Tuple[SimpleType, SimpleType]]:
        if self._match_keyword(MAP_KEYWORDS_ORDERED) is None:
            return None
        if not self._accept("["):
            return SimpleType.STRING, SimpleType.STRING
        key_type = self._parse_simple_type()
        self._expect(",")
        value_type = self._parse_simple_type()
        self._expect("]")
        return key_type, value_type

    def _parse_options(self) -> Dict[str, str]:
        options: Dict[str, str] = {}
        while self._accept(":"):
            key = self._expect_regex(_OPTION_KEY, "Expected option key")
            self._expect("=")
            options[key] = self._expect_regex(_OPTION_VALUE, f"Expected value for option '{key}'")
        return options

    # -------------------------------------------------------------------------
    # Feature options
    # -------------------------------------------------------------------------

    def _parse_splitter(self) -> Splitter:
        self._expect(f"{TABLE_SPLITTER}=")
        class_name = self._expect_regex(_SPLITTER_CLASS, "Expected splitter class")
        options: Dict[str, str] = {}
        if self._accept(","):
            if self._accept(f"{TABLE_SPLITTER_OPTIONS}="):
                while True:
                    key = self._match_regex(_SPLITTER_KEY)
                    self._expect(":")
                    options[key] = self._match_regex(_SPLITTER_VALUE)
                    if not self._accept(","):
                        break
                    # trailing comma
                    if self._at_end():
                        break
        return Splitter(class_name, options)

    # -------------------------------------------------------------------------
    # Scanning primitives
    # -------------------------------------------------------------------------

    def _at_end(self) -> bool:
        return self.pos >= len(self.text)

    def _peek(self, literal: str) -> bool:
        return self.text.startswith(literal, self.pos)

    def _accept(self, literal: str) -> bool:
        if self._peek(literal):
            self.pos += len(literal)
            return True
        return False

    def _expect(self, literal: str) -> None:
        if not self._accept(literal):
            self._fail(f"Expected '{literal}'")

    def _expect_regex(self, pattern: "re.Pattern", message: str) -> str:
        match = pattern.match(self.text, self.pos)
        if match is None or not match.group(0):
            self._fail(message)
        self.pos = match.end()
        return match.group(0)

    def _match_regex(self, pattern: "re.Pattern") -> str:
        """Consume a possibly empty match of ``pattern``."""
        match = pattern.match(self.text, self.pos)
        self.pos = match.end()
        return match.group(0)

    def _match_keyword(self, keywords: Sequence[str]) -> Optional[str]:
        for keyword in keywords:
            end = self.pos + len(keyword)
            if self.text.startswith(keyword, self.pos) and (
                end == len(self.text) or self.text[end] in _TYPE_BOUNDARY
            ):
                self.pos = end
                return keyword
        return None

    def _to_bool(self, value: str, key: str) -> bool:
        try:
            return _BOOLEANS[value.lower()]
        except KeyError:
            raise ParseError(f"Invalid boolean '{value}' for option '{key}'", self.text[self.pos:])

    def _fail(self, message: str):
        raise ParseError(
            f"Error parsing spec '{self.source}': {message}",
            self.text[self.pos:],
        )


def parse_spec(text: str) -> FeatureSpec:
    """
    Parse spec text into attribute specs and feature options.

    Raises:
        ParseError: If the text is malformed or uses an unknown type
    """
    return SpecParser(text).parse()


def parse_list_type(text: str) -> Optional[SimpleType]:
    """Element type if ``text`` is exactly a list type, else None."""
    parser = SpecParser(text)
    try:
        element = parser._parse_list_type()
    except ParseError:
        return None
    return element if parser._at_end() else None


def parse_map_type(text: str) -> Optional[Tuple[SimpleType, SimpleType]]:
    """(key, value) types if ``text`` is exactly a map type, else None."""
    parser = SpecParser(text)
    try:
        types = parser._parse_map_type()
    except ParseError:
        return None
    return types if parser._at_end() else None


def encode_spec(attributes: Iterable[AttributeSpec], options: Iterable[FeatureOption] = ()) -> str:
    """Render attributes (and feature options) as canonical spec text."""
    text = ",".join(attribute.to_spec() for attribute in attributes)
    opts = [option.to_spec() for option in options]
    if opts:
        text += ";" + ",".join(opts)
    return text
