"""Tests for spec text parsing and canonical encoding.

Verifies that:
1. Spec strings round trip through parse and encode
2. Type keywords resolve longest-first, including literal aliases
3. Options are applied with policy defaults (List/Map never index values)
4. Malformed input raises ParseError naming the offending remainder
"""

import pytest

from featurebin.errors import ParseError
from featurebin.schema import (
    Cardinality,
    GeometryAttributeSpec,
    GeometryType,
    IndexCoverage,
    ListAttributeSpec,
    MapAttributeSpec,
    SimpleAttributeSpec,
    SimpleType,
    Splitter,
    encode_spec,
    parse_spec,
)


class TestRoundTrip:
    """Parse then encode reproduces canonical spec text."""

    @pytest.mark.parametrize("spec", [
        "id:Integer,*geom:Point:srid=4326,dtg:Date",
        "name:String:index=full:cardinality=high,*geom:LineString:srid=4326,dates:List[Date]",
        "tags:List[String]:index=join,attrs:Map[String,Double]:cardinality=low,*geom:Polygon:srid=-1",
        "id:UUID:index=join:index-value=true,count:Long,ratio:Float,ok:Boolean,*g:Geometry:srid=4326",
        "*geom:Point:srid=4326,dtg:Date;table.splitter.class=com.example.DigitSplitter,"
        "table.splitter.options=fmt:%02d,min:0,max:99",
    ])
    def test_canonical_specs_round_trip(self, spec):
        """Test that canonical spec strings encode back to themselves."""
        parsed = parse_spec(spec)
        assert encode_spec(parsed.attributes, parsed.options) == spec

    def test_parse_of_encoding_preserves_attributes(self):
        """Test that parse(encode(specs)) gives equal attribute specs in order."""
        parsed = parse_spec(
            "a:int:index=true,b:0.0f,c:java.util.List[long],d:map,*geom:MultiPoint"
        )
        reparsed = parse_spec(encode_spec(parsed.attributes))
        assert reparsed.attributes == parsed.attributes

    def test_aliases_encode_to_short_names(self):
        """Test that aliases and elided parameters encode minimally."""
        parsed = parse_spec("a:java.lang.String,b:0,c:true,d:list,e:Map,*g:Point")
        assert encode_spec(parsed.attributes) == (
            "a:String,b:Integer,c:Boolean,d:List[String],e:Map[String,String],*g:Point:srid=4326"
        )

    def test_whitespace_and_margins_are_stripped(self):
        """Test that multi-line specs with | margins parse like single-line specs."""
        spec = """
            |id : Integer,
            |*geom : Point : srid = 4326,
            |dtg : Date
        """
        parsed = parse_spec(spec)
        assert encode_spec(parsed.attributes) == "id:Integer,*geom:Point:srid=4326,dtg:Date"


class TestKeywordPrecedence:
    """Type keywords match longest-first on token boundaries."""

    @pytest.mark.parametrize("keyword", ["Int", "int", "Integer", "java.lang.Integer", "0"])
    def test_integer_aliases(self, keyword):
        """Test that every integer alias resolves to Integer."""
        attribute = parse_spec(f"count:{keyword}").attributes[0]
        assert isinstance(attribute, SimpleAttributeSpec)
        assert attribute.data_type is SimpleType.INTEGER

    @pytest.mark.parametrize("keyword,expected", [
        ("0", SimpleType.INTEGER),
        ("0.0", SimpleType.DOUBLE),
        ("0.0f", SimpleType.FLOAT),
        ("true", SimpleType.BOOLEAN),
        ("false", SimpleType.BOOLEAN),
        ("Long", SimpleType.LONG),
        ("Date", SimpleType.DATE),
        ("UUID", SimpleType.UUID),
    ])
    def test_literal_aliases(self, keyword, expected):
        """Test that literal aliases resolve to their types."""
        assert parse_spec(f"v:{keyword}").attributes[0].data_type is expected

    def test_prefix_keyword_does_not_match_longer_word(self):
        """Test that 'Integers' is rejected rather than read as 'Integer' + junk."""
        with pytest.raises(ParseError):
            parse_spec("count:Integers")

    def test_geometry_keywords_prefer_longest(self):
        """Test that MultiLineString is not read as a shorter geometry keyword."""
        attribute = parse_spec("*g:MultiLineString").attributes[0]
        assert attribute.geometry_type is GeometryType.MULTILINESTRING

    def test_list_and_map_element_types(self):
        """Test parameterized collection types."""
        attrs = parse_spec("l:List[Int],m:Map[Long,Date]").attributes
        assert isinstance(attrs[0], ListAttributeSpec)
        assert attrs[0].element_type is SimpleType.INTEGER
        assert isinstance(attrs[1], MapAttributeSpec)
        assert (attrs[1].key_type, attrs[1].value_type) == (SimpleType.LONG, SimpleType.DATE)

    def test_elided_collection_parameters_default_to_string(self):
        """Test that List and Map without parameters hold strings."""
        attrs = parse_spec("l:List,m:java.util.Map").attributes
        assert attrs[0].element_type is SimpleType.STRING
        assert (attrs[1].key_type, attrs[1].value_type) == (SimpleType.STRING, SimpleType.STRING)


class TestOptions:
    """Attribute options and their policy defaults."""

    def test_defaults(self):
        """Test that options default to none/false/unknown."""
        attribute = parse_spec("name:String").attributes[0]
        assert attribute.index is IndexCoverage.NONE
        assert attribute.index_value is False
        assert attribute.cardinality is Cardinality.UNKNOWN

    def test_enum_options_are_case_insensitive(self):
        """Test index and cardinality enum names in any case."""
        attribute = parse_spec("name:String:index=FULL:cardinality=High").attributes[0]
        assert attribute.index is IndexCoverage.FULL
        assert attribute.cardinality is Cardinality.HIGH

    @pytest.mark.parametrize("value,expected", [
        ("true", IndexCoverage.JOIN),
        ("false", IndexCoverage.NONE),
        ("join", IndexCoverage.JOIN),
        ("bogus", IndexCoverage.NONE),
    ])
    def test_legacy_boolean_index(self, value, expected):
        """Test that index accepts legacy booleans and ignores unknown values."""
        assert parse_spec(f"name:String:index={value}").attributes[0].index is expected

    def test_unknown_cardinality_is_unknown(self):
        """Test that an unrecognized cardinality falls back to UNKNOWN."""
        attribute = parse_spec("name:String:cardinality=medium").attributes[0]
        assert attribute.cardinality is Cardinality.UNKNOWN

    def test_list_never_indexes_value(self):
        """Test that index-value=true is overridden by policy for lists."""
        attribute = parse_spec("tags:List[String]:index-value=true").attributes[0]
        assert isinstance(attribute, ListAttributeSpec)
        assert attribute.index_value is False
        assert attribute.to_attribute().index_value is False

    def test_map_never_indexes_value(self):
        """Test that index-value=true is overridden by policy for maps."""
        attribute = parse_spec("m:Map[String,Int]:index=join:index-value=true").attributes[0]
        assert attribute.index is IndexCoverage.JOIN
        assert attribute.index_value is False

    def test_default_geometry_star(self):
        """Test that '*' marks the default geometry."""
        attrs = parse_spec("*geom:Point,other:Point").attributes
        assert attrs[0].default is True
        assert attrs[1].default is False

    def test_srid_defaults_to_4326(self):
        """Test geometry SRID default."""
        assert parse_spec("*geom:Point").attributes[0].srid == 4326

    def test_unsupported_srid_parses(self):
        """Test that SRID range is not checked by the parser."""
        attribute = parse_spec("*geom:Point:srid=3857").attributes[0]
        assert isinstance(attribute, GeometryAttributeSpec)
        assert attribute.srid == 3857

    def test_index_value_encodes_when_true(self):
        """Test that only non-default options are encoded."""
        attribute = parse_spec("name:String:index=none:index-value=true:cardinality=unknown").attributes[0]
        assert attribute.to_spec() == "name:String:index-value=true"


class TestFeatureOptions:
    """The ';' section carrying table splitter options."""

    def test_splitter_with_options(self):
        """Test splitter class and options."""
        parsed = parse_spec(
            "dtg:Date;table.splitter.class=com.example.Splitter,table.splitter.options=fmt:%02d,max:99"
        )
        assert parsed.options == (Splitter("com.example.Splitter", {"fmt": "%02d", "max": "99"}),)

    def test_splitter_without_options(self):
        """Test splitter class alone, with or without a trailing comma."""
        for spec in ("dtg:Date;table.splitter.class=a.B", "dtg:Date;table.splitter.class=a.B,"):
            parsed = parse_spec(spec)
            assert parsed.options == (Splitter("a.B", {}),)

    def test_empty_splitter_keys_and_values(self):
        """Test that splitter options may have empty keys or values."""
        spec = "dtg:Date;table.splitter.class=a.B,table.splitter.options=fmt:,:x,max:9"
        parsed = parse_spec(spec)
        assert parsed.options == (Splitter("a.B", {"fmt": "", "": "x", "max": "9"}),)
        assert encode_spec(parsed.attributes, parsed.options) == spec

    def test_empty_feature_options(self):
        """Test that a trailing ';' with nothing after it is accepted."""
        parsed = parse_spec("dtg:Date;")
        assert parsed.options == ()


class TestParseErrors:
    """Malformed input raises ParseError with the offending remainder."""

    def test_unknown_type(self):
        """Test that an unknown type names the remainder."""
        with pytest.raises(ParseError, match="Unknown type") as info:
            parse_spec("id:Integer,shape:Hexagon,dtg:Date")
        assert info.value.remainder.startswith("Hexagon")

    def test_missing_type(self):
        """Test an attribute without a type."""
        with pytest.raises(ParseError):
            parse_spec("id")

    def test_unclosed_list(self):
        """Test an unterminated list parameter."""
        with pytest.raises(ParseError, match="Expected ']'"):
            parse_spec("tags:List[String")

    def test_invalid_boolean(self):
        """Test that index-value must be a boolean."""
        with pytest.raises(ParseError, match="index-value"):
            parse_spec("name:String:index-value=maybe")

    def test_invalid_srid(self):
        """Test that srid must be an integer."""
        with pytest.raises(ParseError, match="srid"):
            parse_spec("*geom:Point:srid=wgs84")

    def test_trailing_garbage(self):
        """Test that unparsed trailing input is an error."""
        with pytest.raises(ParseError) as info:
            parse_spec("id:Integer,")
        assert "Error parsing spec" in str(info.value)
