import pytest

from idl_bindgen.types import (
    ArrayType,
    COptionType,
    DefinedType,
    NamedField,
    OpaqueType,
    OptionType,
    PositionalField,
    PrimitiveType,
    VecType,
    contains_defined,
    decode_enum_field,
    decode_type,
    walk,
)


class TestDecodeType:
    def test_bare_string_is_primitive(self):
        assert decode_type("u64") == PrimitiveType("u64")

    def test_unknown_string_is_still_primitive(self):
        # vocabulary is the resolver's business, not the decoder's
        assert decode_type("u256") == PrimitiveType("u256")

    def test_defined_string_and_object_agree(self):
        assert decode_type({"defined": "Foo"}) == DefinedType("Foo")
        assert decode_type({"defined": {"name": "Foo"}}) == DefinedType("Foo")

    def test_defined_object_with_generics_keeps_name(self):
        node = decode_type({"defined": {"name": "Foo", "generics": [{"kind": "type", "type": "u8"}]}})
        assert node == DefinedType("Foo")

    def test_array(self):
        assert decode_type({"array": ["u8", 32]}) == ArrayType(PrimitiveType("u8"), 32)

    def test_zero_length_array(self):
        assert decode_type({"array": ["u8", 0]}) == ArrayType(PrimitiveType("u8"), 0)

    @pytest.mark.parametrize(
        "value",
        [
            {"array": ["u8"]},
            {"array": ["u8", -1]},
            {"array": ["u8", "32"]},
            {"array": ["u8", True]},
            {"array": ["u8", {"generic": "N"}]},
            {"array": "u8"},
        ],
    )
    def test_malformed_array_is_opaque(self, value):
        assert isinstance(decode_type(value), OpaqueType)

    def test_wrappers(self):
        assert decode_type({"vec": "string"}) == VecType(PrimitiveType("string"))
        assert decode_type({"option": "u8"}) == OptionType(PrimitiveType("u8"))
        assert decode_type({"coption": "pubkey"}) == COptionType(PrimitiveType("pubkey"))

    def test_option_and_coption_stay_distinct(self):
        assert decode_type({"option": "u8"}) != decode_type({"coption": "u8"})

    def test_nested(self):
        node = decode_type({"vec": {"array": [{"option": {"defined": "Bar"}}, 3]}})
        assert node == VecType(ArrayType(OptionType(DefinedType("Bar")), 3))

    @pytest.mark.parametrize("value", [{"hashMap": ["u8", "u8"]}, {}, 7, None, ["u8"]])
    def test_unrecognized_shapes_are_opaque(self, value):
        assert isinstance(decode_type(value), OpaqueType)

    def test_deep_nesting(self):
        value = "u8"
        for _ in range(50):
            value = {"vec": {"option": value}}
        node = decode_type(value)
        depth = sum(1 for _ in walk(node))
        assert depth == 101

    def test_to_idl_round_trip(self):
        value = {"vec": {"array": [{"coption": {"defined": "Bar"}}, 3]}}
        assert decode_type(value).to_idl() == value


class TestContainsDefined:
    def test_primitive(self):
        assert not contains_defined(PrimitiveType("u8"))

    def test_nested_defined(self):
        assert contains_defined(VecType(OptionType(DefinedType("Foo"))))


class TestDecodeEnumField:
    def test_bare_string_is_positional_primitive(self):
        assert decode_enum_field("u64") == PositionalField(PrimitiveType("u64"))

    def test_name_and_type_is_named(self):
        assert decode_enum_field({"name": "x", "type": "u64"}) == NamedField("x", PrimitiveType("u64"))

    def test_defined_is_positional(self):
        assert decode_enum_field({"defined": "Foo"}) == PositionalField(DefinedType("Foo"))

    def test_defined_object_with_name_key_is_not_named(self):
        # has a "name" key one level down only; must not be taken for a named member
        assert decode_enum_field({"defined": {"name": "Foo"}}) == PositionalField(DefinedType("Foo"))

    def test_named_member_with_nested_type(self):
        field = decode_enum_field({"name": "items", "type": {"vec": {"defined": "Foo"}}})
        assert field == NamedField("items", VecType(DefinedType("Foo")))
