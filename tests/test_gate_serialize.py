import json
import pytest
import yaml

from gate.gate_serialize import serialize, deserialize, detect_format, to_builtin, from_builtin
from gate.gate_parser import parse, parse_one
from gate.gate_datatypes import BinaryOp, NumberLiteral, Variable, BinaryExpr, IfExpr, Block

PROGRAM = '''
i = 0
while i < 3 {
    println("i=", i)
    i = i + 1
}
if i == 3 { "done" } else { nil }
'''

def test_to_builtin_shape():
    node = parse_one("x = 1 + y")
    assert to_builtin(node) == {
        'tag': 'assign',
        'name': 'x',
        'value': {
            'tag': 'binary',
            'op': '+',
            'left': {'tag': 'number', 'value': 1.0},
            'right': {'tag': 'variable', 'name': 'y'},
        },
    }

def test_if_without_else_omits_the_key():
    assert 'else' not in to_builtin(IfExpr(Variable("c"), Block([])))

def test_json_roundtrip():
    program = parse(PROGRAM)
    s = serialize(program, fmt="json")
    assert json.loads(s)[0]['tag'] == 'assign'
    out = deserialize(s)  # JSON is sniffed from leading "["
    assert out == program

def test_yaml_roundtrip_with_fmt():
    program = parse(PROGRAM)
    s = serialize(program, fmt="yaml")
    assert yaml.safe_load(s)[1]['tag'] == 'while'
    assert deserialize(s, fmt="yaml") == program

def test_json_compact_output():
    s = serialize(parse_one("1"), fmt="json", pretty=False)
    assert s == '{"tag": "number", "value": 1.0}'

def test_deserialize_accepts_bytes():
    node = parse_one('"hé"')
    assert deserialize(serialize(node, fmt="json").encode("utf-8")) == node

def test_hand_written_yaml_document():
    doc = "tag: binary\nop: '*'\nleft: {tag: number, value: 2}\nright: {tag: variable, name: n}\n"
    assert deserialize(doc) == BinaryExpr(NumberLiteral(2.0), BinaryOp.MUL, Variable("n"))

@pytest.mark.parametrize(
    "text,expected",
    [
        ('{"tag": "nil"}', "json"),
        ('  [1, 2]', "json"),
        ("tag: nil\n", "yaml"),
        ("- tag: nil\n", "yaml"),
        (None, "yaml"),
    ],
)
def test_detect_format(text, expected):
    assert detect_format(text) == expected

def test_unknown_tag_raises():
    with pytest.raises(ValueError):
        from_builtin({'tag': 'lambda'})

@pytest.mark.parametrize("value", ["false", 0, 1, None])
def test_boolean_value_must_be_a_bool(value):
    with pytest.raises(ValueError):
        from_builtin({'tag': 'boolean', 'value': value})

def test_quoted_false_in_yaml_is_rejected():
    with pytest.raises(ValueError):
        deserialize("tag: boolean\nvalue: 'false'\n")

def test_unknown_operator_raises():
    with pytest.raises(ValueError):
        from_builtin({'tag': 'binary', 'op': '**', 'left': {'tag': 'nil'}, 'right': {'tag': 'nil'}})

def test_untagged_document_raises():
    with pytest.raises(ValueError):
        deserialize("just: a mapping\n")

def test_unsupported_format_raises():
    with pytest.raises(ValueError):
        serialize(parse_one("1"), fmt="toml")

def test_non_expression_cannot_be_serialized():
    with pytest.raises(TypeError):
        to_builtin(object())
