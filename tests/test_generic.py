from datetime import datetime, timezone

import pytest

from jsonpb import (
    FieldDescriptor,
    Kind,
    Message,
    MessageDescriptor,
    TypeRegistry,
    decode_canonical,
    encode_canonical,
    errors,
    wkt,
)
from tests.schemas import COLOR, EMPLOYEE, SAMPLE


@pytest.fixture
def employee():
    return Message(
        EMPLOYEE,
        id='id',
        created_at=wkt.timestamp(datetime(2023, 8, 29, tzinfo=timezone.utc)),
        manager_id=2**54,
    )


##
## encoding
##


def test_employee(codec, employee):
    data = codec.encode(employee)
    assert data == (
        b'{"id":"id","createdAt":"2023-08-29T00:00:00Z","managerId":"18014398509481984"}'
    )
    assert codec.decode(data, EMPLOYEE) == employee


def test_employee_manager_id_as_number(codec, employee):
    data = b'{"id":"id","createdAt":"2023-08-29T00:00:00Z","managerId":18014398509481984}'
    assert codec.decode(data, EMPLOYEE) == employee


def test_empty_message(codec):
    assert codec.encode(Message(EMPLOYEE)) == b'{}'
    assert codec.decode(b'{}', EMPLOYEE) == Message(EMPLOYEE)


def test_zero_values_skipped(codec):
    msg = Message(SAMPLE, count=0, flag=False, tags=[], labels={}, color=0)
    assert codec.encode(msg) == b'{}'


def test_emit_unpopulated(make_codec):
    codec = make_codec(emit_unpopulated=True)
    assert codec.encode(Message(EMPLOYEE)) == b'{"id":"","createdAt":null,"managerId":"0"}'


def test_emit_unpopulated_sample(make_codec):
    codec = make_codec(emit_unpopulated=True)
    data = codec.encode(Message(SAMPLE))
    assert data == (
        b'{"count":0,"big":"0","ratio":0,"score":0,"flag":false,"data":"",'
        b'"color":"COLOR_UNSPECIFIED","tags":[],"labels":{},"ids":{},"boss":null,'
        b'"nickname":null,"extra":null,"note":null,"payload":null,"mask":null}'
    )


def test_use_proto_names(make_codec, employee):
    codec = make_codec(use_proto_names=True)
    data = codec.encode(employee)
    assert data == (
        b'{"id":"id","created_at":"2023-08-29T00:00:00Z","manager_id":"18014398509481984"}'
    )
    assert codec.decode(data, EMPLOYEE) == employee


def test_indent(make_codec):
    codec = make_codec(indent='  ')
    msg = Message(SAMPLE, count=1, tags=['a', 'b'], labels={'x': 1})
    assert codec.encode(msg) == (
        b'{\n'
        b'  "count": 1,\n'
        b'  "tags": [\n'
        b'    "a",\n'
        b'    "b"\n'
        b'  ],\n'
        b'  "labels": {\n'
        b'    "x": 1\n'
        b'  }\n'
        b'}'
    )


def test_scalars(codec):
    msg = Message(
        SAMPLE,
        count=-3,
        big=2**64 - 1,
        ratio=0.5,
        score=-1.25,
        flag=True,
        data=b'hi',
        note='',
    )
    data = codec.encode(msg)
    assert data == (
        b'{"count":-3,"big":"18446744073709551615","ratio":0.5,"score":-1.25,'
        b'"flag":true,"data":"aGk=","note":""}'
    )
    assert codec.decode(data, SAMPLE) == msg


def test_string_escapes(codec):
    msg = Message(SAMPLE, tags=['a"b', 'c\\d', 'line\n', 'é'])
    data = codec.encode(msg)
    assert codec.decode(data, SAMPLE) == msg
    assert b'"a\\"b"' in data


##
## enums
##


def test_enum_names(codec):
    msg = Message(SAMPLE, color=2)
    assert codec.encode(msg) == b'{"color":"GREEN"}'
    assert codec.decode(b'{"color":"GREEN"}', SAMPLE) == msg
    assert codec.decode(b'{"color":2}', SAMPLE) == msg


def test_enum_numbers(make_codec):
    codec = make_codec(use_enum_numbers=True)
    assert codec.encode(Message(SAMPLE, color=1)) == b'{"color":1}'


def test_enum_unknown_number(codec):
    # numbers outside the enum are kept and written as numbers
    msg = Message(SAMPLE, color=7)
    assert codec.encode(msg) == b'{"color":7}'
    assert codec.decode(b'{"color":7}', SAMPLE) == msg


def test_enum_invalid(codec):
    with pytest.raises(errors.InvalidValue):
        codec.decode(b'{"color":"BLUE"}', SAMPLE)
    with pytest.raises(errors.TypeMismatch):
        codec.decode(b'{"color":true}', SAMPLE)
    assert COLOR.by_name('BLUE') is None


##
## repeated fields and maps
##


def test_repeated(codec):
    msg = Message(SAMPLE, tags=['b', 'a'])
    assert codec.encode(msg) == b'{"tags":["b","a"]}'
    assert codec.decode(b'{"tags":["b","a"]}', SAMPLE) == msg


def test_repeated_null_element(codec):
    with pytest.raises(errors.TypeMismatch):
        codec.decode(b'{"tags":["a",null]}', SAMPLE)


def test_repeated_not_array(codec):
    with pytest.raises(errors.TypeMismatch):
        codec.decode(b'{"tags":"a"}', SAMPLE)


def test_maps_sorted(codec):
    msg = Message(SAMPLE, labels={'b': 2, 'a': 1}, ids={10: 'x', -1: 'y', 2: 'z'})
    data = codec.encode(msg)
    assert data == b'{"labels":{"a":1,"b":2},"ids":{"-1":"y","2":"z","10":"x"}}'
    assert codec.decode(data, SAMPLE) == msg


def test_bool_map_keys(codec):
    flags = MessageDescriptor(
        'test.Flags',
        [
            FieldDescriptor(
                name='on', number=1, kind=Kind.STRING, repeated=True, key_kind=Kind.BOOL
            )
        ],
    )
    msg = Message(flags, on={True: 'yes', False: 'no'})
    data = codec.encode(msg)
    assert data == b'{"on":{"false":"no","true":"yes"}}'
    assert codec.decode(data, flags) == msg
    with pytest.raises(errors.InvalidValue):
        codec.decode(b'{"on":{"1":"x"}}', flags)


@pytest.mark.parametrize('key', [b'"x"', b'"1.5"', b'"01"', b'" 1"'])
def test_int_map_key_invalid(codec, key):
    with pytest.raises(errors.InvalidValue):
        codec.decode(b'{"ids":{' + key + b':"a"}}', SAMPLE)


def test_int_map_key_range(codec):
    with pytest.raises(errors.RangeError):
        codec.decode(b'{"ids":{"2147483648":"a"}}', SAMPLE)


def test_map_null_value(codec):
    with pytest.raises(errors.TypeMismatch):
        codec.decode(b'{"labels":{"a":null}}', SAMPLE)


##
## field presence and null
##


def test_optional_presence(codec):
    msg = Message(SAMPLE, note='')
    assert msg.has('note')
    assert codec.encode(msg) == b'{"note":""}'

    decoded = codec.decode(b'{"note":""}', SAMPLE)
    assert decoded.has('note')
    assert decoded != Message(SAMPLE)


def test_null_leaves_field_unset(codec):
    msg = codec.decode(b'{"count":null,"note":null,"boss":null,"tags":null}', SAMPLE)
    assert msg == Message(SAMPLE)
    assert not msg.has('note')
    assert not msg.has('boss')


def test_nested_message(codec):
    msg = Message(SAMPLE, boss=Message(EMPLOYEE, id='b'), nickname=Message(wkt.STRING_VALUE))
    data = codec.encode(msg)
    assert data == b'{"boss":{"id":"b"},"nickname":""}'
    assert codec.decode(data, SAMPLE) == msg


def test_nested_message_type_mismatch(codec):
    with pytest.raises(errors.TypeMismatch):
        codec.decode(b'{"boss":"b"}', SAMPLE)
    with pytest.raises(errors.TypeMismatch):
        codec.decode(b'[]', SAMPLE)


##
## oneof
##


def test_oneof(codec):
    msg = Message(SAMPLE, text='')
    assert msg.which_oneof('choice') == 'text'
    assert codec.encode(msg) == b'{"text":""}'

    msg.set('number', 0)
    assert msg.which_oneof('choice') == 'number'
    assert codec.encode(msg) == b'{"number":"0"}'
    assert codec.decode(b'{"number":"0"}', SAMPLE) == msg


def test_oneof_conflict(codec):
    with pytest.raises(errors.OneofConflict):
        codec.decode(b'{"text":"a","number":1}', SAMPLE)
    with pytest.raises(errors.OneofUnset):
        codec.decode(b'{"text":"a","number":1}', SAMPLE)


def test_oneof_unpopulated_skipped(make_codec):
    codec = make_codec(emit_unpopulated=True)
    data = codec.encode(Message(SAMPLE))
    assert b'"text"' not in data
    assert b'"number"' not in data


##
## names and unknown fields
##


def test_proto_names_accepted(codec, employee):
    data = b'{"id":"id","created_at":"2023-08-29T00:00:00Z","manager_id":"18014398509481984"}'
    assert codec.decode(data, EMPLOYEE) == employee


def test_custom_json_name(codec):
    desc = MessageDescriptor(
        'test.Custom',
        [FieldDescriptor(name='value', number=1, kind=Kind.INT32, json_name='theValue')],
    )
    msg = Message(desc, value=4)
    assert codec.encode(msg) == b'{"theValue":4}'
    assert codec.decode(b'{"theValue":4}', desc) == msg
    assert codec.decode(b'{"value":4}', desc) == msg


def test_unknown_field(codec, make_codec):
    with pytest.raises(errors.UnknownField) as exc_info:
        codec.decode(b'{"id":"a","name":"b"}', EMPLOYEE)
    assert exc_info.value.member == 'name'

    lenient = make_codec(discard_unknown=True)
    assert lenient.decode(b'{"id":"a","name":"b"}', EMPLOYEE) == Message(EMPLOYEE, id='a')


##
## integers
##


@pytest.mark.parametrize(
    'data, value',
    [
        (b'{"count":2147483647}', 2**31 - 1),
        (b'{"count":-2147483648}', -(2**31)),
        (b'{"count":"12"}', 12),
        (b'{"big":18446744073709551615}', 2**64 - 1),
        (b'{"big":"18446744073709551615"}', 2**64 - 1),
    ],
)
def test_int_bounds(codec, data, value):
    msg = codec.decode(data, SAMPLE)
    assert value in (msg.get('count'), msg.get('big'))


@pytest.mark.parametrize(
    'data',
    [
        b'{"count":2147483648}',
        b'{"count":-2147483649}',
        b'{"big":-1}',
        b'{"big":"18446744073709551616"}',
    ],
)
def test_int_out_of_range(codec, data):
    with pytest.raises(errors.RangeError):
        codec.decode(data, SAMPLE)


def test_int_encode_out_of_range(codec):
    with pytest.raises(errors.RangeError):
        codec.encode(Message(SAMPLE, big=-1))


def test_double_field_overflow(codec):
    data = b'{"score":1' + b'0' * 400 + b'}'
    with pytest.raises(errors.RangeError) as exc_info:
        codec.decode(data, SAMPLE)
    assert exc_info.value.name == 'test.Sample.score'


def test_float_encoding(codec):
    msg = Message(SAMPLE, ratio=0.1, score=0.1)
    assert codec.encode(msg) == b'{"ratio":0.1,"score":0.1}'
    msg = Message(SAMPLE, ratio=float('-inf'), score=float('nan'))
    assert codec.encode(msg) == b'{"ratio":"-Infinity","score":"NaN"}'


##
## errors
##


@pytest.mark.parametrize('data', [b'', b'{', b'{"id":}', b'{"id":"a"} x', b"{'id':'a'}"])
def test_syntax_error(codec, data):
    with pytest.raises(errors.JsonSyntaxError):
        codec.decode(data, EMPLOYEE)


def test_syntax_error_is_decode_error(codec):
    with pytest.raises(errors.DecodeError):
        codec.decode(b'{', EMPLOYEE)


##
## depth
##


def _nested_struct(depth):
    obj = {}
    for _ in range(depth):
        obj = {'a': obj}
    return wkt.struct(obj)


def test_depth_exceeded(make_codec):
    codec = make_codec(max_depth=10)
    with pytest.raises(errors.DepthExceeded) as exc_info:
        codec.encode(_nested_struct(10))
    assert exc_info.value.limit == 10
    assert codec.encode(_nested_struct(2)) == b'{"a":{"a":{}}}'


def test_decode_depth_exceeded(registry):
    data = b'{"a":' * 20 + b'{}' + b'}' * 20
    with pytest.raises(errors.DepthExceeded):
        decode_canonical(data, wkt.STRUCT, registry, max_depth=10)
    assert decode_canonical(b'{"a":{}}', wkt.STRUCT, registry, max_depth=10) == wkt.struct(
        {'a': {}}
    )


def test_decode_depth_exceeded_in_parser(codec):
    data = b'[' * 5000 + b']' * 5000
    with pytest.raises(errors.DepthExceeded):
        codec.decode(data, wkt.VALUE)
    with pytest.raises(errors.DepthExceeded):
        codec.decode(b'{"a":' * 5000 + b'{}' + b'}' * 5000, wkt.STRUCT)


def test_default_depth_allows_reasonable_nesting(codec):
    msg = _nested_struct(30)
    assert codec.decode(codec.encode(msg), wkt.STRUCT) == msg


##
## module functions
##


def test_module_functions(registry, employee):
    data = encode_canonical(employee, registry, use_proto_names=True)
    assert b'"manager_id"' in data
    assert decode_canonical(data, EMPLOYEE, registry) == employee


def test_module_functions_default_registry():
    msg = wkt.struct({'a': 1})
    assert encode_canonical(msg) == b'{"a":1}'
    assert decode_canonical('{"a":1}', wkt.STRUCT) == msg
    with pytest.raises(errors.UnresolvableType):
        decode_canonical(b'{"@type":"type.googleapis.com/test.Employee"}', wkt.ANY)


def test_registry_resolves_custom_types():
    registry = TypeRegistry([EMPLOYEE])
    assert encode_canonical(wkt.pack(Message(EMPLOYEE, id='x')), registry) == (
        b'{"@type":"type.googleapis.com/test.Employee","id":"x"}'
    )
