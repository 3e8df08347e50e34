import pytest

from jsonpb import names


@pytest.mark.parametrize(
    'snake, camel',
    [
        ('foo', 'foo'),
        ('foo_bar', 'fooBar'),
        ('foo_bar_baz', 'fooBarBaz'),
        ('foo.bar_baz', 'foo.barBaz'),
        ('foo_1', 'foo1'),
        ('foo__bar', 'fooBar'),
        ('foo_', 'foo'),
        ('_foo', 'Foo'),
        ('foo_Bar', 'fooBar'),
    ],
)
def test_to_camel(snake, camel):
    assert names.to_camel(snake) == camel


@pytest.mark.parametrize(
    'camel, snake',
    [
        ('foo', 'foo'),
        ('fooBar', 'foo_bar'),
        ('fooBarBaz', 'foo_bar_baz'),
        ('FooBar', '_foo_bar'),
        ('foo1', 'foo1'),
        ('foo.barBaz', 'foo.bar_baz'),
    ],
)
def test_to_snake(camel, snake):
    assert names.to_snake(camel) == snake


@pytest.mark.parametrize(
    'path, reversible',
    [
        ('foo_bar', True),
        ('foo.bar_baz', True),
        ('foo', True),
        ('foo__bar', False),
        ('foo_1', False),
        ('foo_', False),
        ('fooBar', False),
    ],
)
def test_is_reversible(path, reversible):
    assert names.is_reversible(path) is reversible


@pytest.mark.parametrize(
    'path, valid',
    [
        ('foo', True),
        ('foo.bar_baz', True),
        ('_foo.bar1', True),
        ('', False),
        ('foo..bar', False),
        ('foo.', False),
        ('.foo', False),
        ('1foo', False),
        ('foo bar', False),
        ('foo-bar', False),
    ],
)
def test_is_valid_path(path, valid):
    assert names.is_valid_path(path) is valid
