"""Tests for coordinate notation parsing and formatting."""

import pytest

from artifact_resolver.errors import NotationError
from artifact_resolver.models import Coordinate, Scope
from artifact_resolver.notation import coerce, format, parse


def test_parse_three_fields_uses_default_type():
    coordinate = parse("org.slf4j:slf4j-api:1.7.36")

    assert coordinate == Coordinate("org.slf4j", "slf4j-api", "jar", "1.7.36")
    assert coordinate.classifier is None


def test_parse_three_fields_with_custom_default_type():
    assert parse("org.example:bom:1.0", default_type="pom").type == "pom"


def test_parse_four_and_five_fields():
    plain = parse("junit:junit:jar:4.13.2")
    classified = parse("net.java.dev.jna:jna:jar:jpms:5.13.0")

    assert plain == Coordinate("junit", "junit", "jar", "4.13.2")
    assert classified.classifier == "jpms"
    assert classified.version == "5.13.0"


def test_parse_strips_whitespace():
    assert parse(" org.example : demo : 1.0 ").notation == "org.example:demo:jar:1.0"


@pytest.mark.parametrize("coordinate", [
    Coordinate("org.example", "demo", "jar", "1.0"),
    Coordinate("org.example", "demo", "pom", "2.0-SNAPSHOT"),
    Coordinate("org.example", "demo", "jar", "1.0", "sources"),
    Coordinate("a.b.c", "x-y_z", "test-jar", "1.0.0.RELEASE", "tests"),
])
def test_round_trip(coordinate):
    assert parse(format(coordinate)) == coordinate


@pytest.mark.parametrize("text", [
    "",
    "org.example",
    "org.example:demo",
    "a:b:c:d:e:f",
    ":demo:1.0",
    "org.example::1.0",
    "org.example:demo:",
    "org.example:demo::1.0",
])
def test_parse_rejects_malformed_notation(text):
    with pytest.raises(NotationError):
        parse(text)


def test_notation_error_is_value_error():
    with pytest.raises(ValueError):
        parse("bad")


def test_coerce_passes_coordinates_through():
    coordinate = Coordinate("g", "a", "jar", "1")

    assert coerce(coordinate) is coordinate
    assert coerce("g:a:1") == coordinate


def test_identity_key_excludes_version():
    first = parse("g:a:jar:1.0")
    second = parse("g:a:jar:2.0")

    assert first.key == second.key
    assert parse("g:a:jar:sources:1.0").key != first.key
    assert first.with_version("2.0") == second


def test_scope_parse():
    assert Scope.parse("RUNTIME") is Scope.RUNTIME
    assert Scope.parse(None) is Scope.COMPILE
    assert Scope.parse(Scope.TEST) is Scope.TEST
    with pytest.raises(NotationError):
        Scope.parse("bogus")
