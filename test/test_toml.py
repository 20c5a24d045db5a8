"""
Tests for the TOML layer.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Annotated

import tomlkit
from pytest import raises

from configcraft.exceptions import ConfigurationError
from configcraft.markers import Comment
from configcraft.properties import ConfigurationProperties, NameFormatters
from configcraft.toml import dumps, loads


@dataclass
class Endpoint:
    url: str = ""
    weight: int = 1


@dataclass
class Logging:
    level: Annotated[str, Comment("One of DEBUG, INFO, WARNING")] = "INFO"
    file: str | None = None


@dataclass
class ServiceConfig:
    name: Annotated[str, Comment("Name of the service")] = "service"
    max_connections: int = 10
    started: date = date(2024, 1, 1)
    tags: list[str] = field(default_factory=lambda: ["a", "b"])
    logging: Annotated[Logging, Comment("Logging settings")] = field(
        default_factory=Logging
    )
    endpoints: list[Endpoint] = field(default_factory=list)


def test_round_trip():
    """
    Test TOML text is read back to an equal object.
    """
    config = ServiceConfig(
        name="api",
        logging=Logging(level="DEBUG", file="api.log"),
        endpoints=[Endpoint("http://a", 2), Endpoint("http://b")],
    )
    text = dumps(config)
    assert loads(text, ServiceConfig) == config


def test_layout():
    """
    Test plain values come before tables and comments are written above keys.
    """
    text = dumps(ServiceConfig(endpoints=[Endpoint("http://a")]))
    lines = text.splitlines()

    assert lines[0] == "# Name of the service"
    assert lines[1] == 'name = "service"'
    assert 'started = "2024-01-01"' in lines
    assert lines.index('tags = ["a", "b"]') < lines.index("[logging]")

    # table comments directly precede the header, after a separating blank line
    header_index = lines.index("[logging]")
    assert lines[header_index - 2 : header_index] == ["", "# Logging settings"]
    assert "# One of DEBUG, INFO, WARNING" in lines
    assert "[[endpoints]]" in lines

    # None is omitted
    assert "file" not in text

    # parses as TOML with the expected structure
    document = tomlkit.loads(text).unwrap()
    assert document["logging"] == {"level": "INFO"}
    assert document["endpoints"] == [{"url": "http://a", "weight": 1}]


def test_table_comments():
    """
    Test comments of tables holding only other tables and of arrays of tables are
    written directly above their headers.
    """

    @dataclass
    class Nested:
        logging: Annotated[Logging, Comment("Nested logging")] = field(
            default_factory=Logging
        )

    @dataclass
    class Outer:
        nested: Annotated[Nested, Comment("Only holds tables")] = field(
            default_factory=Nested
        )
        endpoints: Annotated[list[Endpoint], Comment("Endpoints to call")] = field(
            default_factory=lambda: [Endpoint("http://a")]
        )

    text = dumps(Outer())
    lines = text.splitlines()
    assert lines[:6] == [
        "# Only holds tables",
        "[nested]",
        "# Nested logging",
        "[nested.logging]",
        "# One of DEBUG, INFO, WARNING",
        'level = "INFO"',
    ]

    header_index = lines.index("[[endpoints]]")
    assert lines[header_index - 2 : header_index] == ["", "# Endpoints to call"]

    assert loads(text, Outer) == Outer()


def test_name_formatter():
    """
    Test keys are formatted when writing and reading.
    """
    properties = ConfigurationProperties(name_formatter=NameFormatters.LOWER_KEBAB)
    text = dumps(ServiceConfig(max_connections=3), properties)
    assert "max-connections = 3" in text.splitlines()
    assert loads(text, ServiceConfig, properties).max_connections == 3


def test_partial():
    """
    Test missing keys take default values.
    """
    config = loads('name = "x"\n[logging]\nfile = "x.log"\n', ServiceConfig)
    assert config == ServiceConfig(name="x", logging=Logging(file="x.log"))


def test_errors():
    """
    Test invalid TOML and values TOML can't represent.
    """
    with raises(ConfigurationError, match="Invalid TOML"):
        _ = loads("name = ", ServiceConfig)

    with raises(ConfigurationError, match="cannot represent null values"):
        _ = dumps(
            ServiceConfig(logging=Logging(file=None)),
            ConfigurationProperties(output_nulls=True),
        )

    @dataclass
    class WithSet:
        ids: set[int] = field(default_factory=lambda: {1})

    with raises(ConfigurationError, match="cannot represent sets"):
        _ = dumps(WithSet(), ConfigurationProperties(serialize_sets_as_lists=False))

    with raises(ConfigurationError, match="Deserialization of value"):
        _ = loads("max_connections = 'many'", ServiceConfig)
