"""Key-value codec for frontmatter bodies.

The manager in ``meta.tools`` only strips and re-adds the ``---``
delimiters; decoding, dotted-path access and re-encoding happen here. The
YAML adapter goes through python-frontmatter's YAML handler with loader and
dumper variants limited to the YAML 1.2 core schema. Timestamps, ``yes`` and
``off`` style words, sexagesimal and leading-zero numbers stay plain strings,
so values such as ``created: 2025-01-01T10:00:00+00:00`` or ``duration: 1:30``
survive a rewrite of another key unchanged.
"""

import re
from typing import Any, Protocol

import yaml
from frontmatter.default_handlers import YAMLHandler

from mdsurgeon.dependencies import CodecError

_YAML_11_TAGS = {
    "tag:yaml.org,2002:bool",
    "tag:yaml.org,2002:int",
    "tag:yaml.org,2002:float",
    "tag:yaml.org,2002:timestamp",
}

CORE_RESOLVERS = [
    ("tag:yaml.org,2002:bool", re.compile(r"^(?:true|false)$", re.I), list("tTfF")),
    (
        "tag:yaml.org,2002:int",
        re.compile(r"^(?:[-+]?(?:0|[1-9][0-9]*)|0x[0-9a-fA-F]+)$"),
        list("-+0123456789"),
    ),
    (
        "tag:yaml.org,2002:float",
        re.compile(
            r"""^(?:[-+]?(?:[0-9]+\.[0-9]*|\.[0-9]+)(?:[eE][-+]?[0-9]+)?
            |[-+]?[0-9]+[eE][-+]?[0-9]+
            |[-+]?\.(?:inf|Inf|INF)
            |\.(?:nan|NaN|NAN))$""",
            re.X,
        ),
        list("-+.0123456789"),
    ),
]


def _use_core_schema(cls: type) -> None:
    """Replace the YAML 1.1 scalar resolvers of a loader or dumper class."""
    cls.yaml_implicit_resolvers = {
        first: [(tag, regexp) for tag, regexp in entries if tag not in _YAML_11_TAGS]
        for first, entries in cls.yaml_implicit_resolvers.items()
    }
    for tag, regexp, first in CORE_RESOLVERS:
        cls.add_implicit_resolver(tag, regexp, first)


class CoreSchemaLoader(yaml.SafeLoader):
    """SafeLoader that types plain scalars the way a YAML 1.2 parser does."""


class CoreSchemaDumper(yaml.SafeDumper):
    """SafeDumper that quotes only strings a YAML 1.2 parser would retype."""


_use_core_schema(CoreSchemaLoader)
_use_core_schema(CoreSchemaDumper)


class MetadataCodec(Protocol):
    """Key-value codec port used by the frontmatter manager."""

    def parse(self, text: str) -> dict[str, Any]: ...

    def stringify(self, data: dict[str, Any]) -> str: ...

    def load_value(self, text: str) -> Any: ...

    def get_path(self, data: Any, path: str) -> Any: ...

    def set_path(self, data: dict[str, Any], path: str, value: Any) -> None: ...

    def delete_path(self, data: dict[str, Any], path: str) -> bool: ...

    def format_value(self, value: Any) -> str: ...


class YamlMetadataCodec:
    """MetadataCodec backed by YAML."""

    def __init__(self) -> None:
        self._handler = YAMLHandler()

    def _load(self, text: str) -> Any:
        return self._handler.load(text, Loader=CoreSchemaLoader)

    def _dump(self, value: Any) -> str:
        return self._handler.export(
            value, Dumper=CoreSchemaDumper, sort_keys=False, width=float("inf")
        )

    def parse(self, text: str) -> dict[str, Any]:
        """Decode a frontmatter body.

        Args:
            text: YAML text without ``---`` delimiters

        Returns:
            Mapping of keys to values; empty for blank text

        Raises:
            CodecError: If the text is not valid YAML or not a mapping
        """
        if not text.strip():
            return {}
        try:
            data = self._load(text)
        except yaml.YAMLError as e:
            raise CodecError(f"Invalid frontmatter: {e}")
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise CodecError("Invalid frontmatter: expected a mapping of keys to values")
        return data

    def stringify(self, data: dict[str, Any]) -> str:
        """Encode a mapping as block YAML, keeping key order."""
        if not data:
            return ""
        return self._dump(data)

    def load_value(self, text: str) -> Any:
        """Interpret a value given on the command line.

        Numbers, booleans, flow lists and mappings become typed values.
        Anything that fails to parse, is null, or is an empty collection stays
        the original string.

        Examples:
            >>> YamlMetadataCodec().load_value("42")
            42
            >>> YamlMetadataCodec().load_value("[a, b]")
            ['a', 'b']
            >>> YamlMetadataCodec().load_value("hello: [")
            'hello: ['
        """
        try:
            value = self._load(text)
        except yaml.YAMLError:
            return text
        if value is None or (isinstance(value, (dict, list)) and not value):
            return text
        return value

    def get_path(self, data: Any, path: str) -> Any:
        """Read a dotted path such as ``author.name`` or ``tags.0``.

        Returns:
            The value, or None when any segment is missing
        """
        current = data
        for part in path.split("."):
            if isinstance(current, dict):
                current = current.get(part)
            elif isinstance(current, list) and part.isdigit() and int(part) < len(current):
                current = current[int(part)]
            else:
                return None
        return current

    def set_path(self, data: dict[str, Any], path: str, value: Any) -> None:
        """Write a dotted path, creating intermediate containers.

        A missing container becomes a list when the following segment is
        numeric and a mapping otherwise.
        """
        parts = path.split(".")
        current: Any = data
        for part, next_part in zip(parts, parts[1:]):
            child = self._child(current, part)
            if not isinstance(child, (dict, list)):
                child = [] if next_part.isdigit() else {}
                self._assign(current, part, child)
            current = child
        self._assign(current, parts[-1], value)

    def delete_path(self, data: dict[str, Any], path: str) -> bool:
        """Delete a dotted path.

        Returns:
            True if something was removed, False if the path did not exist
        """
        parts = path.split(".")
        current: Any = data
        for part in parts[:-1]:
            current = self._child(current, part)
            if not isinstance(current, (dict, list)):
                return False

        last = parts[-1]
        if isinstance(current, dict) and last in current:
            del current[last]
            return True
        if isinstance(current, list) and last.isdigit() and int(last) < len(current):
            del current[int(last)]
            return True
        return False

    def format_value(self, value: Any) -> str:
        """Render a value for text output.

        Strings print as themselves, scalars via their YAML spelling, lists
        and mappings as block YAML. None renders as an empty string.
        """
        if value is None:
            return ""
        if isinstance(value, str):
            return value
        if isinstance(value, bool):
            return "true" if value else "false"
        if not isinstance(value, (dict, list)):
            return str(value)
        return self._dump(value)

    @staticmethod
    def _child(container: Any, part: str) -> Any:
        if isinstance(container, dict):
            return container.get(part)
        if isinstance(container, list) and part.isdigit() and int(part) < len(container):
            return container[int(part)]
        return None

    @staticmethod
    def _assign(container: Any, part: str, value: Any) -> None:
        if isinstance(container, list):
            if not part.isdigit():
                raise CodecError(f"Cannot use key '{part}' on a list")
            index = int(part)
            if index < len(container):
                container[index] = value
            else:
                container.extend([None] * (index - len(container)))
                container.append(value)
        else:
            container[part] = value


default_codec = YamlMetadataCodec()
