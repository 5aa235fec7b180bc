"""
Reader for the subset of ZON (Zig Object Notation) used by overlay files.

Supported: structs ``.{ .key = value }``, tuples ``.{ a, b }``, strings,
integers (decimal, hex, octal, binary, ``_`` separators), floats, ``true``,
``false``, ``null``, enum literals ``.name`` and ``//`` comments. Structs load
as dicts, tuples as lists and enum literals as plain strings.
"""

from pathlib import Path
from typing import Any, Dict, List, Union

_ESCAPES = {
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "\\": "\\",
    "'": "'",
    '"': '"',
}

_DIGIT_CHARS = frozenset("0123456789abcdefABCDEF_xob.+-eEpP")


class ZonError(ValueError):
    """Raised when a ZON document cannot be parsed."""

    def __init__(self, message: str, line: int, column: int):
        super().__init__(f"{line}:{column}: {message}")
        self.line = line
        self.column = column


class _Parser:
    def __init__(self, text: str):
        self.text = text
        self.pos = 0

    def error(self, message: str) -> ZonError:
        line = self.text.count("\n", 0, self.pos) + 1
        column = self.pos - (self.text.rfind("\n", 0, self.pos) + 1) + 1
        return ZonError(message, line, column)

    def peek(self) -> str:
        return self.text[self.pos:self.pos + 1]

    def skip_trivia(self) -> None:
        while self.pos < len(self.text):
            char = self.text[self.pos]
            if char.isspace():
                self.pos += 1
            elif self.text.startswith("//", self.pos):
                end = self.text.find("\n", self.pos)
                self.pos = len(self.text) if end < 0 else end + 1
            else:
                break

    def expect(self, token: str) -> None:
        self.skip_trivia()
        if not self.text.startswith(token, self.pos):
            raise self.error(f"expected {token!r}")
        self.pos += len(token)

    def parse_document(self) -> Any:
        value = self.parse_value()
        self.skip_trivia()
        if self.pos != len(self.text):
            raise self.error("unexpected trailing content")
        return value

    def parse_value(self) -> Any:
        self.skip_trivia()
        char = self.peek()
        if not char:
            raise self.error("unexpected end of input")
        if self.text.startswith(".{", self.pos):
            return self.parse_container()
        if char == ".":
            self.pos += 1
            return self.parse_identifier()
        if char == '"':
            return self.parse_string()
        if char == "'":
            return self.parse_char()
        if char == "-" or char.isdigit():
            return self.parse_number()
        if char.isalpha() or char == "_":
            word = self.parse_identifier()
            if word == "true":
                return True
            if word == "false":
                return False
            if word == "null":
                return None
            raise self.error(f"unknown keyword {word!r}")
        raise self.error(f"unexpected character {char!r}")

    def parse_container(self) -> Union[Dict[str, Any], List[Any]]:
        self.pos += 2
        self.skip_trivia()
        if self.peek() == "}":
            self.pos += 1
            return {}

        if self.at_field():
            return self.parse_struct_body()

        items: List[Any] = []
        while True:
            items.append(self.parse_value())
            if self.end_of_list():
                return items

    def at_field(self) -> bool:
        """Look ahead for ``.name =``, which starts a struct rather than a tuple of enum literals."""
        if self.peek() != "." or self.text.startswith(".{", self.pos):
            return False
        start = self.pos
        try:
            self.pos += 1
            self.parse_identifier()
            self.skip_trivia()
            return self.peek() == "=" and not self.text.startswith("==", self.pos)
        except ZonError:
            return False
        finally:
            self.pos = start

    def parse_struct_body(self) -> Dict[str, Any]:
        fields: Dict[str, Any] = {}
        while True:
            self.expect(".")
            name = self.parse_identifier()
            if name in fields:
                raise self.error(f"duplicate field {name!r}")
            self.expect("=")
            fields[name] = self.parse_value()
            if self.end_of_list():
                return fields

    def end_of_list(self) -> bool:
        """Consume a separator and report whether the closing brace was reached."""
        self.skip_trivia()
        if self.peek() == "}":
            self.pos += 1
            return True
        self.expect(",")
        self.skip_trivia()
        if self.peek() == "}":
            self.pos += 1
            return True
        return False

    def parse_identifier(self) -> str:
        if self.text.startswith('@"', self.pos):
            self.pos += 1
            return self.parse_string()
        start = self.pos
        while self.pos < len(self.text) and (self.text[self.pos].isalnum() or self.text[self.pos] == "_"):
            self.pos += 1
        if start == self.pos:
            raise self.error("expected identifier")
        return self.text[start:self.pos]

    def parse_string(self) -> str:
        self.pos += 1
        chars: List[str] = []
        while True:
            if self.pos >= len(self.text) or self.text[self.pos] == "\n":
                raise self.error("unterminated string")
            char = self.text[self.pos]
            if char == '"':
                self.pos += 1
                return "".join(chars)
            if char == "\\":
                chars.append(self.parse_escape())
            else:
                chars.append(char)
                self.pos += 1

    def parse_char(self) -> int:
        self.pos += 1
        if self.peek() == "\\":
            value = self.parse_escape()
        else:
            value = self.peek()
            self.pos += 1
        if self.peek() != "'":
            raise self.error("unterminated character literal")
        self.pos += 1
        return ord(value)

    def parse_escape(self) -> str:
        self.pos += 1
        char = self.peek()
        if char in _ESCAPES:
            self.pos += 1
            return _ESCAPES[char]
        if char == "x":
            digits = self.text[self.pos + 1:self.pos + 3]
            self.pos += 3
            try:
                return chr(int(digits, 16))
            except ValueError:
                raise self.error(f"invalid hex escape {digits!r}")
        if char == "u" and self.text.startswith("u{", self.pos):
            end = self.text.find("}", self.pos)
            if end < 0:
                raise self.error("unterminated unicode escape")
            digits = self.text[self.pos + 2:end]
            self.pos = end + 1
            try:
                return chr(int(digits, 16))
            except ValueError:
                raise self.error(f"invalid unicode escape {digits!r}")
        raise self.error(f"invalid escape sequence \\{char}")

    def parse_number(self) -> Union[int, float]:
        start = self.pos
        if self.peek() == "-":
            self.pos += 1
        while self.pos < len(self.text) and self.text[self.pos] in _DIGIT_CHARS:
            # A sign is only part of the literal right after an exponent marker
            if self.text[self.pos] in "+-" and self.text[self.pos - 1] not in "eEpP":
                break
            self.pos += 1
        literal = self.text[start:self.pos].replace("_", "")
        body = literal.lstrip("-").lower()
        try:
            if body.startswith(("0x", "0o", "0b")):
                if body.startswith("0x") and ("." in body or "p" in body):
                    return float.fromhex(literal)
                return int(literal, 0)
            if "." in body or "e" in body:
                return float(literal)
            return int(literal, 10)
        except ValueError:
            raise self.error(f"invalid number literal {literal!r}")


def loads(text: str) -> Any:
    """Parse a ZON document from a string."""
    return _Parser(text).parse_document()


def load(path: Union[str, Path]) -> Any:
    """Parse a ZON document from a file."""
    with open(path, "r", encoding="utf-8") as f:
        return loads(f.read())
