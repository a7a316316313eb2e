"""Recover a literal ``frontmatter`` object from a script file without running it.

Two stages:

- a lexical scan that finds the first top-level ``const|let|var frontmatter``
  declaration and the balanced ``{ ... }`` of its initializer, ignoring braces
  inside strings (``'``, ``"`` and backtick) and comments;
- a small parser/evaluator for literal expressions. Supported node kinds are
  literals, negated numbers, arrays, objects with identifier or string keys,
  and backtick strings without ``${}``. Anything else evaluates to
  ``UNDEFINED`` and is dropped, so one function-valued property does not cost
  the whole record.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

DECLARATION_NAME = "frontmatter"
DECLARATION_KEYWORDS = frozenset({"const", "let", "var"})
QUOTES = ("'", '"', "`")


class ScriptParseError(ValueError):
    """The captured literal is not a well-formed expression."""


class _Undefined:
    _instance: _Undefined | None = None

    def __new__(cls) -> _Undefined:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNDEFINED"

    def __bool__(self) -> bool:
        return False


UNDEFINED = _Undefined()


# ---------------------------------------------------------------------------
# Lexical scan
# ---------------------------------------------------------------------------


def _is_ident_start(ch: str) -> bool:
    return ch.isalpha() or ch in "_$"


def _is_ident_char(ch: str) -> bool:
    return ch.isalnum() or ch in "_$"


def _read_ident(source: str, start: int) -> int:
    end = start
    while end < len(source) and _is_ident_char(source[end]):
        end += 1
    return end


def _skip_string(source: str, start: int) -> int | None:
    """Index just past the string opened at ``start``; ``None`` if it never closes."""
    quote = source[start]
    idx = start + 1
    while idx < len(source):
        ch = source[idx]
        if ch == "\\":
            idx += 2
            continue
        if ch == quote:
            return idx + 1
        idx += 1
    return None


def _skip_trivia(source: str, idx: int) -> int | None:
    """Skip a string or comment starting at ``idx``.

    Returns ``idx`` unchanged when neither starts there, and ``None`` when one
    starts but is never terminated.
    """
    ch = source[idx]
    if ch in QUOTES:
        return _skip_string(source, idx)
    if source.startswith("//", idx):
        newline = source.find("\n", idx)
        return len(source) if newline == -1 else newline + 1
    if source.startswith("/*", idx):
        end = source.find("*/", idx + 2)
        return None if end == -1 else end + 2
    return idx


def _skip_blank(source: str, idx: int) -> int | None:
    """Skip whitespace and comments (but not strings)."""
    while idx < len(source):
        if source[idx].isspace():
            idx += 1
            continue
        if source.startswith("//", idx) or source.startswith("/*", idx):
            nxt = _skip_trivia(source, idx)
            if nxt is None:
                return None
            idx = nxt
            continue
        break
    return idx


def _find_initializer(source: str, start: int) -> int | None:
    """Position of the ``=`` after a declared name, skipping a type annotation."""
    depth = 0
    idx = start
    while idx < len(source):
        nxt = _skip_trivia(source, idx)
        if nxt is None:
            return None
        if nxt != idx:
            idx = nxt
            continue
        ch = source[idx]
        if ch in "{([<":
            depth += 1
        elif ch in "})]>":
            depth = max(0, depth - 1)
        elif depth == 0 and ch == ";":
            return None
        elif depth == 0 and ch == "=":
            following = source[idx + 1 : idx + 2]
            if following not in ("=", ">"):
                return idx
        idx += 1
    return None


def find_declaration(source: str, name: str = DECLARATION_NAME) -> int | None:
    """Index of the ``=`` of the first top-level ``const|let|var <name>`` declaration."""
    depth = 0
    idx = 0
    while idx < len(source):
        nxt = _skip_trivia(source, idx)
        if nxt is None:
            return None
        if nxt != idx:
            idx = nxt
            continue

        ch = source[idx]
        if ch in "{([":
            depth += 1
        elif ch in "})]":
            depth = max(0, depth - 1)
        elif depth == 0 and _is_ident_start(ch) and (idx == 0 or not _is_ident_char(source[idx - 1])):
            word_end = _read_ident(source, idx)
            if source[idx:word_end] in DECLARATION_KEYWORDS:
                name_start = _skip_blank(source, word_end)
                if name_start is not None:
                    name_end = _read_ident(source, name_start)
                    if source[name_start:name_end] == name:
                        equals = _find_initializer(source, name_end)
                        if equals is not None:
                            return equals
            idx = word_end
            continue
        idx += 1
    return None


def match_brace(source: str, open_idx: int) -> int | None:
    """Index of the ``}`` balancing the ``{`` at ``open_idx``; ``None`` if unbalanced."""
    depth = 0
    idx = open_idx
    while idx < len(source):
        nxt = _skip_trivia(source, idx)
        if nxt is None:
            return None
        if nxt != idx:
            idx = nxt
            continue
        ch = source[idx]
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return idx
        idx += 1
    return None


def find_literal_source(source: str, name: str = DECLARATION_NAME) -> str | None:
    """Source text of the object literal assigned to ``name``, braces included."""
    equals = find_declaration(source, name)
    if equals is None:
        return None

    idx = equals + 1
    while idx < len(source):
        nxt = _skip_trivia(source, idx)
        if nxt is None:
            return None
        if nxt != idx:
            idx = nxt
            continue
        ch = source[idx]
        if ch == ";":
            return None
        if ch == "{":
            close = match_brace(source, idx)
            if close is None:
                return None
            return source[idx : close + 1]
        idx += 1
    return None


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------

_NUMBER_RE = re.compile(
    r"(?:0[xX][0-9a-fA-F_]+|0[bB][01_]+|0[oO][0-7_]+"
    r"|(?:\d[\d_]*(?:\.[\d_]*)?|\.\d[\d_]*)(?:[eE][+-]?\d+)?)n?"
)
_SIMPLE_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "b": "\b",
    "f": "\f",
    "v": "\v",
    "0": "\0",
}
_PUNCTUATION = frozenset("{}[](),:;")


@dataclass(frozen=True)
class Token:
    kind: str  # "punct" | "op" | "string" | "template" | "number" | "ident" | "eof"
    value: object
    pos: int
    substitutions: bool = False


def decode_escapes(body: str) -> str:
    """Resolve JS escape sequences inside a string or template body."""
    if "\\" not in body:
        return body
    out: list[str] = []
    idx = 0
    while idx < len(body):
        ch = body[idx]
        if ch != "\\" or idx + 1 >= len(body):
            out.append(ch)
            idx += 1
            continue
        esc = body[idx + 1]
        idx += 2
        if esc in _SIMPLE_ESCAPES:
            out.append(_SIMPLE_ESCAPES[esc])
        elif esc == "\r":
            if body[idx : idx + 1] == "\n":
                idx += 1
        elif esc in "\n\u2028\u2029":
            pass
        elif esc == "x" and re.fullmatch(r"[0-9a-fA-F]{2}", body[idx : idx + 2]):
            out.append(chr(int(body[idx : idx + 2], 16)))
            idx += 2
        elif esc == "u" and body[idx : idx + 1] == "{":
            close = body.find("}", idx)
            digits = body[idx + 1 : close] if close != -1 else ""
            if digits and re.fullmatch(r"[0-9a-fA-F]{1,6}", digits) and int(digits, 16) <= 0x10FFFF:
                out.append(chr(int(digits, 16)))
                idx = close + 1
            else:
                out.append("u")
        elif esc == "u" and re.fullmatch(r"[0-9a-fA-F]{4}", body[idx : idx + 4]):
            out.append(chr(int(body[idx : idx + 4], 16)))
            idx += 4
        else:
            out.append(esc)
    return "".join(out)


def _number_value(text: str) -> int | float:
    cleaned = text.replace("_", "").rstrip("n")
    lowered = cleaned.lower()
    if lowered[:2] in ("0x", "0b", "0o") and len(cleaned) == 2:
        raise ScriptParseError(f"number without digits: {text!r}")
    if lowered.startswith("0x"):
        return int(cleaned[2:], 16)
    if lowered.startswith("0b"):
        return int(cleaned[2:], 2)
    if lowered.startswith("0o"):
        return int(cleaned[2:], 8)
    if any(marker in lowered for marker in (".", "e")):
        return float(cleaned)
    return int(cleaned)


def tokenize(text: str) -> list[Token]:
    tokens: list[Token] = []
    idx = 0
    while idx < len(text):
        ch = text[idx]
        if ch.isspace():
            idx += 1
            continue
        if text.startswith("//", idx) or text.startswith("/*", idx):
            nxt = _skip_trivia(text, idx)
            if nxt is None:
                raise ScriptParseError(f"unterminated comment at {idx}")
            idx = nxt
            continue
        if ch in QUOTES:
            end = _skip_string(text, idx)
            if end is None:
                raise ScriptParseError(f"unterminated string at {idx}")
            body = text[idx + 1 : end - 1]
            if ch == "`":
                has_subst = re.search(r"(?<!\\)(?:\\\\)*\$\{", body) is not None
                tokens.append(Token("template", decode_escapes(body), idx, substitutions=has_subst))
            else:
                tokens.append(Token("string", decode_escapes(body), idx))
            idx = end
            continue
        if ch.isdigit() or (ch == "." and text[idx + 1 : idx + 2].isdigit()):
            match = _NUMBER_RE.match(text, idx)
            if match is None:
                raise ScriptParseError(f"bad number at {idx}")
            tokens.append(Token("number", _number_value(match.group(0)), idx))
            idx = match.end()
            continue
        if _is_ident_start(ch):
            end = _read_ident(text, idx)
            tokens.append(Token("ident", text[idx:end], idx))
            idx = end
            continue
        if text.startswith("...", idx):
            tokens.append(Token("op", "...", idx))
            idx += 3
            continue
        if text.startswith("=>", idx):
            tokens.append(Token("op", "=>", idx))
            idx += 2
            continue
        kind = "punct" if ch in _PUNCTUATION else "op"
        tokens.append(Token(kind, ch, idx))
        idx += 1
    tokens.append(Token("eof", None, len(text)))
    return tokens


# ---------------------------------------------------------------------------
# Syntax tree
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Literal:
    value: object


@dataclass(frozen=True)
class TemplateNoSubst:
    text: str


@dataclass(frozen=True)
class UnaryNegNumber:
    value: int | float


@dataclass(frozen=True)
class ArrayExpr:
    elements: tuple["Node", ...]


@dataclass(frozen=True)
class ObjectExpr:
    properties: tuple[tuple[str, "Node"], ...]


@dataclass(frozen=True)
class Unsupported:
    reason: str


Node = Literal | TemplateNoSubst | UnaryNegNumber | ArrayExpr | ObjectExpr | Unsupported

_KEYWORD_LITERALS: dict[str, object] = {"true": True, "false": False, "null": None}
_OPENERS = {"{": "}", "[": "]", "(": ")"}


class _Parser:
    def __init__(self, tokens: list[Token]) -> None:
        self._tokens = tokens
        self._pos = 0

    def peek(self, offset: int = 0) -> Token:
        return self._tokens[min(self._pos + offset, len(self._tokens) - 1)]

    def advance(self) -> Token:
        token = self.peek()
        if token.kind != "eof":
            self._pos += 1
        return token

    def at(self, value: str) -> bool:
        token = self.peek()
        return token.kind in ("punct", "op") and token.value == value

    def expect(self, value: str) -> Token:
        if not self.at(value):
            token = self.peek()
            raise ScriptParseError(f"expected {value!r} at {token.pos}, found {token.value!r}")
        return self.advance()

    def at_end(self) -> bool:
        return self.peek().kind == "eof"

    def at_terminator(self) -> bool:
        return self.at_end() or self.at(",") or self.at("}") or self.at("]")

    def skip_expression(self) -> None:
        """Consume tokens up to the next ``,``, ``}`` or ``]`` at this nesting level."""
        closers: list[str] = []
        while not self.at_end():
            token = self.peek()
            if not closers and self.at_terminator():
                return
            if token.kind == "punct" and token.value in _OPENERS:
                closers.append(_OPENERS[token.value])
            elif token.kind == "punct" and token.value in ("}", "]", ")"):
                if not closers or closers[-1] != token.value:
                    raise ScriptParseError(f"unbalanced {token.value!r} at {token.pos}")
                closers.pop()
            self.advance()
        if closers:
            raise ScriptParseError("unexpected end of literal")

    def parse_value(self) -> Node:
        node = self._parse_primary()
        if not self.at_terminator():
            self.skip_expression()
            return Unsupported("compound expression")
        return node

    def _parse_primary(self) -> Node:
        token = self.peek()
        if self.at("{"):
            return self.parse_object()
        if self.at("["):
            return self.parse_array()
        if token.kind == "string":
            self.advance()
            return Literal(token.value)
        if token.kind == "template":
            self.advance()
            if token.substitutions:
                return Unsupported("template with substitutions")
            return TemplateNoSubst(str(token.value))
        if token.kind == "number":
            self.advance()
            return Literal(token.value)
        if token.kind == "ident" and token.value in _KEYWORD_LITERALS:
            self.advance()
            return Literal(_KEYWORD_LITERALS[str(token.value)])
        if self.at("-") and self.peek(1).kind == "number":
            self.advance()
            number = self.advance()
            return UnaryNegNumber(number.value)  # type: ignore[arg-type]
        if token.kind == "eof":
            raise ScriptParseError("unexpected end of literal")
        self.skip_expression()
        return Unsupported(f"unsupported expression at {token.pos}")

    def parse_array(self) -> ArrayExpr:
        self.expect("[")
        elements: list[Node] = []
        while not self.at("]"):
            if self.at_end():
                raise ScriptParseError("unterminated array")
            if self.at(","):
                self.advance()
                elements.append(Unsupported("array hole"))
                continue
            if self.at("..."):
                self.skip_expression()
                elements.append(Unsupported("spread element"))
            else:
                elements.append(self.parse_value())
            if not self.at("]"):
                self.expect(",")
        self.expect("]")
        return ArrayExpr(tuple(elements))

    def _property_key(self) -> str | None:
        token = self.peek()
        if token.kind in ("ident", "string"):
            self.advance()
            return str(token.value)
        return None

    def parse_object(self) -> ObjectExpr:
        self.expect("{")
        properties: list[tuple[str, Node]] = []
        while not self.at("}"):
            if self.at_end():
                raise ScriptParseError("unterminated object")
            key = None if self.at("...") else self._property_key()
            if key is not None and self.at(":"):
                self.advance()
                properties.append((key, self.parse_value()))
            elif key is not None and (self.at(",") or self.at("}")):
                properties.append((key, Unsupported("shorthand property")))
            else:
                # Computed keys, spreads, methods and accessors are skipped whole.
                self.skip_expression()
            if not self.at("}"):
                self.expect(",")
        self.expect("}")
        return ObjectExpr(tuple(properties))


def parse_expression(text: str) -> Node:
    parser = _Parser(tokenize(text))
    node = parser.parse_value()
    if not parser.at_end():
        token = parser.peek()
        raise ScriptParseError(f"trailing input at {token.pos}")
    return node


def evaluate(node: Node) -> object:
    """Value of a literal node; ``UNDEFINED`` for unsupported nodes."""
    if isinstance(node, Literal):
        return node.value
    if isinstance(node, TemplateNoSubst):
        return node.text
    if isinstance(node, UnaryNegNumber):
        return -node.value
    if isinstance(node, ArrayExpr):
        items: list[object] = []
        for element in node.elements:
            value = evaluate(element)
            items.append(None if value is UNDEFINED else value)
        return items
    if isinstance(node, ObjectExpr):
        out: dict[str, object] = {}
        for key, value_node in node.properties:
            value = evaluate(value_node)
            if value is UNDEFINED:
                out.pop(key, None)
                continue
            out[key] = value
        return out
    return UNDEFINED


def parse_object_literal(text: str) -> dict[str, object] | None:
    """Evaluate ``text`` as an object literal; ``None`` when it is anything else."""
    node = parse_expression(text)
    if not isinstance(node, ObjectExpr):
        return None
    value = evaluate(node)
    return value if isinstance(value, dict) else None


def extract_script_frontmatter(source: str, name: str = DECLARATION_NAME) -> dict[str, object]:
    """Literal ``frontmatter`` object of a script, or ``{}`` when absent or malformed."""
    literal = find_literal_source(source, name)
    if literal is None:
        return {}
    try:
        parsed = parse_object_literal(literal)
    except ScriptParseError:
        return {}
    return parsed or {}


__all__ = [
    "DECLARATION_NAME",
    "UNDEFINED",
    "ScriptParseError",
    "Token",
    "Literal",
    "TemplateNoSubst",
    "UnaryNegNumber",
    "ArrayExpr",
    "ObjectExpr",
    "Unsupported",
    "find_declaration",
    "match_brace",
    "find_literal_source",
    "decode_escapes",
    "tokenize",
    "parse_expression",
    "evaluate",
    "parse_object_literal",
    "extract_script_frontmatter",
]
