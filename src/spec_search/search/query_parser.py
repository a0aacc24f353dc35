"""Advanced query syntax: boolean operators, phrases and field filters.

Supported syntax:
- Implicit or explicit AND: ``api auth``, ``api AND auth``
- OR / NOT: ``frontend OR backend``, ``dashboard NOT deprecated``
- Grouping: ``(api OR cli) NOT legacy``
- Quoted phrases: ``"token refresh"``
- Field filters: ``status:planned``, ``tag:api``, ``priority:high``,
  ``title:dashboard``, ``name:oauth``

Parsing never raises: malformed input yields a best-effort AST plus a list
of human-readable errors.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum

from spec_search.domain.search import Document
from spec_search.search.matching import contains_all_terms


SUPPORTED_FIELDS = frozenset({"status", "tag", "tags", "priority", "title", "name"})
_OPERATORS = {"AND", "OR", "NOT"}
_WORD_DELIMITERS = frozenset('()"')


class TokenType(str, Enum):
    TERM = "TERM"
    PHRASE = "PHRASE"
    FIELD = "FIELD"
    AND = "AND"
    OR = "OR"
    NOT = "NOT"
    LPAREN = "LPAREN"
    RPAREN = "RPAREN"
    EOF = "EOF"


class NodeType(str, Enum):
    AND = "AND"
    OR = "OR"
    NOT = "NOT"
    TERM = "TERM"
    PHRASE = "PHRASE"
    FIELD = "FIELD"


@dataclass(frozen=True)
class Token:
    type: TokenType
    value: str
    position: int


@dataclass(frozen=True)
class QueryNode:
    """AST node. NOT uses ``left`` only; FIELD carries ``field`` and ``value``."""

    type: NodeType
    value: str | None = None
    field: str | None = None
    left: QueryNode | None = None
    right: QueryNode | None = None

    def walk(self, *, skip_negated: bool = False) -> Iterator[QueryNode]:
        if skip_negated and self.type is NodeType.NOT:
            return
        yield self
        for child in (self.left, self.right):
            if child is not None:
                yield from child.walk(skip_negated=skip_negated)


@dataclass(frozen=True)
class FieldFilter:
    field: str
    value: str


@dataclass(frozen=True)
class ParsedQuery:
    """Structured form of a query string."""

    ast: QueryNode | None
    terms: list[str] = field(default_factory=list)
    fields: list[FieldFilter] = field(default_factory=list)
    has_advanced_syntax: bool = False
    original_query: str = ""
    errors: list[str] = field(default_factory=list)


def tokenize(query: str) -> list[Token]:
    """Lex a query string. Always ends with an EOF token."""
    tokens: list[Token] = []
    position = 0
    length = len(query)

    while position < length:
        char = query[position]

        if char.isspace():
            position += 1
            continue

        if char == '"':
            start = position
            closing = query.find('"', position + 1)
            end = length if closing == -1 else closing
            tokens.append(Token(TokenType.PHRASE, query[position + 1 : end], start))
            position = end + 1
            continue

        if char == "(":
            tokens.append(Token(TokenType.LPAREN, char, position))
            position += 1
            continue
        if char == ")":
            tokens.append(Token(TokenType.RPAREN, char, position))
            position += 1
            continue

        start = position
        while position < length and not query[position].isspace() and query[position] not in _WORD_DELIMITERS:
            position += 1
        word = query[start:position]
        tokens.append(_classify_word(word, start))

    tokens.append(Token(TokenType.EOF, "", length))
    return tokens


def _classify_word(word: str, position: int) -> Token:
    upper = word.upper()
    if upper in _OPERATORS:
        return Token(TokenType(upper), word, position)

    prefix, colon, value = word.partition(":")
    if colon and value and prefix.lower() in SUPPORTED_FIELDS:
        return Token(TokenType.FIELD, word, position)

    return Token(TokenType.TERM, word, position)


class QueryParser:
    """Recursive-descent parser: OR binds loosest, then AND, then NOT."""

    def __init__(self, tokens: list[Token]) -> None:
        self.tokens = tokens
        self.current = 0
        self.errors: list[str] = []

    def parse(self) -> QueryNode | None:
        if self._check(TokenType.EOF):
            return None
        ast = self._parse_or()
        if not self._check(TokenType.EOF):
            token = self._peek()
            self.errors.append(f"Unexpected {token.type.value} at position {token.position}")
        return ast

    def _parse_or(self) -> QueryNode | None:
        left = self._parse_and()
        if left is None:
            return None

        while self._check(TokenType.OR):
            self._advance()
            right = self._parse_and()
            if right is None:
                self.errors.append("Expected term after OR")
                break
            left = QueryNode(NodeType.OR, left=left, right=right)
        return left

    def _parse_and(self) -> QueryNode | None:
        left = self._parse_not()
        if left is None:
            return None

        while self._check(TokenType.AND) or self._is_term_start():
            if self._check(TokenType.AND):
                self._advance()
            right = self._parse_not()
            if right is None:
                break
            left = QueryNode(NodeType.AND, left=left, right=right)
        return left

    def _parse_not(self) -> QueryNode | None:
        if self._check(TokenType.NOT):
            self._advance()
            operand = self._parse_primary()
            if operand is None:
                self.errors.append("Expected term after NOT")
                return None
            return QueryNode(NodeType.NOT, left=operand)
        return self._parse_primary()

    def _parse_primary(self) -> QueryNode | None:
        token = self._peek()

        if token.type is TokenType.LPAREN:
            self._advance()
            expr = self._parse_or()
            if self._check(TokenType.RPAREN):
                self._advance()
            else:
                self.errors.append("Expected closing parenthesis")
            return expr

        if token.type is TokenType.TERM:
            self._advance()
            return QueryNode(NodeType.TERM, value=token.value)

        if token.type is TokenType.PHRASE:
            self._advance()
            return QueryNode(NodeType.PHRASE, value=token.value)

        if token.type is TokenType.FIELD:
            self._advance()
            name, _, value = token.value.partition(":")
            return QueryNode(NodeType.FIELD, field=name.lower(), value=value)

        return None

    def _is_term_start(self) -> bool:
        return self._peek().type in {
            TokenType.TERM,
            TokenType.PHRASE,
            TokenType.FIELD,
            TokenType.LPAREN,
            TokenType.NOT,
        }

    def _peek(self) -> Token:
        return self.tokens[self.current] if self.current < len(self.tokens) else self.tokens[-1]

    def _check(self, token_type: TokenType) -> bool:
        return self._peek().type is token_type

    def _advance(self) -> Token:
        token = self._peek()
        if token.type is not TokenType.EOF:
            self.current += 1
        return token


def parse_query(query: str) -> ParsedQuery:
    """Parse a query string into AST, positive terms and field filters.

    ``terms`` holds lowercase terms and phrases that are not under a NOT;
    they drive highlighting and scoring once documents pass the AST filter.
    """
    if not query.strip():
        return ParsedQuery(ast=None, original_query=query)

    tokens = tokenize(query.strip())
    parser = QueryParser(tokens)
    ast = parser.parse()

    terms: list[str] = []
    fields: list[FieldFilter] = []
    if ast is not None:
        for node in ast.walk(skip_negated=True):
            if node.type in (NodeType.TERM, NodeType.PHRASE) and node.value:
                terms.append(node.value.lower())
        fields = [
            FieldFilter(field=node.field, value=node.value)
            for node in ast.walk()
            if node.type is NodeType.FIELD and node.field and node.value is not None
        ]

    advanced = any(token.type not in (TokenType.TERM, TokenType.EOF) for token in tokens)
    return ParsedQuery(
        ast=ast,
        terms=terms,
        fields=fields,
        has_advanced_syntax=advanced,
        original_query=query,
        errors=parser.errors,
    )


def matches_field_filter(document: Document, field_name: str, value: str) -> bool:
    """Evaluate one ``field:value`` filter against document metadata."""
    needle = value.lower()
    if field_name in ("tag", "tags"):
        return any(tag.lower() == needle for tag in document.tags or [])
    if field_name == "status":
        return document.status.lower() == needle
    if field_name == "priority":
        return (document.priority or "").lower() == needle
    if field_name == "title":
        return needle in (document.title or "").lower()
    if field_name == "name":
        return needle in document.name.lower()
    raise ValueError(f"Unsupported filter field: {field_name!r}")


def _document_text(document: Document) -> str:
    return " ".join(
        [
            document.title or "",
            document.name,
            " ".join(document.tags or []),
            document.description or "",
            document.content or "",
        ]
    )


def evaluate(node: QueryNode, document: Document, text: str | None = None) -> bool:
    """True when the document satisfies the AST.

    Terms and phrases are case-insensitive substrings of the document's
    combined text; field filters check metadata.
    """
    if text is None:
        text = _document_text(document)

    if node.type in (NodeType.TERM, NodeType.PHRASE):
        return contains_all_terms(text, [node.value.lower()]) if node.value else True
    if node.type is NodeType.FIELD:
        return matches_field_filter(document, node.field or "", node.value or "")
    if node.type is NodeType.NOT:
        return node.left is None or not evaluate(node.left, document, text)
    if node.type is NodeType.AND:
        return all(evaluate(child, document, text) for child in (node.left, node.right) if child is not None)
    if node.type is NodeType.OR:
        return any(evaluate(child, document, text) for child in (node.left, node.right) if child is not None)
    raise ValueError(f"Unknown node type: {node.type!r}")


def get_search_syntax_help() -> str:
    return """
Search Syntax:
  term              Simple term search (case-insensitive substring)
  "exact phrase"    Match exact phrase
  term1 AND term2   Both terms must match (AND is optional)
  term1 OR term2    Either term matches
  NOT term          Exclude specs containing term
  ( ... )           Group expressions

Field Filters:
  status:in-progress    Filter by status
  tag:api               Filter by tag (exact)
  priority:high         Filter by priority
  title:dashboard       Substring of title
  name:oauth            Substring of spec name

Examples:
  api authentication                 Specs with both terms
  tag:api status:planned             API specs that are planned
  "user session" OR "token refresh"  Either phrase
  dashboard NOT deprecated           Dashboard specs, excluding deprecated
""".strip()
