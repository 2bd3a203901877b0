"""
PGN tokenizer and recursive descent parser with full RAV support.

The tokenizer is permissive: anything it can't classify is a "move" and
gets checked later when the import plays it on a board.
"""

import re
from dataclasses import dataclass, field
from typing import Literal, Optional

TokenType = Literal[
    "header",
    "move_number",
    "move",
    "comment",
    "nag",
    "rav_open",
    "rav_close",
    "result",
]

# NAG = Numeric Annotation Glyphs (PGN supports either NAG numbers or glyphs)
NAG_LOOKUP = {
    1: "!",
    2: "?",
    3: "!!",
    4: "??",
    5: "!?",
    6: "?!",
}
SYMBOLIC_NAGS = {glyph: f"${number}" for number, glyph in NAG_LOOKUP.items()}

# nesting beyond this is skipped (and reported) instead of recursed into
MAX_VARIATION_DEPTH = 100

_WHITESPACE = " \t\n\r"
_WORD_BREAKS = _WHITESPACE + "{}();"

_RESULT_RE = re.compile(r"^(1-0|0-1|1/2-1/2|\*)$")
_MOVE_NUMBER_RE = re.compile(r"^\d+\.+$")
_NAG_RE = re.compile(r"^\$\d+$")
_NUMBERED_MOVE_RE = re.compile(r"^(\d+\.+)(.+)$")  # 1.e4, 5...Be7
_GLYPH_SUFFIX_RE = re.compile(r"^(.*[^!?])([!?]+)$")  # Nxd5??
_HEADER_RE = re.compile(r'^\[(\S+)\s+"(.*)"\]$', re.DOTALL)


@dataclass
class Token:
    type_: TokenType
    value: str


@dataclass
class PgnMove:
    san: str  # as written; not validated
    comment: str = ""
    variations: list[list["PgnMove"]] = field(default_factory=list)

    def add_comment(self, text):
        self.comment = f"{self.comment} {text}" if self.comment else text


@dataclass
class PgnGame:
    headers: dict[str, str] = field(default_factory=dict)
    moves: list[PgnMove] = field(default_factory=list)


@dataclass
class PgnParseError:
    message: str
    token: Optional[Token] = None


@dataclass
class PgnParseResult:
    games: list[PgnGame]
    errors: list[PgnParseError]


def tokenize(pgn: str) -> list[Token]:
    tokens = []
    i = 0
    length = len(pgn)

    while i < length:
        ch = pgn[i]

        if ch in _WHITESPACE:
            i += 1
            continue

        # [Key "Value"] -- an unterminated bracket is read as a word below
        if ch == "[":
            end = pgn.find("]", i)
            if end != -1:
                tokens.append(Token("header", pgn[i : end + 1]))  # noqa: E203
                i = end + 1
                continue

        # {comment}, which may itself contain balanced braces
        if ch == "{":
            depth = 1
            j = i + 1
            while j < length and depth > 0:
                if pgn[j] == "{":
                    depth += 1
                elif pgn[j] == "}":
                    depth -= 1
                j += 1
            end = j - 1 if depth == 0 else length
            tokens.append(Token("comment", pgn[i + 1 : end]))  # noqa: E203
            i = j
            continue

        # ; comment to end of line
        if ch == ";":
            j = i + 1
            while j < length and pgn[j] not in "\r\n":
                j += 1
            tokens.append(Token("comment", pgn[i + 1 : j].strip()))  # noqa: E203
            i = j
            continue

        if ch == "(":
            tokens.append(Token("rav_open", ch))
            i += 1
            continue

        if ch == ")":
            tokens.append(Token("rav_close", ch))
            i += 1
            continue

        if ch in "!?":
            two = pgn[i : i + 2]  # noqa: E203
            if two in SYMBOLIC_NAGS:
                tokens.append(Token("nag", SYMBOLIC_NAGS[two]))
                i += 2
            else:
                tokens.append(Token("nag", SYMBOLIC_NAGS[ch]))
                i += 1
            continue

        if ch == "$":
            j = i + 1
            while j < length and pgn[j].isdigit():
                j += 1
            tokens.append(Token("nag", pgn[i:j]))
            i = j
            continue

        j = i
        while j < length and pgn[j] not in _WORD_BREAKS:
            j += 1
        word = pgn[i:j]

        if not word:
            # stray closing brace
            i += 1
            continue

        i = j
        tokens.extend(_classify_word(word))

    return tokens


def _classify_word(word: str) -> list[Token]:
    if _RESULT_RE.match(word):
        return [Token("result", word)]
    if _MOVE_NUMBER_RE.match(word):
        return [Token("move_number", word)]
    if _NAG_RE.match(word):
        return [Token("nag", word)]

    tokens = []
    if m := _NUMBERED_MOVE_RE.match(word):
        tokens.append(Token("move_number", m.group(1)))
        word = m.group(2)

    if (m := _GLYPH_SUFFIX_RE.match(word)) and m.group(2) in SYMBOLIC_NAGS:
        tokens.append(Token("move", m.group(1)))
        tokens.append(Token("nag", SYMBOLIC_NAGS[m.group(2)]))
    else:
        tokens.append(Token("move", word))

    return tokens


def parse_header(value: str) -> Optional[tuple[str, str]]:
    m = _HEADER_RE.match(value)
    if not m:
        return None
    key, raw_value = m.groups()
    return key, raw_value.replace('\\"', '"').replace("\\\\", "\\")


class _Parser:
    def __init__(self, tokens: list[Token]):
        self.tokens = tokens
        self.pos = 0
        self.errors: list[PgnParseError] = []

    def peek(self) -> Optional[Token]:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def peek_type(self) -> Optional[str]:
        token = self.peek()
        return token.type_ if token else None

    def advance(self) -> Token:
        token = self.tokens[self.pos]
        self.pos += 1
        return token

    def parse_games(self) -> list[PgnGame]:
        games = []
        while self.pos < len(self.tokens):
            game = PgnGame()

            while self.peek_type() == "header":
                if parsed := parse_header(self.advance().value):
                    key, value = parsed
                    game.headers[key] = value

            game.moves = self.parse_movetext(depth=0)

            next_type = self.peek_type()
            if next_type == "result":
                self.advance()
            elif next_type == "rav_close":
                token = self.advance()
                self.errors.append(
                    PgnParseError("Unmatched closing parenthesis", token)
                )

            if game.headers or game.moves:
                games.append(game)

        return games

    def parse_movetext(self, depth: int) -> list[PgnMove]:
        moves: list[PgnMove] = []

        while (token := self.peek()) is not None:
            if token.type_ in ("rav_close", "result", "header"):
                break

            self.advance()

            if token.type_ == "comment":
                # a comment before the first move has nothing to attach to
                if moves:
                    moves[-1].add_comment(token.value)
            elif token.type_ == "rav_open":
                variation = self.parse_variation(token, depth)
                if moves:
                    moves[-1].variations.append(variation)
            elif token.type_ == "move":
                moves.append(self.parse_move(token, depth))
            # move numbers and loose NAGs carry nothing we keep

        return moves

    def parse_move(self, token: Token, depth: int) -> PgnMove:
        move = PgnMove(san=token.value)

        while (next_token := self.peek()) is not None:
            if next_token.type_ == "comment":
                self.advance()
                move.add_comment(next_token.value)
            elif next_token.type_ == "nag":
                self.advance()
            elif next_token.type_ == "rav_open":
                self.advance()
                move.variations.append(self.parse_variation(next_token, depth))
            else:
                break

        return move

    def parse_variation(self, open_token: Token, depth: int) -> list[PgnMove]:
        """Called with the opening paren already consumed."""
        if depth + 1 > MAX_VARIATION_DEPTH:
            self.skip_variation()
            self.errors.append(
                PgnParseError(
                    f"Variation nested deeper than {MAX_VARIATION_DEPTH} levels "
                    "was skipped",
                    open_token,
                )
            )
            return []

        variation = self.parse_movetext(depth + 1)
        if self.peek_type() == "rav_close":
            self.advance()
        else:
            self.errors.append(
                PgnParseError("Unmatched opening parenthesis", open_token)
            )
        return variation

    def skip_variation(self):
        depth = 1
        while depth and self.pos < len(self.tokens):
            token_type = self.advance().type_
            if token_type == "rav_open":
                depth += 1
            elif token_type == "rav_close":
                depth -= 1


def parse_pgn(pgn: str) -> PgnParseResult:
    """
    Parse one or more games. Never raises for malformed input; structural
    problems (e.g. unbalanced parens) are returned in `errors` alongside
    whatever could be parsed.
    """
    parser = _Parser(tokenize(pgn))
    games = parser.parse_games()
    return PgnParseResult(games=games, errors=parser.errors)
