"""
Turing Machine Program Model and Parser

Programs are plain text, one item per line:

    #<state>        extra terminal (halting) state
    ;<anything>     comment line, discarded
    ~<state>        initial state
    @<sym> <sym>    tape filler, repeated in order to fill up the tape
    <cs> <ns> <cv> <nv> <dir>
                    rule: in state cs reading cv, write nv, move dir, go to ns

Conventions:
    - '!' denotes the logical blank, represented internally as None
    - '*' in the current state or current value matches anything
    - text after a ';' in the middle of a line is an inline comment
    - dir is an integer (sign gives the move) or left/right/none,
      case-insensitive, optionally abbreviated to the first letter
"""

from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Iterable, List, Optional, Tuple


COMMENT_CHAR = ';'
DIRECTIVE_CHAR = '#'
INITIAL_STATE_CHAR = '~'
FILLER_CHAR = '@'

MATCH_ANYTHING_CODE = '*'
NULL_CODE = '!'
RULE_ARITY = 5

# The blank tape symbol and the halt state share the same internal marker.
BLANK = None
HALT_STATE = None


class TuringError(ValueError):
    """Base class for errors raised while building a machine."""


class ConfigurationError(TuringError):
    """Raised for an unusable machine configuration such as a bad tape size."""


class ProgramError(TuringError):
    """Raised when program text cannot be parsed."""

    def __init__(self, message, line_number=None, line=None):
        if line_number is not None:
            message = f"line {line_number}: {message} ({line!r})"
        super().__init__(message)
        self.line_number = line_number
        self.line = line


def check_tape_size(tape_size) -> int:
    if isinstance(tape_size, bool) or not isinstance(tape_size, int) or tape_size <= 0:
        raise ConfigurationError(f"Illegal Tape Size : {tape_size}")
    return tape_size


def decode_symbol(token: str) -> Optional[str]:
    """Map the '!' code to the blank marker, leave other tokens alone."""
    return BLANK if token == NULL_CODE else token


def encode_symbol(symbol: Optional[str]) -> str:
    return NULL_CODE if symbol is None else symbol


class Direction(Enum):
    """Head movement. The member value is the offset applied to the head."""
    LEFT = -1
    RIGHT = 1
    NONE = 0

    @property
    def offset(self) -> int:
        return self.value

    @property
    def code(self) -> str:
        """Canonical one-letter form used when formatting rules."""
        return self.name[0]

    @classmethod
    def from_offset(cls, offset: int) -> 'Direction':
        if offset < 0:
            return cls.LEFT
        if offset > 0:
            return cls.RIGHT
        return cls.NONE

    @classmethod
    def parse(cls, text: str) -> 'Direction':
        """
        Parse a direction token.

        Integers are read by sign. Otherwise the token is matched against the
        member names ignoring case, first as a full name and then as a first
        letter abbreviation.

        Raises:
            ProgramError: if the token is neither an integer nor a known name
        """
        token = text.strip()
        try:
            return cls.from_offset(int(token))
        except ValueError:
            pass

        lowered = token.lower()
        for member in cls:
            if member.name.lower() == lowered:
                return member
        for member in cls:
            if len(lowered) == 1 and member.name[0].lower() == lowered:
                return member

        raise ProgramError(f"Unrecognized direction: {text!r}")


@dataclass(frozen=True)
class Rule:
    """
    A single transition: in `current_state` reading `current_value`, write
    `next_value`, move the head by `direction` and switch to `next_state`.

    None stands for the blank in any of the four state/value fields.
    """
    current_state: Optional[str]
    next_state: Optional[str]
    current_value: Optional[str]
    next_value: Optional[str]
    direction: Direction

    @classmethod
    def parse(cls, text: str) -> 'Rule':
        """
        Parse a rule line such as 'a b ! c R'.

        The line is split on whitespace into at most five parts, so anything
        after the fourth field is handed to the direction parser as is.
        """
        elements = text.strip().split(None, RULE_ARITY - 1)
        if len(elements) < RULE_ARITY:
            raise ProgramError(
                f"Rule needs {RULE_ARITY} fields, got {len(elements)}: {text.strip()!r}"
            )
        current_state, next_state, current_value, next_value = (
            decode_symbol(token) for token in elements[:4]
        )
        return cls(current_state, next_state, current_value, next_value,
                   Direction.parse(elements[4]))

    @property
    def matches_any_state(self) -> bool:
        return self.current_state == MATCH_ANYTHING_CODE

    @property
    def matches_any_value(self) -> bool:
        return self.current_value == MATCH_ANYTHING_CODE

    def applies_to(self, state: Optional[str], symbol: Optional[str]) -> bool:
        """True if this rule may fire in `state` with `symbol` under the head."""
        state_matches = self.matches_any_state or self.current_state == state
        value_matches = self.matches_any_value or self.current_value == symbol
        return state_matches and value_matches

    def __str__(self):
        # Same layout as the input format, so the output can be parsed again.
        fields = [self.current_state, self.next_state, self.current_value, self.next_value]
        return ' '.join([encode_symbol(field) for field in fields] + [self.direction.code])


@dataclass(frozen=True)
class Ruleset:
    """A parsed program. Never mutated, so engines may share one instance."""
    rules: Tuple[Rule, ...]
    initial_state: Optional[str]
    terminal_states: FrozenSet[Optional[str]]
    filler: Optional[Tuple[Optional[str], ...]]
    tape_size: int

    def is_terminal(self, state: Optional[str]) -> bool:
        return state is HALT_STATE or state in self.terminal_states

    def format(self) -> List[str]:
        """
        Render the program back to lines accepted by `parse_program`.

        Rulesets from parse_program or parse_yaml_machine parse back to an
        equal Ruleset. Hand-built ones only do if every state and symbol is a
        single token other than '!' without ';'.
        """
        lines = []
        if self.initial_state is not None:
            lines.append(f"{INITIAL_STATE_CHAR}{self.initial_state}")
        for state in sorted(s for s in self.terminal_states if s is not HALT_STATE):
            lines.append(f"{DIRECTIVE_CHAR}{state}")
        if self.filler is not None:
            lines.append(FILLER_CHAR + ' '.join(encode_symbol(s) for s in self.filler))
        lines.extend(str(rule) for rule in self.rules)
        return lines


def _strip_inline_comment(line: str) -> str:
    index = line.find(COMMENT_CHAR)
    return line if index < 0 else line[:index]


def parse_program(lines: Iterable[str], tape_size: int) -> Ruleset:
    """
    Parse program lines into a Ruleset.

    Args:
        lines: Raw program lines (trailing newlines are fine)
        tape_size: Fixed size of the tape, must be positive

    Returns:
        The parsed Ruleset

    Raises:
        ConfigurationError: if tape_size is not a positive integer
        ProgramError: on the first malformed line, or when no initial state
                      can be determined
    """
    tape_size = check_tape_size(tape_size)

    rules = []
    initial_state = None
    terminal_states = {HALT_STATE}
    filler = None

    for line_number, raw in enumerate(lines, start=1):
        line = raw.rstrip('\r\n')
        if not line.strip():
            continue

        first = line[0]
        if first == COMMENT_CHAR:
            continue

        if first in (DIRECTIVE_CHAR, INITIAL_STATE_CHAR, FILLER_CHAR):
            body = _strip_inline_comment(line[1:]).strip()
            if first == DIRECTIVE_CHAR:
                if not body:
                    raise ProgramError("Empty terminal state directive", line_number, line)
                terminal_states.add(body)
            elif first == INITIAL_STATE_CHAR:
                if not body:
                    raise ProgramError("Empty initial state declaration", line_number, line)
                if initial_state is None:
                    initial_state = body
            else:
                symbols = [decode_symbol(token) for token in body.split()]
                if not symbols:
                    raise ProgramError("Tape filler has no symbols", line_number, line)
                filler = (filler or []) + symbols
            continue

        text = _strip_inline_comment(line).strip()
        if not text:
            continue
        try:
            rules.append(Rule.parse(text))
        except ProgramError as e:
            raise ProgramError(str(e), line_number, line) from e

    if initial_state is None:
        if not rules:
            raise ProgramError("No initial state declared and no rules to take it from")
        initial_state = rules[0].current_state

    return Ruleset(
        rules=tuple(rules),
        initial_state=initial_state,
        terminal_states=frozenset(terminal_states),
        filler=tuple(filler) if filler is not None else None,
        tape_size=tape_size,
    )


def parse_program_text(text: str, tape_size: int) -> Ruleset:
    return parse_program(text.splitlines(), tape_size)


def load_program(filepath, tape_size: int) -> Ruleset:
    """Read a program file (UTF-8, with or without a byte order mark) and parse it."""
    with open(filepath, 'r', encoding='utf-8-sig') as f:
        return parse_program(f.read().splitlines(), tape_size)
