"""
YAML Turing Machine Import

Reads machines written in the table format popular with online Turing machine
simulators and turns them into a Ruleset for the wraparound simulator:

    input: '1011'
    blank: ' '
    start state: right
    table:
      right:
        [0,1]: R
        ' ': {L: carry}
      carry:
        1: {write: 0, L}
        [0,' ']: {write: 1, L: done}
      done:

Symbol groups such as [0,1] expand into one rule per symbol. Transitions that
do not write keep the symbol that was read. States without transitions are
terminal. The input string is laid out once from cell 0 and the rest of the
tape is blank.

Symbols and state names must also be valid tokens of the native program
format: '*' and '!' are reserved there, and whitespace or ';' would split or
cut a rule line. Such machines are rejected rather than silently changed.
"""

import re

import yaml

from turing_program import (
    BLANK,
    COMMENT_CHAR,
    DIRECTIVE_CHAR,
    FILLER_CHAR,
    HALT_STATE,
    INITIAL_STATE_CHAR,
    MATCH_ANYTHING_CODE,
    NULL_CODE,
    Direction,
    ProgramError,
    Rule,
    Ruleset,
    check_tape_size,
)


YAML_DIRECTIONS = {'L': Direction.LEFT, 'R': Direction.RIGHT}
RESERVED_TOKENS = (MATCH_ANYTHING_CODE, NULL_CODE)
LINE_PREFIXES = (COMMENT_CHAR, DIRECTIVE_CHAR, INITIAL_STATE_CHAR, FILLER_CHAR)


def _check_token(token, kind):
    """
    Make sure a YAML symbol or state name survives as a native program token.

    Raises:
        ProgramError: naming the offending token
    """
    if not token:
        raise ProgramError(f"Empty {kind} is not supported")
    if token in RESERVED_TOKENS:
        raise ProgramError(f"{kind.capitalize()} {token!r} is reserved in the program format")
    if COMMENT_CHAR in token or any(ch.isspace() for ch in token):
        raise ProgramError(f"{kind.capitalize()} {token!r} may not contain whitespace or {COMMENT_CHAR!r}")
    if kind == 'state' and token.startswith(LINE_PREFIXES):
        raise ProgramError(f"State {token!r} may not start with one of {''.join(LINE_PREFIXES)!r}")
    return token


def _preprocess_yaml_keys(yaml_string):
    """
    Quote list-style keys so YAML accepts them.

    YAML doesn't support lists as mapping keys, but the table format uses
    them for symbol groups.

    Example: '[0,1,+]: R' becomes '"[0,1,+]": R'
    """
    pattern = r'^(\s*)(\[[^\]]+\])(\s*:)'

    processed_lines = []
    for line in yaml_string.split('\n'):
        match = re.match(pattern, line)
        if match:
            indent, key, colon = match.groups()
            processed_lines.append(f'{indent}"{key}"{colon}{line[match.end():]}')
        else:
            processed_lines.append(line)

    return '\n'.join(processed_lines)


def _parse_symbol_key(key):
    """
    Parse a symbol key which may be a single symbol or a group.

    Examples:
        '0' -> ['0']
        ' ' -> [' ']
        [0, 1, '+'] -> ['0', '1', '+']
        '[0,1,+]' -> ['0', '1', '+']
    """
    if isinstance(key, list):
        return [str(s) for s in key]

    key_str = str(key)
    if key_str.startswith('[') and key_str.endswith(']'):
        inner = key_str[1:-1]
        # Quotes are stripped after the outer spaces so "' '" survives as a blank
        return [s.strip().strip("'\"") for s in inner.split(',')]

    return [key_str]


def _parse_transition_value(state_name, read_symbol, value):
    """
    Parse a transition value into (write, direction, next_state).

        'R'                    -> (read_symbol, RIGHT, state_name)
        {L: next}              -> (read_symbol, LEFT, next)
        {write: x, R: next}    -> (x, RIGHT, next)
        {write: x, L}          -> (x, LEFT, state_name)
    """
    if isinstance(value, str) and value in YAML_DIRECTIONS:
        return read_symbol, YAML_DIRECTIONS[value], state_name

    if isinstance(value, dict):
        write_symbol = value.get('write', None)
        write_symbol = str(write_symbol) if write_symbol is not None else read_symbol

        for code, direction in YAML_DIRECTIONS.items():
            if code in value:
                next_state = value[code] if value[code] is not None else state_name
                return write_symbol, direction, str(next_state)

        raise ProgramError(f"No direction (L/R) found in transition: {value}")

    raise ProgramError(f"Cannot parse transition value: {value}")


def parse_yaml_machine(yaml_string, tape_size):
    """
    Parse a YAML-format Turing machine definition into a Ruleset.

    Args:
        yaml_string: YAML text with 'table' and optionally 'input', 'blank'
                     and 'start state'
        tape_size: Fixed size of the tape, must be positive

    Returns:
        Ruleset whose filler lays the input out once, padded with blanks to
        tape_size. A TuringMachine built with a different tape size tiles that
        filler like any other, so keep the default size of the Ruleset.

    Raises:
        ConfigurationError: if tape_size is not positive
        ProgramError: if the document is malformed, the input does not fit, or
                      a symbol or state name is not a valid program token
    """
    tape_size = check_tape_size(tape_size)

    try:
        data = yaml.safe_load(_preprocess_yaml_keys(yaml_string))
    except yaml.YAMLError as e:
        raise ProgramError(f"Invalid YAML machine: {e}") from e

    if not isinstance(data, dict) or not isinstance(data.get('table'), dict) or not data['table']:
        raise ProgramError("YAML machine needs a non-empty 'table' mapping")

    blank_symbol = str(data.get('blank', ' '))
    start_state = data.get('start state', data.get('start_state', None))
    input_string = data.get('input', None)
    table = data['table']

    def to_symbol(symbol):
        if symbol == blank_symbol:
            return BLANK
        return _check_token(symbol, 'symbol')

    rules = []
    terminal_states = {HALT_STATE}

    for state_name, transitions in table.items():
        state_name = _check_token(str(state_name), 'state')
        if not transitions:
            terminal_states.add(state_name)
            continue
        if not isinstance(transitions, dict):
            raise ProgramError(f"Transitions of state {state_name!r} must be a mapping")

        for key, value in transitions.items():
            for read_symbol in _parse_symbol_key(key):
                write, direction, next_state = _parse_transition_value(state_name, read_symbol, value)
                rules.append(Rule(state_name, _check_token(next_state, 'state'), to_symbol(read_symbol),
                                  to_symbol(write), direction))

    if start_state is None:
        start_state = next(iter(table))
    start_state = _check_token(str(start_state), 'state')

    filler = None
    if input_string is not None:
        symbols = [to_symbol(ch) for ch in str(input_string)]
        if len(symbols) > tape_size:
            raise ProgramError(f"Input of length {len(symbols)} does not fit a tape of {tape_size}")
        filler = tuple(symbols) + (BLANK,) * (tape_size - len(symbols))

    return Ruleset(
        rules=tuple(rules),
        initial_state=start_state,
        terminal_states=frozenset(terminal_states),
        filler=filler,
        tape_size=tape_size,
    )


def load_yaml_machine(filepath, tape_size):
    with open(filepath, 'r', encoding='utf-8-sig') as f:
        return parse_yaml_machine(f.read(), tape_size)
