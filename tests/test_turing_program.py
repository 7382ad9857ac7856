import pytest

from turing_program import (
    BLANK,
    HALT_STATE,
    ConfigurationError,
    Direction,
    ProgramError,
    Rule,
    Ruleset,
    load_program,
    parse_program,
    parse_program_text,
)


@pytest.mark.parametrize("token", ["L", "l", "-1", "Left", "LEFT", "-7"])
def test_left_aliases(token):
    assert Direction.parse(token) is Direction.LEFT


@pytest.mark.parametrize("token", ["R", "r", "1", "+1", "right", "42"])
def test_right_aliases(token):
    assert Direction.parse(token) is Direction.RIGHT


@pytest.mark.parametrize("token", ["N", "n", "0", "none", "None"])
def test_none_aliases(token):
    assert Direction.parse(token) is Direction.NONE


@pytest.mark.parametrize("token", ["up", "", "lr", "1.5", "R extra"])
def test_unrecognized_direction_is_a_parse_error(token):
    with pytest.raises(ProgramError):
        Direction.parse(token)


def test_direction_offsets():
    assert [d.offset for d in (Direction.LEFT, Direction.RIGHT, Direction.NONE)] == [-1, 1, 0]
    assert Direction.from_offset(-3) is Direction.LEFT
    assert Direction.from_offset(0) is Direction.NONE


def test_rule_with_blank_current_value():
    rule = Rule.parse("a b ! c R")

    assert rule.current_value is BLANK
    assert rule.current_value != "!"
    assert rule == Rule("a", "b", None, "c", Direction.RIGHT)
    assert str(rule) == "a b ! c R"


def test_rule_blank_is_not_the_empty_string():
    rule = Rule.parse("a b ! ! N")
    assert rule.next_value is None
    assert not rule.applies_to("a", "")
    assert rule.applies_to("a", None)


def test_rule_text_round_trip():
    rules = [
        Rule("q0", "q1", "0", "1", Direction.LEFT),
        Rule("*", None, "*", None, Direction.NONE),
        Rule("scan", "scan", "x", "y", Direction.RIGHT),
    ]
    for rule in rules:
        assert Rule.parse(str(rule)) == rule


def test_rule_with_missing_field():
    with pytest.raises(ProgramError):
        Rule.parse("a b 0 R")


def test_rule_extra_fields_land_in_direction():
    # Splitting stops after the fourth field, so 'R L' is one direction token
    with pytest.raises(ProgramError):
        Rule.parse("a b 0 1 R L")


def test_wildcards_only_on_current_side():
    rule = Rule.parse("* b * * R")
    assert rule.matches_any_state
    assert rule.matches_any_value
    assert rule.applies_to("anything", "z")
    assert rule.next_value == "*"


def test_parse_program_line_forms():
    ruleset = parse_program([
        "; full line comment",
        "",
        "#accept",
        "#reject  ",
        "~start",
        "@0 ! 1",
        "start mid 0 1 R ; inline comment",
        "mid accept 1 1 left",
        "   ",
    ], tape_size=4)

    assert ruleset.initial_state == "start"
    assert ruleset.terminal_states == frozenset({HALT_STATE, "accept", "reject"})
    assert ruleset.filler == ("0", None, "1")
    assert ruleset.tape_size == 4
    assert ruleset.rules == (
        Rule("start", "mid", "0", "1", Direction.RIGHT),
        Rule("mid", "accept", "1", "1", Direction.LEFT),
    )


def test_rules_keep_declaration_order_with_inline_comments():
    ruleset = parse_program([
        "a a 0 0 R ; first",
        "a a 0 1 R",
        "a a 1 1 L ; third",
    ], tape_size=3)
    assert [str(rule) for rule in ruleset.rules] == ["a a 0 0 R", "a a 0 1 R", "a a 1 1 L"]


def test_inline_comment_only_line_is_ignored():
    ruleset = parse_program(["  ; indented comment", "a a 0 0 R"], tape_size=3)
    assert len(ruleset.rules) == 1


def test_initial_state_defaults_to_first_rule():
    ruleset = parse_program(["q7 q8 0 1 R", "q8 q7 1 0 L"], tape_size=2)
    assert ruleset.initial_state == "q7"


def test_first_initial_state_declaration_wins():
    ruleset = parse_program(["~b", "~c", "a a 0 0 R"], tape_size=2)
    assert ruleset.initial_state == "b"


def test_no_rules_and_no_initial_state():
    with pytest.raises(ProgramError):
        parse_program(["#halt", "; nothing here"], tape_size=2)


def test_initial_state_without_rules_is_accepted():
    ruleset = parse_program(["~idle"], tape_size=2)
    assert ruleset.initial_state == "idle"
    assert ruleset.rules == ()


def test_no_filler_means_blank_tape():
    assert parse_program(["a a 0 0 R"], tape_size=2).filler is None


def test_filler_lines_concatenate():
    ruleset = parse_program(["@a b", "@c", "a a 0 0 R"], tape_size=2)
    assert ruleset.filler == ("a", "b", "c")


def test_empty_filler_is_rejected():
    with pytest.raises(ProgramError):
        parse_program(["@   ", "a a 0 0 R"], tape_size=2)


@pytest.mark.parametrize("tape_size", [0, -1, -100])
def test_illegal_tape_size(tape_size):
    with pytest.raises(ConfigurationError, match="Illegal Tape Size"):
        parse_program(["a a 0 0 R"], tape_size)


def test_illegal_tape_size_is_checked_before_lines():
    # The bad rule would also fail, but the size is checked first
    with pytest.raises(ConfigurationError):
        parse_program(["not a rule"], 0)


def test_malformed_line_aborts_whole_program():
    with pytest.raises(ProgramError) as excinfo:
        parse_program(["a a 0 0 R", "a b 0 1 up", "b b 0 0 R"], tape_size=3)

    assert excinfo.value.line_number == 2
    assert excinfo.value.line == "a b 0 1 up"
    assert "line 2" in str(excinfo.value)


def test_program_errors_are_value_errors():
    with pytest.raises(ValueError):
        parse_program(["a b c"], tape_size=3)


def test_ruleset_format_round_trip():
    ruleset = parse_program_text(
        "~s\n#t\n#u\n@x ! y\ns t x ! R\n* s * y N\n", tape_size=5)
    assert parse_program(ruleset.format(), tape_size=5) == ruleset


def test_ruleset_is_terminal():
    ruleset = Ruleset((), "a", frozenset({HALT_STATE, "t"}), None, 3)
    assert ruleset.is_terminal("t")
    assert ruleset.is_terminal(None)
    assert not ruleset.is_terminal("a")


def test_load_program(tmp_path):
    path = tmp_path / "prog.tm"
    path.write_text("~a\na a ! 1 R\n", encoding="utf-8")

    ruleset = load_program(path, 3)

    assert ruleset.rules == (Rule("a", "a", None, "1", Direction.RIGHT),)


def test_load_program_with_byte_order_mark(tmp_path):
    path = tmp_path / "prog.tm"
    path.write_bytes(b"\xef\xbb\xbf" + "~a\n#t\na t ! 1 R\n".encode("utf-8"))

    ruleset = load_program(path, 3)

    assert ruleset.initial_state == "a"
    assert ruleset.rules == (Rule("a", "t", None, "1", Direction.RIGHT),)
