"""
Turing Machine Simulator

Executes a parsed program (see turing_program) on a fixed-size tape with
wraparound: the head index is unbounded and is reduced modulo the tape size
whenever a cell is read or written.

Each step scans the rules in declaration order and fires the first one whose
current state and current value match ('*' matches anything). The machine
halts when no rule applies or when it reaches a terminal state. Once halted,
further steps do nothing.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple

from turing_program import (
    HALT_STATE,
    Direction,
    Rule,
    Ruleset,
    check_tape_size,
    encode_symbol,
    parse_program_text,
)


Tape = Tuple[Optional[str], ...]

INITIAL_HEAD = 0
INVALID_HEAD = None


def bounded(head: int, tape_size: int) -> int:
    """
    Wrap a head index onto the tape.

    Python's modulo already returns a value in [0, tape_size) for negative
    heads, so bounded(-1, 5) == 4 and bounded(7, 5) == 2.
    """
    return head % tape_size


@dataclass(frozen=True)
class ExecutionState:
    """Head, current state and tape at one point of a run."""
    head: Optional[int]
    state: Optional[str]
    tape: Tape

    @property
    def halted(self) -> bool:
        return self.head is INVALID_HEAD or self.state is HALT_STATE


@dataclass(frozen=True)
class StepResult:
    """Outcome of one transition. `proceed` is False once the machine halts."""
    proceed: bool
    execution_state: ExecutionState


class TuringMachine:
    """
    Single-tape machine driven by a Ruleset.

    Args:
        ruleset: The parsed program
        tape_size: Tape length; defaults to the size the program was parsed for
    """

    def __init__(self, ruleset: Ruleset, tape_size: Optional[int] = None):
        self.ruleset = ruleset
        self.tape_size = check_tape_size(ruleset.tape_size if tape_size is None else tape_size)
        self.steps_taken = 0
        self.execution_state = ExecutionState(INITIAL_HEAD, ruleset.initial_state, self.init_tape())

    @classmethod
    def from_text(cls, text: str, tape_size: int) -> 'TuringMachine':
        return cls(parse_program_text(text, tape_size))

    @property
    def head(self) -> Optional[int]:
        return self.execution_state.head

    @property
    def state(self) -> Optional[str]:
        return self.execution_state.state

    @property
    def tape(self) -> Tape:
        return self.execution_state.tape

    @property
    def halted(self) -> bool:
        return self.execution_state.halted

    def init_tape(self) -> Tape:
        """
        Build the starting tape.

        Without a filler every cell is blank. Otherwise the filler is repeated
        whole as many times as it fits and the remainder is taken from the
        start of the filler, e.g. filler (a, b) on 5 cells gives (a, b, a, b, a).
        """
        filler = self.ruleset.filler
        if not filler:
            return (None,) * self.tape_size
        times, remainder = divmod(self.tape_size, len(filler))
        return tuple(filler) * times + tuple(filler[:remainder])

    def find_rule(self, state: Optional[str], symbol: Optional[str]) -> Optional[Rule]:
        """Return the first rule applicable to (state, symbol), or None."""
        for rule in self.ruleset.rules:
            if rule.applies_to(state, symbol):
                return rule
        return None

    def transition(self, execution_state: ExecutionState) -> StepResult:
        """
        Compute the state after one step without touching the machine.

        Returns:
            StepResult with proceed=False and an unchanged tape if the machine
            is halted, sits in a terminal state or has no applicable rule
        """
        head, state, tape = execution_state.head, execution_state.state, execution_state.tape
        halt = StepResult(False, ExecutionState(INVALID_HEAD, HALT_STATE, tape))

        if execution_state.halted or self.ruleset.is_terminal(state):
            return halt

        position = bounded(head, self.tape_size)
        rule = self.find_rule(state, tape[position])
        if rule is None:
            return halt

        if rule.direction is Direction.LEFT:
            next_head = head - 1
        elif rule.direction is Direction.RIGHT:
            next_head = head + 1
        elif rule.direction is Direction.NONE:
            next_head = head
        else:
            raise AssertionError(f"Unexpected direction: {rule.direction!r}")

        next_tape = tape[:position] + (rule.next_value,) + tape[position + 1:]
        return StepResult(True, ExecutionState(next_head, rule.next_state, next_tape))

    def step(self) -> bool:
        """
        Run one step.

        Returns:
            True if the step fired a rule, False if the machine is (now) halted
        """
        result = self.transition(self.execution_state)
        self.execution_state = result.execution_state
        if result.proceed:
            self.steps_taken += 1
        return result.proceed

    def run_for_steps_or_till_halt(self, steps: int, verbose: bool = False) -> List[Tape]:
        """
        Run for a number of steps, or till the machine halts.

        Args:
            steps: Step budget; negative runs until halt
            verbose: If True, print each step

        Returns:
            List of tape snapshots, each taken just before a step was run.
            The step that finds the machine halting contributes its snapshot;
            the tape after halting is not appended again.
        """
        use_stepping = steps >= 0
        history = []
        current_steps = 0

        if verbose:
            print(f"Initial state: {self.state}, Terminal states: "
                  f"{sorted(encode_symbol(s) for s in self.ruleset.terminal_states)}")
            print(f"Tape size: {self.tape_size}, Program has {len(self.ruleset.rules)} rules")
            print("-" * 60)

        while not self.halted and not (use_stepping and current_steps >= steps):
            snapshot = self.tape
            head, state = self.head, self.state
            history.append(snapshot)
            proceed = self.step()
            current_steps += 1

            if verbose:
                if proceed:
                    print(f"Step {current_steps}: State={encode_symbol(state)}, Head={bounded(head, self.tape_size)} "
                          f"-> Next={encode_symbol(self.state)}, Head={bounded(self.head, self.tape_size)}")
                else:
                    print(f"\nNo further progress from state={encode_symbol(state)}. Halting.")

        if verbose and self.halted:
            print(f"\nMachine halted after {self.steps_taken} steps.")

        return history

    def run_to_final(self, steps: int) -> Tape:
        """Like run_for_steps_or_till_halt, but only return the final tape."""
        use_stepping = steps >= 0
        current_steps = 0
        while not self.halted and not (use_stepping and current_steps >= steps):
            self.step()
            current_steps += 1
        return self.tape


# 4-State Busy Beaver on a wraparound tape of '0's
# The tape needs at least 14 cells so the machine never meets its own output
# It writes 13 ones and halts after 107 steps
BUSY_BEAVER_4 = """
; busy beaver, 4 states, 2 symbols
~A
#H
@0
A B 0 1 R
A B 1 1 L
B A 0 1 L
B C 1 0 L
C H 0 1 R    ; halt when in state C reading 0
C D 1 1 L
D D 0 1 R
D A 1 0 R
"""


if __name__ == "__main__":
    from turing_history import tape_to_string

    print("=" * 60)
    print("TURING MACHINE SIMULATOR")
    print("=" * 60)
    print("\nRunning 4-State Busy Beaver on a 16-cell tape")
    print("Expected: 13 ones written, 107 steps to halt\n")

    machine = TuringMachine.from_text(BUSY_BEAVER_4, tape_size=16)
    history = machine.run_for_steps_or_till_halt(-1)

    for snapshot in history[:5]:
        print(tape_to_string(snapshot))
    print("...")
    print(tape_to_string(machine.tape))

    print(f"\n{'=' * 60}")
    print("RESULTS:")
    print(f"  Total steps: {machine.steps_taken}")
    print(f"  Ones on tape: {sum(1 for s in machine.tape if s == '1')}")
    print(f"  Halted: {machine.halted}")
    print(f"{'=' * 60}")
