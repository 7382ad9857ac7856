"""
Launcher for the wraparound Turing machine simulator.

Usage:
    python turing_main.py PROGRAM [TAPE_SIZE] [STEPS] [PAUSE_MS]

    PROGRAM    program file (.yaml/.yml files use the YAML table format)
    TAPE_SIZE  fixed size of the tape
    STEPS      number of steps to run, negative to run till the machine halts
    PAUSE_MS   milliseconds to pause between steps, negative to wait for Enter

Missing values fall back to TURING_TAPE_SIZE, TURING_STEPS and TURING_PAUSE_MS
from the environment or a .env file.
"""

import argparse
import os
import sys
import time

from dotenv import load_dotenv

from turing_history import save_history_to_file, tape_to_string
from turing_machine import TuringMachine
from turing_program import TuringError, load_program
from turing_yaml import load_yaml_machine

# Load environment variables from .env file
load_dotenv()

PAUSED_MESSAGE = "Execution Paused - Press Enter to continue."


def _env_int(name, default):
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        raise SystemExit(f"error: {name} must be an integer, got {value!r}")


def build_parser():
    parser = argparse.ArgumentParser(description="Run a Turing machine program on a wraparound tape.")
    parser.add_argument('program', help="program file (.yaml/.yml for the YAML table format)")
    parser.add_argument('tape_size', nargs='?', type=int,
                        default=_env_int('TURING_TAPE_SIZE', 32), help="size of the tape")
    parser.add_argument('steps', nargs='?', type=int,
                        default=_env_int('TURING_STEPS', -1),
                        help="steps to run, negative to run till halt")
    parser.add_argument('pause_ms', nargs='?', type=int,
                        default=_env_int('TURING_PAUSE_MS', 0),
                        help="pause between steps in ms, negative to wait for Enter")
    parser.add_argument('--blank', default=os.getenv('TURING_BLANK', '_'),
                        help="placeholder printed for blank cells")
    parser.add_argument('--final', action='store_true', help="only print the final tape")
    parser.add_argument('--save-npy', metavar='PATH', help="save the tape history as a .npy file")
    return parser


def load_machine(path, tape_size):
    if path.endswith(('.yaml', '.yml')):
        return TuringMachine(load_yaml_machine(path, tape_size))
    return TuringMachine(load_program(path, tape_size))


def do_run(machine, steps, pause_ms, blank='_'):
    """
    Print the tape before every step and pause between steps.

    Returns:
        The printed tape history
    """
    use_stepping = steps >= 0
    current_steps = 0
    history = []
    halt = False

    while not (halt or (use_stepping and current_steps >= steps)):
        history.append(machine.tape)
        print(tape_to_string(machine.tape, blank_symbol=blank))
        halt = not machine.step()
        current_steps += 1
        if halt:
            break
        if pause_ms >= 0:
            time.sleep(pause_ms / 1000.0)
        else:
            input(PAUSED_MESSAGE)

    return history


def main(argv=None):
    args = build_parser().parse_args(argv)

    try:
        machine = load_machine(args.program, args.tape_size)
    except (TuringError, OSError, UnicodeDecodeError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    if args.final:
        history = machine.run_for_steps_or_till_halt(args.steps)
        print(tape_to_string(machine.tape, blank_symbol=args.blank))
    else:
        history = do_run(machine, args.steps, args.pause_ms, blank=args.blank)

    if args.save_npy:
        save_history_to_file(history, args.save_npy)

    status = "halted" if machine.halted else "stopped"
    print(f"Machine {status} after {machine.steps_taken} steps.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
