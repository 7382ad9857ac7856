"""
Tape history export and display.

A history is the list of tape snapshots returned by
TuringMachine.run_for_steps_or_till_halt. These helpers turn it into a numpy
matrix (one row per snapshot, one column per cell), save it, print it and
draw it as a space-time diagram.
"""

import numpy as np
import matplotlib.pyplot as plt


BLANK_CODE = -1


def tape_to_string(tape, blank_symbol='_', separator=' '):
    """
    Convert a tape snapshot to a readable string.

    Args:
        tape: Sequence of symbols, None for blank cells
        blank_symbol: Placeholder printed for blank cells (default: '_')
        separator: String placed between cells (default: ' ')
    """
    return separator.join(blank_symbol if symbol is None else str(symbol) for symbol in tape)


def history_to_numpy(history, symbol_encoding=None):
    """
    Convert a tape history to a numpy array of shape (n_snapshots, tape_size).

    Args:
        history: List of tape snapshots
        symbol_encoding: Optional dict mapping symbols to integers.
                         If None, symbols are auto-encoded (sorted).

    Returns:
        Tuple of (array, symbol_encoding). Blank cells are encoded as -1.

    Raises:
        ValueError: if the snapshots differ in length or a symbol is missing
                    from the given encoding
    """
    if not history:
        return np.zeros((0, 0), dtype=np.int16), dict(symbol_encoding or {})

    tape_size = len(history[0])
    if any(len(snapshot) != tape_size for snapshot in history):
        raise ValueError("All snapshots in a history must have the same length")

    if symbol_encoding is None:
        all_symbols = {symbol for snapshot in history for symbol in snapshot if symbol is not None}
        symbol_encoding = {sym: i for i, sym in enumerate(sorted(all_symbols))}

    arr = np.full((len(history), tape_size), BLANK_CODE, dtype=np.int16)
    for i, snapshot in enumerate(history):
        for j, symbol in enumerate(snapshot):
            if symbol is None:
                continue
            if symbol not in symbol_encoding:
                raise ValueError(f"Symbol {symbol!r} is missing from the encoding")
            arr[i, j] = symbol_encoding[symbol]

    return arr, symbol_encoding


def save_history_to_file(history, filepath, symbol_encoding=None):
    """
    Save a tape history to a .npy file.

    Returns:
        The symbol_encoding dict used
    """
    arr, encoding = history_to_numpy(history, symbol_encoding)
    np.save(filepath, arr)
    return encoding


def plot_history(history, ax=None, title=None):
    """
    Draw a history as an image: time runs down, tape cells run across.

    Args:
        history: List of tape snapshots
        ax: Optional matplotlib Axes to draw into
        title: Optional plot title

    Returns:
        The Axes that was drawn into
    """
    arr, encoding = history_to_numpy(history)
    if ax is None:
        _, ax = plt.subplots(figsize=(10, 5))

    # Blank cells are masked so they show as background
    if arr.size:
        ax.imshow(np.ma.masked_equal(arr, BLANK_CODE), aspect='auto', interpolation='nearest',
                  cmap='viridis')
    ax.set_xlabel("Cell")
    ax.set_ylabel("Step")
    ax.set_title(title or f"Tape history ({len(history)} steps, {len(encoding)} symbols)")
    return ax
