"""Console logging for the CHIP-8 machine.

``ConsoleLogger`` is a small levelled logger writing to a stream. The
``EmulatorLogger`` subclass adds the records the :class:`chip8vm.Chip8`
facade emits (loads, faults, mode changes, run summaries). Long headless runs
inside ``jax.lax.scan`` can report progress to a tqdm bar through
``io_callback``.
"""

import sys
import time
from typing import Callable, Optional, Tuple

import jax
from jax.experimental import io_callback

from tqdm import tqdm

LEVEL_ORDER = {
    "DEBUG": 0,
    "INFO": 1,
    "WARNING": 2,
    "ERROR": 3,
    "CRITICAL": 4,
}

LEVEL_COLORS = {
    "DEBUG": "\033[36m",     # cyan
    "INFO": "\033[32m",      # green
    "WARNING": "\033[33m",   # yellow
    "ERROR": "\033[31m",     # red
    "CRITICAL": "\033[35m",  # magenta
}
RESET_COLOR = "\033[0m"


def _checked_level(log_level: str) -> str:
    level = log_level.upper()
    if level not in LEVEL_ORDER:
        raise ValueError(f"Unknown log level '{log_level}'. Available: {list(LEVEL_ORDER)}")
    return level


class ConsoleLogger:
    """Levelled console logger with optional colors and timestamps.

    Colors are only used when the stream is a terminal.
    """

    def __init__(
        self,
        name: str = "chip8vm",
        log_level: str = "INFO",
        use_colors: bool = True,
        show_timestamps: bool = True,
        stream=None,
    ):
        self.name = name
        self.log_level = _checked_level(log_level)
        self.stream = stream if stream is not None else sys.stdout
        self.use_colors = use_colors and getattr(self.stream, "isatty", lambda: False)()
        self.show_timestamps = show_timestamps
        self.start_time = time.time()

    def set_level(self, log_level: str):
        self.log_level = _checked_level(log_level)

    def is_enabled_for(self, level: str) -> bool:
        return LEVEL_ORDER.get(level.upper(), LEVEL_ORDER["INFO"]) >= LEVEL_ORDER[self.log_level]

    def _format_message(self, level: str, message: str) -> str:
        prefix = f"[{time.time() - self.start_time:8.2f}s]" if self.show_timestamps else ""
        tag = f"[{level:>8s}]"
        if self.use_colors:
            tag = f"{LEVEL_COLORS.get(level.upper(), '')}{tag}{RESET_COLOR}"
        return f"{prefix}{tag}[{self.name}] {message}"

    def log(self, level: str, message: str):
        if self.is_enabled_for(level):
            print(self._format_message(level, message), file=self.stream, flush=True)

    def debug(self, message: str):
        self.log("DEBUG", message)

    def info(self, message: str):
        self.log("INFO", message)

    def warning(self, message: str):
        self.log("WARNING", message)

    def error(self, message: str):
        self.log("ERROR", message)

    def critical(self, message: str):
        self.log("CRITICAL", message)


class EmulatorLogger(ConsoleLogger):
    """Logger with machine-specific records, used by :class:`chip8vm.Chip8`."""

    def __init__(self, name: str = "chip8vm", **kwargs):
        super().__init__(name, **kwargs)
        self.fault_counts = {}

    def log_load(self, size: int, address: int, source: Optional[str] = None):
        origin = f" from {source}" if source else ""
        self.info(f"Loaded {size} bytes{origin} at 0x{address:03X}")

    def log_fault(self, kind: str, pc: int, instruction: int, level: str = "WARNING"):
        """Log a fault reported by the engine and count it by kind."""
        self.fault_counts[kind] = self.fault_counts.get(kind, 0) + 1
        self.log(level, f"{kind}: {instruction:04X} at PC=0x{pc:03X}")

    def log_mode_change(self, old_mode: str, new_mode: str, pc: int):
        self.debug(f"Mode {old_mode} -> {new_mode} at PC=0x{pc:03X}")

    def log_run_summary(self, cycles: int, elapsed: float):
        """Log how many cycles ran, the effective instruction rate and fault totals."""
        rate = cycles / elapsed if elapsed > 0 else 0.0
        summary = f"Ran {cycles:,} cycles in {elapsed:.2f}s ({rate:,.0f} Hz)"
        if self.fault_counts:
            faults = ", ".join(f"{kind}={count}" for kind, count in sorted(self.fault_counts.items()))
            summary += f" | faults: {faults}"
        self.info(summary)


def build_tqdm_progress_bar(
    n: int,
    print_rate: Optional[int] = None,
    desc: Optional[str] = None,
    **tqdm_kwargs,
) -> Tuple[Callable, Callable]:
    """Build host callbacks driving a tqdm bar from inside a scanned loop.

    Returns:
        Tuple of:
            - open_bar: call with the iteration number before the body runs
            - report: call with the iteration number after the body runs;
              the bar advances in chunks of ``print_rate`` and closes on the
              last iteration
    """
    desc = desc or f"Running {n:,} frames"
    rate = max(1, min(print_rate or n // 20, n))
    bars = {}

    def _open():
        bars["bar"] = tqdm(total=n, desc=desc, unit="frame", **tqdm_kwargs)

    def _advance(count):
        if "bar" in bars:
            bars["bar"].update(int(count))

    def _close():
        bar = bars.pop("bar", None)
        if bar is not None:
            bar.close()

    def _skip(*_):
        return None

    def open_bar(iter_num):
        jax.lax.cond(iter_num == 0, lambda: io_callback(_open, None, ordered=True), _skip)

    def report(iter_num):
        done = iter_num + 1
        # Frames completed since the previous report
        pending = done - ((done - 1) // rate) * rate
        jax.lax.cond(
            (done % rate == 0) | (done == n),
            lambda count: io_callback(_advance, None, count, ordered=True),
            _skip,
            pending,
        )
        jax.lax.cond(done == n, lambda: io_callback(_close, None, ordered=True), _skip)

    return open_bar, report


def scan_with_progress(
    n: int,
    print_rate: Optional[int] = None,
    desc: Optional[str] = None,
    **tqdm_kwargs,
) -> Callable:
    """Decorate a ``jax.lax.scan`` body so the scan drives a progress bar.

    The scanned ``xs`` must be (or start with) the iteration number, e.g.
    ``jnp.arange(n)``.
    """
    open_bar, report = build_tqdm_progress_bar(n, print_rate, desc, **tqdm_kwargs)

    def decorator(body):
        def body_with_progress(carry, x):
            iter_num = x[0] if isinstance(x, tuple) else x
            open_bar(iter_num)
            result = body(carry, x)
            report(iter_num)
            return result

        return body_with_progress

    return decorator
