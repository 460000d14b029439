"""Stateful host facade over the functional CHIP-8 engine.

The engine itself is a set of pure functions over :class:`EmulatorState`.
``Chip8`` owns one state value, drives the jitted functions, and turns the
fault codes recorded in the state into log records and exceptions.
"""

import os
import time
from typing import Optional

import jax
import jax.numpy as jnp
import numpy as np

from chip8vm.constants import (
    PROGRAM_START, RUNNING, BLOCKED_ON_KEY, HALTED,
    FAULT_NONE, FAULT_UNKNOWN_OPCODE, FAULT_STACK_OVERFLOW, FAULT_STACK_UNDERFLOW,
)
from chip8vm.emulator import step, load_program, program_image
from chip8vm.exceptions import UnknownOpcodeError, StackOverflowError, StackUnderflowError
from chip8vm.keypad import set_key, release_all
from chip8vm.logging import EmulatorLogger
from chip8vm.stack import depth
from chip8vm.state import EmulatorState, create_state
from chip8vm.timers import tick_timers, sound_active

MODE_NAMES = {
    RUNNING: "RUNNING",
    BLOCKED_ON_KEY: "BLOCKED_ON_KEY",
    HALTED: "HALTED",
}

FAULTS = {
    FAULT_UNKNOWN_OPCODE: ("UnknownOpcode", UnknownOpcodeError, "WARNING"),
    FAULT_STACK_OVERFLOW: ("StackOverflow", StackOverflowError, "ERROR"),
    FAULT_STACK_UNDERFLOW: ("StackUnderflow", StackUnderflowError, "ERROR"),
}


class Chip8:
    """A single CHIP-8 virtual machine.

    Example:
        ```python
        machine = Chip8()
        machine.load(program_bytes)
        while True:
            machine.run_frame(instructions_per_frame=10)
            if machine.consume_redraw():
                draw(machine.frame)
        ```

    Args:
        seed: Seed for the random number generator used by CXNN
        strict: Raise :class:`UnknownOpcodeError` instead of only logging it
        log_level: Level of the default logger
        logger: Logger to use instead of a fresh :class:`EmulatorLogger`
    """

    def __init__(
        self,
        seed: int = 0,
        strict: bool = False,
        log_level: str = "WARNING",
        logger: Optional[EmulatorLogger] = None,
    ):
        if not isinstance(seed, int) or seed < 0:
            raise ValueError(f"Seed must be a non-negative integer, got {seed!r}")
        self.seed = seed
        self.strict = strict
        self.logger = logger or EmulatorLogger(log_level=log_level)
        self.state: EmulatorState = None
        self.cycles = 0
        self.reset()

    def reset(self):
        """Return to power-on state: font loaded, everything else zeroed, PC at 0x200."""
        self.state = create_state(jax.random.PRNGKey(self.seed))
        self.cycles = 0
        self.logger.debug("Machine reset")

    def load(self, program, source: Optional[str] = None):
        """Copy a program image to 0x200.

        Raises:
            OutOfBoundsError: if the image does not fit; the machine is unchanged
        """
        image = program_image(program)
        self.state = load_program(self.state, image)
        self.logger.log_load(len(image), PROGRAM_START, source)

    def load_rom(self, filename: str | os.PathLike):
        with open(filename, "rb") as f:
            self.load(f.read(), source=os.fspath(filename))

    def step(self) -> int:
        """Run one cycle and return the instruction found at the pre-step PC.

        In BLOCKED_ON_KEY this only polls the keypad, in HALTED it does nothing.

        Raises:
            StackOverflowError: CALL with a full stack; the machine is halted
            StackUnderflowError: RETURN with an empty stack; the machine is halted
            UnknownOpcodeError: only in strict mode; PC has already moved on
        """
        previous = self.state
        self.state, instruction = step(previous)
        instruction = int(instruction)

        previous_mode = int(previous.mode)
        if previous_mode == HALTED:
            return instruction

        self.cycles += 1
        mode = int(self.state.mode)
        if mode != previous_mode:
            self.logger.log_mode_change(MODE_NAMES[previous_mode], MODE_NAMES[mode], int(previous.pc))

        fault = int(self.state.fault)
        if previous_mode == RUNNING and fault != FAULT_NONE:
            self._report_fault(fault, int(previous.pc), instruction)
        return instruction

    def _report_fault(self, fault: int, pc: int, instruction: int):
        kind, error_cls, level = FAULTS[fault]
        self.logger.log_fault(kind, pc, instruction, level=level)
        if fault != FAULT_UNKNOWN_OPCODE or self.strict:
            raise error_cls(pc, instruction)

    def run(self, cycles: int) -> int:
        """Step up to ``cycles`` times, stopping early once halted.

        Returns:
            Number of cycles actually run
        """
        start = time.time()
        ran = 0
        for _ in range(cycles):
            if self.is_halted:
                break
            self.step()
            ran += 1
        self.logger.debug(f"Ran {ran} cycles in {time.time() - start:.3f}s")
        return ran

    def run_frame(self, instructions_per_frame: int = 10) -> int:
        """Run one 60 Hz frame: a batch of cycles followed by one timer tick."""
        if instructions_per_frame <= 0:
            raise ValueError(f"instructions_per_frame must be positive, got {instructions_per_frame}")
        ran = self.run(instructions_per_frame)
        self.tick_timers()
        return ran

    def tick_timers(self):
        self.state = tick_timers(self.state)

    def set_key(self, index: int, pressed: bool):
        """Report a key transition from the host input layer.

        Raises:
            ValueError: if ``index`` is not in 0-15
        """
        self.state = set_key(self.state, index, pressed)

    def release_keys(self):
        """Mark every key as released, e.g. when the host window loses focus."""
        self.state = release_all(self.state)

    def halt(self):
        """Stop executing until :meth:`resume` is called."""
        if not self.is_halted:
            self.logger.log_mode_change(self.mode_name, MODE_NAMES[HALTED], self.pc)
            self.state = self.state.replace(mode=jnp.asarray(HALTED, dtype=jnp.uint8))

    def resume(self):
        """Leave HALTED and clear any recorded fault.

        After a stack fault PC still points at the faulting instruction, so
        resuming without fixing the state raises the same error again.
        """
        if self.is_halted:
            self.logger.log_mode_change(self.mode_name, MODE_NAMES[RUNNING], self.pc)
            self.state = self.state.replace(
                mode=jnp.asarray(RUNNING, dtype=jnp.uint8),
                fault=jnp.asarray(FAULT_NONE, dtype=jnp.uint8),
            )

    def consume_redraw(self) -> bool:
        """Return the redraw flag and clear it."""
        redraw = self.redraw
        if redraw:
            self.state = self.state.replace(draw_flag=jnp.zeros((), dtype=jnp.bool_))
        return redraw

    def read_memory(self, address: int, length: int = 1) -> np.ndarray:
        if address < 0 or address + length > self.state.memory.shape[0]:
            raise ValueError(f"Cannot read {length} bytes at 0x{address:03X}")
        return np.asarray(self.state.memory[address:address + length])

    @property
    def frame(self) -> np.ndarray:
        """Framebuffer as a ``bool[32, 64]`` array, row-major, origin top-left."""
        return np.asarray(self.state.display)

    @property
    def redraw(self) -> bool:
        return bool(self.state.draw_flag)

    @property
    def sound_active(self) -> bool:
        return bool(sound_active(self.state))

    @property
    def pc(self) -> int:
        return int(self.state.pc)

    @property
    def index(self) -> int:
        """The I register."""
        return int(self.state.I)

    @property
    def registers(self) -> np.ndarray:
        return np.asarray(self.state.V)

    @property
    def delay_timer(self) -> int:
        return int(self.state.delay_timer)

    @property
    def sound_timer(self) -> int:
        return int(self.state.sound_timer)

    @property
    def stack_depth(self) -> int:
        return int(depth(self.state.stack))

    @property
    def mode(self) -> int:
        return int(self.state.mode)

    @property
    def mode_name(self) -> str:
        return MODE_NAMES[self.mode]

    @property
    def is_blocked(self) -> bool:
        return self.mode == BLOCKED_ON_KEY

    @property
    def is_halted(self) -> bool:
        return self.mode == HALTED
