"""Main CHIP-8 execution engine."""

import os

import jax
import jax.lax
import jax.numpy as jnp
import numpy as np
from chip8vm.state import EmulatorState
from chip8vm.decode import decode
from chip8vm.constants import PROGRAM_START, MAX_PROGRAM_SIZE, ADDRESS_MASK, FAULT_NONE
from chip8vm.exceptions import OutOfBoundsError
from chip8vm.instructions.system import execute_system_instruction
from chip8vm.instructions.control_flow import (
    execute_jump, execute_call, execute_skip_if_equal_immediate,
    execute_skip_if_not_equal_immediate, execute_skip_if_equal_register_family,
    execute_skip_if_not_equal_register_family, execute_jump_with_offset, execute_skip_if_key
)
from chip8vm.instructions.alu import execute_alu_operation
from chip8vm.instructions.memory import execute_set, execute_add, execute_set_index, execute_random
from chip8vm.instructions.display import execute_display
from chip8vm.instructions.misc import execute_misc_instruction, poll_key

# Indexed by the top nibble of the instruction
FAMILY_TABLE = [
    execute_system_instruction,
    execute_jump,
    execute_call,
    execute_skip_if_equal_immediate,
    execute_skip_if_not_equal_immediate,
    execute_skip_if_equal_register_family,
    execute_set,
    execute_add,
    execute_alu_operation,
    execute_skip_if_not_equal_register_family,
    execute_set_index,
    execute_jump_with_offset,
    execute_random,
    execute_display,
    execute_skip_if_key,
    execute_misc_instruction,
]


@jax.jit
def execute(state: EmulatorState, instruction: int) -> EmulatorState:
    """Execute a single CHIP-8 instruction located at PC.

    Handlers set the next PC themselves. The fault field is reset first so it
    only ever describes this instruction.
    """
    decoded_instruction = decode(instruction)
    state = state.replace(fault=jnp.asarray(FAULT_NONE, dtype=jnp.uint8))

    return jax.lax.switch(
        jnp.astype(decoded_instruction.family, jnp.int32),
        FAMILY_TABLE,
        state, decoded_instruction
    )


def _pack_u16(high: jnp.uint8, low: jnp.uint8) -> jnp.uint16:
    """Pack two bytes into uint16."""
    return (high.astype(jnp.uint16) << 8) | low.astype(jnp.uint16)


def fetch(state: EmulatorState) -> jnp.uint16:
    """Read the instruction at PC without moving it."""
    address = jnp.astype(state.pc, jnp.int32)
    return _pack_u16(state.memory[address & ADDRESS_MASK], state.memory[(address + 1) & ADDRESS_MASK])


def _halted(state: EmulatorState) -> EmulatorState:
    return state


@jax.jit
def step(state: EmulatorState) -> tuple[EmulatorState, jnp.uint16]:
    """Run one cycle according to the engine mode.

    RUNNING fetches and executes; BLOCKED_ON_KEY only polls the keypad;
    HALTED leaves the state untouched. Returns the new state and the
    instruction found at the pre-step PC.
    """
    instruction = fetch(state)
    new_state = jax.lax.switch(
        jnp.astype(state.mode, jnp.int32),
        [lambda s: execute(s, instruction), poll_key, _halted],
        state
    )
    return new_state, instruction


def program_image(data) -> np.ndarray:
    """Normalize bytes-like data or an iterable of integers to a flat uint8 array.

    Raises:
        ValueError: if the values are not integers in 0-255
    """
    if isinstance(data, (bytes, bytearray, memoryview)):
        return np.frombuffer(bytes(data), dtype=np.uint8)
    if not isinstance(data, (np.ndarray, jax.Array)):
        try:
            data = list(data)
        except TypeError:
            raise ValueError(f"Expected bytes or an iterable of integers, got {type(data).__name__}") from None
    image = np.asarray(data).reshape(-1)
    if image.size == 0:
        return image.astype(np.uint8)
    if not np.issubdtype(image.dtype, np.integer):
        raise ValueError(f"Program bytes must be integers, got dtype {image.dtype}")
    if image.min() < 0 or image.max() > 0xFF:
        raise ValueError("Program bytes must be in the range 0-255")
    return image.astype(np.uint8)


def write_memory(state: EmulatorState, address: int, data) -> EmulatorState:
    """Copy raw bytes into memory at address.

    Raises:
        OutOfBoundsError: if the bytes do not fit below the top of memory
    """
    image = program_image(data)
    end = address + len(image)
    if address < 0 or end > state.memory.shape[0]:
        raise OutOfBoundsError(address, len(image), state.memory.shape[0])
    return state.replace(memory=state.memory.at[address:end].set(jnp.asarray(image)))


def load_program(state: EmulatorState, program) -> EmulatorState:
    """Load a program image at 0x200 and point PC at it.

    Registers, timers and the display are left alone.

    Raises:
        OutOfBoundsError: if the image is larger than the 3584 bytes above 0x200
    """
    image = program_image(program)
    if len(image) > MAX_PROGRAM_SIZE:
        raise OutOfBoundsError(PROGRAM_START, len(image), PROGRAM_START + MAX_PROGRAM_SIZE)
    state = write_memory(state, PROGRAM_START, image)
    return state.replace(pc=jnp.asarray(PROGRAM_START, dtype=jnp.uint16))


def load_rom(state: EmulatorState, filename: str | os.PathLike) -> EmulatorState:
    """Load ROM data into CHIP-8 memory starting at 0x200."""
    with open(filename, 'rb') as f:
        rom_data = f.read()
    return load_program(state, rom_data)
