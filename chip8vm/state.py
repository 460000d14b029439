"""CHIP-8 machine state structures."""

import jax
import jax.numpy as jnp
from flax.struct import dataclass, PyTreeNode

from chip8vm.constants import (
    MEMORY_SIZE, PROGRAM_START, FONT_START, FONT_DATA, SCREEN_WIDTH, SCREEN_HEIGHT,
    STACK_SIZE, NUM_REGISTERS, NUM_KEYS, RUNNING, FAULT_NONE,
)


@dataclass(frozen=True)
class StackState:
    """Return addresses for subroutine calls."""
    data: jnp.ndarray     # uint16[STACK_SIZE]
    pointer: jnp.ndarray  # int32, number of occupied slots


class EmulatorState(PyTreeNode):
    """Complete state of one CHIP-8 machine.

    Every field is a JAX array so the whole machine can be passed through
    ``jax.jit``, ``jax.lax.scan`` and ``jax.vmap`` as a single pytree.
    The display is stored row-major as ``display[y, x]``.
    """
    rng: jax.Array
    memory: jnp.ndarray        # uint8[4096]
    pc: jnp.ndarray            # uint16
    display: jnp.ndarray       # bool[32, 64]
    stack: StackState
    delay_timer: jnp.ndarray   # uint8
    sound_timer: jnp.ndarray   # uint8
    keypad: jnp.ndarray        # bool[16]
    V: jnp.ndarray             # uint8[16]
    I: jnp.ndarray             # uint16
    draw_flag: jnp.ndarray     # bool
    mode: jnp.ndarray          # uint8, RUNNING / BLOCKED_ON_KEY / HALTED
    wait_register: jnp.ndarray  # uint8, target of a pending FX0A
    wait_keys: jnp.ndarray     # bool[16], keypad snapshot while blocked
    fault: jnp.ndarray         # uint8, outcome of the last executed instruction


def create_stack() -> StackState:
    """Create an empty call stack."""
    return StackState(
        data=jnp.zeros(STACK_SIZE, dtype=jnp.uint16),
        pointer=jnp.zeros((), dtype=jnp.int32),
    )


def create_state(rng: jax.Array = jax.random.PRNGKey(0)) -> EmulatorState:
    """Create a freshly reset machine with the font glyphs loaded."""
    memory = jnp.zeros(MEMORY_SIZE, dtype=jnp.uint8)
    memory = memory.at[FONT_START:FONT_START + len(FONT_DATA)].set(jnp.array(FONT_DATA, dtype=jnp.uint8))
    return EmulatorState(
        rng=rng,
        memory=memory,
        pc=jnp.asarray(PROGRAM_START, dtype=jnp.uint16),
        display=jnp.zeros((SCREEN_HEIGHT, SCREEN_WIDTH), dtype=jnp.bool_),
        stack=create_stack(),
        delay_timer=jnp.zeros((), dtype=jnp.uint8),
        sound_timer=jnp.zeros((), dtype=jnp.uint8),
        keypad=jnp.zeros(NUM_KEYS, dtype=jnp.bool_),
        V=jnp.zeros(NUM_REGISTERS, dtype=jnp.uint8),
        I=jnp.zeros((), dtype=jnp.uint16),
        draw_flag=jnp.zeros((), dtype=jnp.bool_),
        mode=jnp.asarray(RUNNING, dtype=jnp.uint8),
        wait_register=jnp.zeros((), dtype=jnp.uint8),
        wait_keys=jnp.zeros(NUM_KEYS, dtype=jnp.bool_),
        fault=jnp.asarray(FAULT_NONE, dtype=jnp.uint8),
    )
