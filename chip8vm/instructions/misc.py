"""CHIP-8 miscellaneous instructions (Fxxx)."""

import jax
import jax.lax
import jax.numpy as jnp
from chip8vm.state import EmulatorState
from chip8vm.decode import DecodedInstruction
from chip8vm.constants import (
    FONT_START, FONT_GLYPH_SIZE, ADDRESS_MASK, FLAG_REGISTER, NUM_REGISTERS, RUNNING, BLOCKED_ON_KEY,
)
from chip8vm.instructions.dispatch import advance, make_dispatcher


def execute_get_delay_timer(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX07 - Set VX to delay timer value."""
    return advance(state.replace(V=state.V.at[instruction.x].set(state.delay_timer)))


def execute_wait_for_key(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX0A - Suspend until a key goes down, see :func:`poll_key`.

    PC stays on this instruction while blocked.
    """
    return state.replace(
        mode=jnp.asarray(BLOCKED_ON_KEY, dtype=jnp.uint8),
        wait_register=jnp.astype(instruction.x, jnp.uint8),
        wait_keys=state.keypad,
    )


def poll_key(state: EmulatorState) -> EmulatorState:
    """Complete a pending FX0A if a key was pressed since the last poll."""
    newly_pressed = state.keypad & ~state.wait_keys

    def key_pressed_action(state):
        pressed_key = jnp.astype(jnp.argmax(newly_pressed), jnp.uint8)
        return advance(state.replace(
            V=state.V.at[state.wait_register].set(pressed_key),
            mode=jnp.asarray(RUNNING, dtype=jnp.uint8),
            wait_keys=jnp.zeros_like(state.wait_keys),
        ))

    def wait_action(state):
        return state.replace(wait_keys=state.keypad)

    return jax.lax.cond(jnp.any(newly_pressed), key_pressed_action, wait_action, state)


def execute_set_delay_timer(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX15 - Set delay timer to VX."""
    return advance(state.replace(delay_timer=state.V[instruction.x]))


def execute_set_sound_timer(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX18 - Set sound timer to VX."""
    return advance(state.replace(sound_timer=state.V[instruction.x]))


def execute_add_to_index(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX1E - Add VX to I, VF flags a result past 0xFFF."""
    total = jnp.astype(state.I, jnp.int32) + jnp.astype(state.V[instruction.x], jnp.int32)
    return advance(state.replace(
        I=jnp.astype(total & 0xFFFF, jnp.uint16),
        V=state.V.at[FLAG_REGISTER].set(jnp.astype(total > ADDRESS_MASK, jnp.uint8)),
    ))


def execute_font_character(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX29 - Set I to location of sprite for digit VX."""
    font_address = FONT_START + jnp.astype(state.V[instruction.x], jnp.uint16) * FONT_GLYPH_SIZE
    return advance(state.replace(I=jnp.astype(font_address, jnp.uint16)))


def execute_bcd_conversion(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX33 - Store BCD representation of VX at I, I+1, I+2."""
    value = state.V[instruction.x]

    digits = jnp.array([
        value // 100,
        (value // 10) % 10,
        value % 10
    ], dtype=jnp.uint8)

    indices = (jnp.astype(state.I, jnp.int32) + jnp.arange(3)) & ADDRESS_MASK
    return advance(state.replace(memory=state.memory.at[indices].set(digits)))


def _register_window(state: EmulatorState, instruction: DecodedInstruction):
    """Addresses I..I+15 and a mask selecting V0..VX."""
    register_mask = jnp.arange(NUM_REGISTERS) <= instruction.x
    addresses = (jnp.astype(state.I, jnp.int32) + jnp.arange(NUM_REGISTERS)) & ADDRESS_MASK
    return register_mask, addresses


def _bump_index(state: EmulatorState, instruction: DecodedInstruction) -> jnp.ndarray:
    return jnp.astype(jnp.astype(state.I, jnp.int32) + instruction.x + 1, jnp.uint16)


def execute_store_registers(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX55 - Store V0 through VX in memory starting at I, then I += X + 1."""
    register_mask, addresses = _register_window(state, instruction)
    new_values = jnp.where(register_mask, state.V, state.memory[addresses])
    return advance(state.replace(
        memory=state.memory.at[addresses].set(new_values),
        I=_bump_index(state, instruction),
    ))


def execute_load_registers(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX65 - Load V0 through VX from memory starting at I, then I += X + 1."""
    register_mask, addresses = _register_window(state, instruction)
    return advance(state.replace(
        V=jnp.where(register_mask, state.memory[addresses], state.V),
        I=_bump_index(state, instruction),
    ))


MISC_INSTRUCTIONS = {
    0x07: execute_get_delay_timer,
    0x0A: execute_wait_for_key,
    0x15: execute_set_delay_timer,
    0x18: execute_set_sound_timer,
    0x1E: execute_add_to_index,
    0x29: execute_font_character,
    0x33: execute_bcd_conversion,
    0x55: execute_store_registers,
    0x65: execute_load_registers,
}

execute_misc_instruction = make_dispatcher(MISC_INSTRUCTIONS, lambda instruction: instruction.nn, 256)
