"""CHIP-8 hexadecimal keypad latch."""

import jax.numpy as jnp
from chip8vm.state import EmulatorState
from chip8vm.constants import NUM_KEYS


def set_key(state: EmulatorState, index: int, pressed: bool) -> EmulatorState:
    """Record the host-reported state of key ``index`` (0-F)."""
    if not 0 <= index < NUM_KEYS:
        raise ValueError(f"Key index must be in 0-{NUM_KEYS - 1}, got {index}")
    return state.replace(keypad=state.keypad.at[index].set(bool(pressed)))


def set_keypad(state: EmulatorState, keys) -> EmulatorState:
    """Replace the whole keypad with 16 booleans, e.g. from a host polling all keys at once."""
    keypad = jnp.asarray(keys, dtype=jnp.bool_)
    if keypad.shape != (NUM_KEYS,):
        raise ValueError(f"Expected {NUM_KEYS} key states, got shape {keypad.shape}")
    return state.replace(keypad=keypad)


def release_all(state: EmulatorState) -> EmulatorState:
    """Release every key, for hosts that lose track of key-up events."""
    return state.replace(keypad=jnp.zeros_like(state.keypad))
