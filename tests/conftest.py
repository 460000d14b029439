"""Test configuration and fixtures for CHIP-8 machine tests."""

import io

import pytest
import jax.numpy as jnp
from chip8vm import create_state, Chip8
from chip8vm.logging import EmulatorLogger


@pytest.fixture
def fresh_state():
    """Provide a fresh emulator state for each test."""
    return create_state()


@pytest.fixture
def log_stream():
    return io.StringIO()


@pytest.fixture
def machine(log_stream):
    """Provide a machine facade whose log output is captured."""
    logger = EmulatorLogger(log_level="DEBUG", use_colors=False, stream=log_stream)
    return Chip8(logger=logger)


def setup_sprite_in_memory(state, address, sprite_bytes):
    """Helper to put sprite data in memory."""
    return state.replace(
        memory=state.memory.at[address:address+len(sprite_bytes)].set(
            jnp.array(sprite_bytes, dtype=jnp.uint8)
        )
    )


def set_registers(state, **registers):
    """Helper to set registers by name, e.g. ``set_registers(state, V1=0x10, VF=1)``."""
    V = state.V
    for name, value in registers.items():
        V = V.at[int(name[1:], 16)].set(value)
    return state.replace(V=V)
