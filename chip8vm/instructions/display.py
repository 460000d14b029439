"""CHIP-8 display operations."""

import jax.numpy as jnp
from chip8vm.state import EmulatorState
from chip8vm.decode import DecodedInstruction
from chip8vm.constants import SCREEN_WIDTH, SCREEN_HEIGHT, SPRITE_WIDTH, ADDRESS_MASK, FLAG_REGISTER
from chip8vm.instructions.dispatch import advance

# Pre-computed coordinate grids for display operations, row-major like the display
yy, xx = jnp.meshgrid(jnp.arange(SCREEN_HEIGHT), jnp.arange(SCREEN_WIDTH), indexing='ij')


def sprite_mask(memory: jnp.ndarray, address, x, y, height) -> jnp.ndarray:
    """Rasterize an 8-pixel wide sprite onto a full-screen boolean mask.

    The sprite wraps around both screen edges.
    """
    col_offset = (xx - jnp.astype(x, jnp.int32)) % SCREEN_WIDTH
    row_offset = (yy - jnp.astype(y, jnp.int32)) % SCREEN_HEIGHT
    in_sprite = (col_offset < SPRITE_WIDTH) & (row_offset < jnp.astype(height, jnp.int32))

    sprite_rows = memory[(jnp.astype(address, jnp.int32) + row_offset) & ADDRESS_MASK]
    shift = jnp.clip(SPRITE_WIDTH - 1 - col_offset, 0, SPRITE_WIDTH - 1)
    return ((jnp.astype(sprite_rows, jnp.int32) >> shift) & 1).astype(jnp.bool_) & in_sprite


def execute_display(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """DXYN - XOR an N-row sprite from memory[I] at (VX, VY).

    VF is set when any lit pixel gets switched off.
    """
    sprite = sprite_mask(state.memory, state.I, state.V[instruction.x], state.V[instruction.y], instruction.n)
    collision = jnp.any(state.display & sprite)

    return advance(state.replace(
        display=state.display ^ sprite,
        V=state.V.at[FLAG_REGISTER].set(jnp.astype(collision, jnp.uint8)),
        draw_flag=jnp.ones((), dtype=jnp.bool_),
    ))
