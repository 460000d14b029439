"""CHIP-8 delay and sound timers.

Both count down at a fixed external rate (nominally 60 Hz) driven by the
host, independently of how fast instructions execute.
"""

import jax
import jax.numpy as jnp
from chip8vm.state import EmulatorState


def _count_down(timer: jnp.ndarray) -> jnp.ndarray:
    return jnp.where(timer > 0, timer - 1, timer).astype(jnp.uint8)


@jax.jit
def tick_timers(state: EmulatorState) -> EmulatorState:
    """Decrement both timers by one, stopping at zero."""
    return state.replace(
        delay_timer=_count_down(state.delay_timer),
        sound_timer=_count_down(state.sound_timer),
    )


def sound_active(state: EmulatorState) -> jnp.ndarray:
    """Whether the host should be playing the tone."""
    return state.sound_timer > 0
