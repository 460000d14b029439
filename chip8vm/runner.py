"""Headless, fully jitted execution loops.

These run whole batches of cycles inside ``jax.lax.scan`` and pair naturally
with ``jax.vmap`` to advance many independent machines at once. Faults are
not raised here: a stack fault halts the machine, which then stays put, and
the final ``fault``/``mode`` fields can be inspected afterwards.
"""

from functools import partial

import jax
import jax.numpy as jnp

from chip8vm.emulator import step
from chip8vm.logging import scan_with_progress
from chip8vm.state import EmulatorState
from chip8vm.timers import tick_timers


def run_instruction(state: EmulatorState, _):
    state, _ = step(state)
    return state, None


@partial(jax.jit, static_argnums=1)
def run_instructions(state: EmulatorState, n: int) -> EmulatorState:
    """Run ``n`` cycles without ticking the timers."""
    state, _ = jax.lax.scan(run_instruction, state, length=n)
    return state


@partial(jax.jit, static_argnums=1)
def run_frame(state: EmulatorState, instructions_per_frame: int) -> EmulatorState:
    """Run one 60 Hz frame: a batch of cycles, then a single timer tick."""
    return tick_timers(run_instructions(state, instructions_per_frame))


def run_frames(
    state: EmulatorState,
    num_frames: int,
    instructions_per_frame: int = 10,
    show_progress: bool = False,
) -> tuple[EmulatorState, jnp.ndarray]:
    """Run ``num_frames`` frames and collect the display after each one.

    Returns:
        Tuple of:
            - state: Final emulator state
            - frames: ``bool[num_frames, 32, 64]`` displays, one per frame
    """
    if num_frames <= 0 or instructions_per_frame <= 0:
        raise ValueError("num_frames and instructions_per_frame must be positive")

    def frame_step(state, _):
        state = run_frame(state, instructions_per_frame)
        return state, state.display

    if show_progress:
        frame_step = scan_with_progress(num_frames)(frame_step)

    @jax.jit
    def _scan(state):
        return jax.lax.scan(frame_step, state, jnp.arange(num_frames))

    return _scan(state)
