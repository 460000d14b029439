"""Run many independent machines in lock step with jax.vmap."""

import time

import jax
import numpy as np

from chip8vm import create_state, load_program, batch_render
from chip8vm.runner import run_frames

# Scatter random hex digits over the screen forever
PROGRAM = bytes([
    0x00, 0xE0,  # 200: clear
    0xC0, 0x0F,  # 202: V0 = rand & 0xF
    0xF0, 0x29,  # 204: I = glyph(V0)
    0xC1, 0x3F,  # 206: V1 = rand & 0x3F
    0xC2, 0x1F,  # 208: V2 = rand & 0x1F
    0xD1, 0x25,  # 20A: draw 5 rows at (V1, V2)
    0x12, 0x02,  # 20C: jump 202
])


def make_machine(rng):
    return load_program(create_state(rng), PROGRAM)


if __name__ == "__main__":
    num_machines = 64
    num_frames = 120

    rngs = jax.random.split(jax.random.PRNGKey(0), num_machines)
    states = jax.vmap(make_machine)(rngs)

    run_batch = jax.jit(jax.vmap(lambda s: run_frames(s, num_frames, instructions_per_frame=10)))

    start = time.perf_counter()
    final_states, frames = jax.block_until_ready(run_batch(states))
    print(f"First run incl. compilation (s): {time.perf_counter() - start:.2f}")

    start = time.perf_counter()
    final_states, frames = jax.block_until_ready(run_batch(states))
    elapsed = time.perf_counter() - start
    cycles = num_machines * num_frames * 10
    print(f"Execution time (s): {elapsed:.3f} ({cycles / elapsed:,.0f} instructions/s)")

    grid = batch_render(frames[:, -1], scale=2)
    print("Rendered grid:", grid.shape, "lit pixels per machine:", np.asarray(frames[:, -1]).sum(axis=(1, 2))[:8])
