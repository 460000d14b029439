"""Shared helpers for instruction handlers.

Handlers take ``(state, instruction)`` and return the next state, including
the new program counter. Families with several instructions route through a
secondary table built by :func:`make_dispatcher`.
"""

from typing import Callable

import jax
import jax.lax
import jax.numpy as jnp
from chip8vm.state import EmulatorState
from chip8vm.decode import DecodedInstruction
from chip8vm.constants import FAULT_UNKNOWN_OPCODE

Handler = Callable[[EmulatorState, DecodedInstruction], EmulatorState]


def advance(state: EmulatorState, skip=False) -> EmulatorState:
    """Move PC past the current instruction, and past the next one if skip holds."""
    offset = jnp.where(skip, 4, 2)
    return state.replace(pc=jnp.astype(state.pc + offset, jnp.uint16))


def jump_to(state: EmulatorState, address) -> EmulatorState:
    return state.replace(pc=jnp.astype(address, jnp.uint16))


def execute_unknown(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """Unrecognized instruction: record the fault and step over it."""
    return advance(state.replace(fault=jnp.asarray(FAULT_UNKNOWN_OPCODE, dtype=jnp.uint8)))


def make_dispatcher(
    handlers: dict[int, Handler],
    selector: Callable[[DecodedInstruction], jnp.ndarray],
    size: int,
) -> Handler:
    """Build a dense jump table from a sparse ``{selector: handler}`` mapping.

    Selector values without a handler fall through to :func:`execute_unknown`.
    """
    selectors = sorted(handlers)
    branches = [handlers[key] for key in selectors] + [execute_unknown]
    lookup = [len(selectors)] * size
    for index, key in enumerate(selectors):
        lookup[key] = index
    lookup = jnp.array(lookup, dtype=jnp.int32)

    def dispatch(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
        return jax.lax.switch(lookup[selector(instruction)], branches, state, instruction)

    return dispatch
