"""CHIP-8 system instructions (0x0xxx)."""

import jax
import jax.lax
import jax.numpy as jnp
from chip8vm.state import EmulatorState
from chip8vm.decode import DecodedInstruction
from chip8vm.stack import pop
from chip8vm.constants import HALTED, FAULT_STACK_UNDERFLOW
from chip8vm.instructions.dispatch import advance, jump_to, make_dispatcher


def halt_with_fault(state: EmulatorState, fault: int) -> EmulatorState:
    """Stop the engine on a structural fault, leaving PC on the faulting instruction."""
    return state.replace(
        mode=jnp.asarray(HALTED, dtype=jnp.uint8),
        fault=jnp.asarray(fault, dtype=jnp.uint8),
    )


def execute_clear_screen(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """00E0 - Clear display."""
    return advance(state.replace(
        display=jnp.zeros_like(state.display),
        draw_flag=jnp.ones((), dtype=jnp.bool_),
    ))


def execute_return(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """00EE - Return from subroutine.

    The stack holds the address of the CALL itself, so execution resumes on
    the instruction that follows it.
    """
    stack, address, underflow = pop(state.stack)
    return jax.lax.cond(
        underflow,
        lambda s: halt_with_fault(s, FAULT_STACK_UNDERFLOW),
        lambda s: advance(jump_to(s.replace(stack=stack), address)),
        state
    )


SYSTEM_INSTRUCTIONS = {
    0xE0: execute_clear_screen,
    0xEE: execute_return,
}

# 0NNN machine-code calls are not part of the instruction set, only 00xx routes.
execute_system_instruction = make_dispatcher(
    SYSTEM_INSTRUCTIONS,
    lambda instruction: jnp.where(instruction.nnn >> 8 == 0, instruction.nn, 0),
    256,
)
