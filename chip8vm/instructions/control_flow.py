"""CHIP-8 control flow instructions."""

import jax
import jax.lax
import jax.numpy as jnp
from chip8vm.state import EmulatorState
from chip8vm.decode import DecodedInstruction
from chip8vm.stack import push
from chip8vm.constants import FAULT_STACK_OVERFLOW
from chip8vm.instructions.dispatch import advance, jump_to, make_dispatcher
from chip8vm.instructions.system import halt_with_fault


def execute_jump(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """1NNN - Jump to address NNN."""
    return jump_to(state, instruction.nnn)


def execute_call(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """2NNN - Call subroutine at NNN, pushing the address of this instruction."""
    stack, overflow = push(state.stack, state.pc)
    return jax.lax.cond(
        overflow,
        lambda s: halt_with_fault(s, FAULT_STACK_OVERFLOW),
        lambda s: execute_jump(s.replace(stack=stack), instruction),
        state
    )


def make_skip_instruction(condition_fn):
    """Factory for skip instructions."""
    def skip_instruction(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
        return advance(state, skip=condition_fn(state, instruction))
    return skip_instruction


execute_skip_if_equal_immediate = make_skip_instruction(
    lambda state, inst: state.V[inst.x] == inst.nn
)

execute_skip_if_not_equal_immediate = make_skip_instruction(
    lambda state, inst: state.V[inst.x] != inst.nn
)

execute_skip_if_equal_register = make_skip_instruction(
    lambda state, inst: state.V[inst.x] == state.V[inst.y]
)

execute_skip_if_not_equal_register = make_skip_instruction(
    lambda state, inst: state.V[inst.x] != state.V[inst.y]
)

execute_skip_if_key_pressed = make_skip_instruction(
    lambda state, inst: state.keypad[state.V[inst.x] & 0xF]
)

execute_skip_if_key_not_pressed = make_skip_instruction(
    lambda state, inst: ~state.keypad[state.V[inst.x] & 0xF]
)


def execute_jump_with_offset(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """BNNN - Jump to address NNN + V0."""
    return jump_to(state, instruction.nnn + jnp.astype(state.V[0], jnp.uint16))


# 5XY0 and 9XY0 only exist with a zero low nibble.
execute_skip_if_equal_register_family = make_dispatcher(
    {0x0: execute_skip_if_equal_register}, lambda instruction: instruction.n, 16
)

execute_skip_if_not_equal_register_family = make_dispatcher(
    {0x0: execute_skip_if_not_equal_register}, lambda instruction: instruction.n, 16
)

KEY_INSTRUCTIONS = {
    0x9E: execute_skip_if_key_pressed,
    0xA1: execute_skip_if_key_not_pressed,
}

execute_skip_if_key = make_dispatcher(KEY_INSTRUCTIONS, lambda instruction: instruction.nn, 256)
