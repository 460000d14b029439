"""CHIP-8 ALU operations (8xxx).

Every operation maps ``(vx, vy, vf)`` to ``(result, vf)``. Operations that do
not report a flag hand ``vf`` back unchanged. The flag is written before the
result, so with X = F the result is what remains in VF.
"""

import jax.numpy as jnp
from chip8vm.state import EmulatorState
from chip8vm.decode import DecodedInstruction
from chip8vm.constants import FLAG_REGISTER
from chip8vm.instructions.dispatch import advance, make_dispatcher


def _byte(value) -> jnp.ndarray:
    return jnp.astype(value & 0xFF, jnp.uint8)


def alu_set(vx, vy, vf):
    """8XY0 - Set: VX = VY."""
    return vy, vf


def alu_or(vx, vy, vf):
    """8XY1 - Binary OR: VX |= VY."""
    return vx | vy, vf


def alu_and(vx, vy, vf):
    """8XY2 - Binary AND: VX &= VY."""
    return vx & vy, vf


def alu_xor(vx, vy, vf):
    """8XY3 - Logical XOR: VX ^= VY."""
    return vx ^ vy, vf


def alu_add(vx, vy, vf):
    """8XY4 - Add: VX += VY, VF = carry."""
    result = jnp.astype(vx, jnp.int32) + jnp.astype(vy, jnp.int32)
    carry = jnp.astype(result > 0xFF, jnp.uint8)
    return _byte(result), carry


def alu_sub_xy(vx, vy, vf):
    """8XY5 - Subtract: VX -= VY, VF = NOT borrow."""
    no_borrow = jnp.astype(vy <= vx, jnp.uint8)
    result = jnp.astype(vx, jnp.int32) - jnp.astype(vy, jnp.int32)
    return _byte(result), no_borrow


def alu_shift_right(vx, vy, vf):
    """8XY6 - Shift right: VF = LSB of VX, VX >>= 1."""
    return vx >> 1, vx & 1


def alu_sub_yx(vx, vy, vf):
    """8XY7 - Subtract: VX = VY - VX, VF = NOT borrow."""
    no_borrow = jnp.astype(vx <= vy, jnp.uint8)
    result = jnp.astype(vy, jnp.int32) - jnp.astype(vx, jnp.int32)
    return _byte(result), no_borrow


def alu_shift_left(vx, vy, vf):
    """8XYE - Shift left: VF = MSB of VX, VX <<= 1."""
    return _byte(jnp.astype(vx, jnp.int32) << 1), vx >> 7


def make_alu_instruction(operation):
    """Wrap a register operation into an instruction handler."""
    def alu_instruction(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
        result, vf = operation(state.V[instruction.x], state.V[instruction.y], state.V[FLAG_REGISTER])
        new_V = state.V.at[FLAG_REGISTER].set(jnp.astype(vf, jnp.uint8))
        new_V = new_V.at[instruction.x].set(jnp.astype(result, jnp.uint8))
        return advance(state.replace(V=new_V))
    return alu_instruction


ALU_INSTRUCTIONS = {
    0x0: make_alu_instruction(alu_set),
    0x1: make_alu_instruction(alu_or),
    0x2: make_alu_instruction(alu_and),
    0x3: make_alu_instruction(alu_xor),
    0x4: make_alu_instruction(alu_add),
    0x5: make_alu_instruction(alu_sub_xy),
    0x6: make_alu_instruction(alu_shift_right),
    0x7: make_alu_instruction(alu_sub_yx),
    0xE: make_alu_instruction(alu_shift_left),
}

execute_alu_operation = make_dispatcher(ALU_INSTRUCTIONS, lambda instruction: instruction.n, 16)
