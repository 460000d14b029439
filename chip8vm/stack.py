"""CHIP-8 call stack operations.

Both operations report a bounds violation instead of touching the stack, so
callers decide how the fault surfaces.
"""

import jax.numpy as jnp
from chip8vm.constants import ADDRESS_MASK, STACK_SIZE
from chip8vm.state import StackState


def push(stack: StackState, address: jnp.ndarray) -> tuple[StackState, jnp.ndarray]:
    """Push address onto stack, returning the new stack and an overflow flag."""
    overflow = stack.pointer >= STACK_SIZE
    slot = jnp.minimum(stack.pointer, STACK_SIZE - 1)
    masked_address = jnp.astype(address & ADDRESS_MASK, jnp.uint16)
    new_data = jnp.where(overflow, stack.data, stack.data.at[slot].set(masked_address))
    new_pointer = jnp.where(overflow, stack.pointer, stack.pointer + 1)
    return stack.replace(data=new_data, pointer=new_pointer), overflow


def pop(stack: StackState) -> tuple[StackState, jnp.ndarray, jnp.ndarray]:
    """Pop address from stack, returning the new stack, the address and an underflow flag."""
    underflow = stack.pointer <= 0
    slot = jnp.maximum(stack.pointer - 1, 0)
    popped_address = stack.data[slot]
    new_data = jnp.where(underflow, stack.data, stack.data.at[slot].set(0))
    new_pointer = jnp.where(underflow, stack.pointer, stack.pointer - 1)
    return stack.replace(data=new_data, pointer=new_pointer), popped_address, underflow


def depth(stack: StackState) -> jnp.ndarray:
    """Number of return addresses currently on the stack."""
    return stack.pointer
