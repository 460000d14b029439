"""CHIP-8 instruction decoding."""

from chex import dataclass


@dataclass(frozen=True)
class DecodedInstruction:
    """16-bit instruction split into its fixed operand fields."""
    raw: int
    family: int  # Bits 12-15, selects the instruction group
    x: int       # Bits 8-11 (VX register)
    y: int       # Bits 4-7 (VY register)
    n: int       # Bits 0-3 (4-bit immediate / sub-selector)
    nn: int      # Bits 0-7 (8-bit immediate / sub-selector)
    nnn: int     # Bits 0-11 (12-bit address)


def decode(instruction: int) -> DecodedInstruction:
    """Decode 16-bit instruction into components."""
    return DecodedInstruction(
        raw=instruction,
        family=(instruction & 0xF000) >> 12,
        x=(instruction & 0x0F00) >> 8,
        y=(instruction & 0x00F0) >> 4,
        n=instruction & 0x000F,
        nn=instruction & 0x00FF,
        nnn=instruction & 0x0FFF,
    )