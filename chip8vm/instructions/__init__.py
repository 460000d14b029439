"""CHIP-8 instruction families."""
