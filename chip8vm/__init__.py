"""CHIP-8 virtual machine package."""

from chip8vm.state import EmulatorState, StackState, create_state
from chip8vm.emulator import execute, fetch, step, load_program, load_rom, write_memory, program_image
from chip8vm.decode import DecodedInstruction, decode
from chip8vm.timers import tick_timers, sound_active
from chip8vm.keypad import set_key, set_keypad, release_all
from chip8vm.machine import Chip8
from chip8vm.exceptions import (
    Chip8Error, OutOfBoundsError, ExecutionError, UnknownOpcodeError, StackOverflowError, StackUnderflowError,
)
from chip8vm.constants import *
from chip8vm.rendering import display_to_rgb, create_color_scheme, batch_render

__all__ = [
    "EmulatorState",
    "StackState",
    "create_state",
    "fetch",
    "execute",
    "step",
    "load_program",
    "load_rom",
    "write_memory",
    "program_image",
    "DecodedInstruction",
    "decode",
    "tick_timers",
    "sound_active",
    "set_key",
    "set_keypad",
    "release_all",
    "Chip8",
    "Chip8Error",
    "OutOfBoundsError",
    "ExecutionError",
    "UnknownOpcodeError",
    "StackOverflowError",
    "StackUnderflowError",
    "PROGRAM_START",
    "FONT_START",
    "SCREEN_WIDTH",
    "SCREEN_HEIGHT",
    "RUNNING",
    "BLOCKED_ON_KEY",
    "HALTED",
    "display_to_rgb",
    "create_color_scheme",
    "batch_render",
]
