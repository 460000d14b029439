"""Tests for control flow instructions."""

import pytest
from chip8vm import execute, PROGRAM_START
from chip8vm.constants import FAULT_UNKNOWN_OPCODE
from chip8vm.keypad import set_key
from conftest import set_registers

ADVANCE = PROGRAM_START + 2
SKIP = PROGRAM_START + 4


class TestJump:
    """Test jump instructions."""

    def test_execute_jump(self, fresh_state):
        """Test 1NNN - Jump to address."""
        state = execute(fresh_state, 0x1001)
        assert state.pc == 1

    def test_jump_to_top_of_memory(self, fresh_state):
        state = execute(fresh_state, 0x1FFE)
        assert state.pc == 0xFFE

    def test_jump_with_offset(self, fresh_state):
        """BNNN - Jump to NNN + V0."""
        state = execute(fresh_state, 0x6010)  # V0 = 0x10
        state = execute(state, 0xB250)
        assert state.pc == 0x260

    def test_jump_with_offset_ignores_other_registers(self, fresh_state):
        state = set_registers(fresh_state, V0=0x02, V2=0x30)
        state = execute(state, 0xB250)
        assert state.pc == 0x252


class TestSkipInstructions:
    """Test all skip instruction variants."""

    @pytest.mark.parametrize("value,expected_pc", [(0x42, SKIP), (0x41, ADVANCE)])
    def test_skip_if_equal_immediate(self, fresh_state, value, expected_pc):
        """3XNN - Skip when VX == NN."""
        state = set_registers(fresh_state, V5=value)
        state = execute(state, 0x3542)
        assert state.pc == expected_pc

    @pytest.mark.parametrize("value,expected_pc", [(0x10, SKIP), (0x20, ADVANCE)])
    def test_skip_if_not_equal_immediate(self, fresh_state, value, expected_pc):
        """4XNN - Skip when VX != NN."""
        state = set_registers(fresh_state, V3=value)
        state = execute(state, 0x4320)
        assert state.pc == expected_pc

    @pytest.mark.parametrize("v2,expected_pc", [(0x55, SKIP), (0x44, ADVANCE)])
    def test_skip_if_equal_register(self, fresh_state, v2, expected_pc):
        """5XY0 - Skip when VX == VY."""
        state = set_registers(fresh_state, V1=0x55, V2=v2)
        state = execute(state, 0x5120)
        assert state.pc == expected_pc

    @pytest.mark.parametrize("v8,expected_pc", [(0xBB, SKIP), (0xAA, ADVANCE)])
    def test_skip_if_not_equal_register(self, fresh_state, v8, expected_pc):
        """9XY0 - Skip when VX != VY."""
        state = set_registers(fresh_state, V7=0xAA, V8=v8)
        state = execute(state, 0x9780)
        assert state.pc == expected_pc

    def test_skip_with_zero_values(self, fresh_state):
        state = execute(fresh_state, 0x3000)  # V0 == 0
        assert state.pc == SKIP

    def test_skip_boundary_values(self, fresh_state):
        state = set_registers(fresh_state, V0=0xFF)
        state = execute(state, 0x30FF)
        assert state.pc == SKIP

    @pytest.mark.parametrize("instruction", [0x5121, 0x512F, 0x9781, 0x978E])
    def test_register_skips_need_zero_low_nibble(self, fresh_state, instruction):
        state = execute(fresh_state, instruction)
        assert state.fault == FAULT_UNKNOWN_OPCODE
        assert state.pc == ADVANCE


class TestKeySkips:
    """Test EX9E / EXA1."""

    def test_skip_if_key_pressed(self, fresh_state):
        state = set_registers(fresh_state, V4=0xA)
        state = set_key(state, 0xA, True)

        assert execute(state, 0xE49E).pc == SKIP
        assert execute(state, 0xE4A1).pc == ADVANCE

    def test_skip_if_key_not_pressed(self, fresh_state):
        state = set_registers(fresh_state, V4=0xA)
        state = set_key(state, 0xB, True)  # A different key

        assert execute(state, 0xE49E).pc == ADVANCE
        assert execute(state, 0xE4A1).pc == SKIP

    def test_key_latch_is_not_cleared_by_execution(self, fresh_state):
        state = set_key(fresh_state, 0x3, True)
        state = execute(state, 0xE09E)
        assert state.keypad[0x3]

    def test_unknown_key_instruction(self, fresh_state):
        state = execute(fresh_state, 0xE19F)
        assert state.fault == FAULT_UNKNOWN_OPCODE
        assert state.pc == ADVANCE
