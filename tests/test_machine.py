"""Tests for the stateful Chip8 facade."""

import pytest
from chip8vm import (
    Chip8, OutOfBoundsError, UnknownOpcodeError, StackOverflowError, StackUnderflowError,
    PROGRAM_START, RUNNING, BLOCKED_ON_KEY, HALTED,
)
from chip8vm.constants import FONT_DATA


class TestLoading:

    def test_power_on_state(self, machine):
        assert machine.pc == PROGRAM_START
        assert machine.mode == RUNNING
        assert machine.stack_depth == 0
        assert not machine.frame.any()
        # Glyph for 0 sits at the bottom of memory
        assert machine.read_memory(0, 5).tolist() == [0xF0, 0x90, 0x90, 0x90, 0xF0]

    def test_load_and_step(self, machine, log_stream):
        machine.load(bytes([0x6A, 0x05]))
        assert machine.step() == 0x6A05
        assert machine.registers[0xA] == 5
        assert machine.pc == PROGRAM_START + 2
        assert machine.cycles == 1
        assert "Loaded 2 bytes at 0x200" in log_stream.getvalue()

    def test_load_accepts_integer_sequences(self, machine):
        machine.load([0x60, 0x2A])
        machine.step()
        assert machine.registers[0] == 0x2A

    def test_largest_program_fits(self, machine):
        machine.load(bytes([0x11]) * 3584)
        assert machine.read_memory(0xFFF, 1)[0] == 0x11

    def test_oversized_program_is_rejected(self, machine):
        machine.load(bytes([0x6A, 0x05]))
        with pytest.raises(OutOfBoundsError):
            machine.load(bytes(3585))
        assert machine.read_memory(PROGRAM_START, 2).tolist() == [0x6A, 0x05]

    def test_out_of_range_bytes_are_rejected(self, machine):
        with pytest.raises(ValueError):
            machine.load([0x100])

    def test_load_rom(self, machine, tmp_path):
        rom = tmp_path / "test.ch8"
        rom.write_bytes(bytes([0x61, 0x07]))
        machine.load_rom(rom)
        machine.step()
        assert machine.registers[1] == 7

    def test_reset_restores_power_on_state(self, machine):
        machine.load(bytes([
            0x61, 0x07,  # 200: V1 = 7
            0xF1, 0x15,  # 202: delay = V1
            0xF1, 0x18,  # 204: sound = V1
            0xA0, 0x00,  # 206: I = 0
            0xD0, 0x05,  # 208: draw glyph 0 at (0, 0)
            0x22, 0x0E,  # 20A: call 20E
            0x00, 0x00,  # 20C
            0xF1, 0x55,  # 20E: store V0-V1 over the font
            0x12, 0x10,  # 210: spin
        ]))
        machine.run(8)
        assert machine.stack_depth == 1
        assert machine.index == 2
        assert machine.read_memory(0, 2).tolist() == [0, 7]

        machine.reset()

        assert machine.pc == PROGRAM_START
        assert machine.mode == RUNNING
        assert machine.cycles == 0
        assert not machine.registers.any()
        assert machine.index == 0
        assert machine.delay_timer == 0
        assert machine.sound_timer == 0
        assert machine.stack_depth == 0
        assert not machine.frame.any()
        assert not machine.redraw
        assert machine.read_memory(0, 80).tolist() == list(FONT_DATA)

    def test_load_keeps_registers_timers_and_display(self, machine):
        machine.load(bytes([
            0x61, 0x07,  # 200: V1 = 7
            0xF1, 0x15,  # 202: delay = V1
            0xA0, 0x00,  # 204: I = 0
            0xD0, 0x05,  # 206: draw glyph 0 at (0, 0)
            0x22, 0x0A,  # 208: call 20A
            0x12, 0x0A,  # 20A: spin
        ]))
        machine.run(6)
        assert machine.pc == 0x20A

        machine.load(bytes([0x00, 0xE0]))

        assert machine.pc == PROGRAM_START
        assert machine.registers[1] == 7
        assert machine.delay_timer == 7
        assert machine.frame.sum() == 14
        assert machine.stack_depth == 1
        assert machine.read_memory(PROGRAM_START, 2).tolist() == [0x00, 0xE0]

    def test_load_accepts_generators(self, machine, log_stream):
        machine.load(b for b in [0x60, 0x01])
        machine.step()
        assert machine.registers[0] == 1
        assert "Loaded 2 bytes at 0x200" in log_stream.getvalue()

    @pytest.mark.parametrize("program", [[1.5], [0x60, 0.0], 5, [True, False]])
    def test_load_rejects_non_integer_images(self, machine, program):
        with pytest.raises(ValueError):
            machine.load(program)
        assert machine.read_memory(PROGRAM_START, 2).tolist() == [0, 0]

    @pytest.mark.parametrize("seed", [-1, 1.5, "0"])
    def test_invalid_seed(self, seed):
        with pytest.raises(ValueError):
            Chip8(seed=seed)


class TestFaults:

    def test_stack_overflow_halts(self, machine, log_stream):
        machine.load(bytes([0x22, 0x00]))  # call 0x200 forever
        for _ in range(16):
            machine.step()
        assert machine.stack_depth == 16

        with pytest.raises(StackOverflowError) as excinfo:
            machine.step()
        assert excinfo.value.pc == PROGRAM_START
        assert excinfo.value.instruction == 0x2200
        assert machine.is_halted
        assert machine.stack_depth == 16
        assert machine.pc == PROGRAM_START
        assert "StackOverflow: 2200 at PC=0x200" in log_stream.getvalue()

    def test_halted_machine_does_nothing(self, machine):
        machine.load(bytes([0x22, 0x00]))
        machine.run(16)
        with pytest.raises(StackOverflowError):
            machine.step()

        cycles = machine.cycles
        assert machine.run(10) == 0
        machine.step()
        assert machine.cycles == cycles
        assert machine.pc == PROGRAM_START

    def test_stack_underflow(self, machine):
        machine.load(bytes([0x00, 0xEE]))
        with pytest.raises(StackUnderflowError):
            machine.step()
        assert machine.is_halted
        assert machine.pc == PROGRAM_START

    def test_unknown_opcode_is_logged(self, machine, log_stream):
        machine.load(bytes([0x51, 0x21, 0x60, 0x09]))
        assert machine.run(2) == 2
        assert "UnknownOpcode: 5121 at PC=0x200" in log_stream.getvalue()
        assert machine.registers[0] == 9
        assert machine.logger.fault_counts == {"UnknownOpcode": 1}

    def test_unknown_opcode_strict(self):
        machine = Chip8(strict=True)
        machine.load(bytes([0xFF, 0xFF]))
        with pytest.raises(UnknownOpcodeError):
            machine.step()
        assert machine.pc == PROGRAM_START + 2
        assert machine.mode == RUNNING

    def test_halt_and_resume(self, machine):
        machine.load(bytes([0x70, 0x01, 0x12, 0x00]))
        machine.halt()
        assert machine.mode_name == "HALTED"
        assert machine.run(4) == 0

        machine.resume()
        assert machine.run(4) == 4
        assert machine.registers[0] == 2


class TestInput:

    def test_wait_for_key(self, machine, log_stream):
        machine.load(bytes([0xF5, 0x0A, 0x60, 0x01]))
        machine.step()
        assert machine.is_blocked
        assert machine.mode == BLOCKED_ON_KEY

        machine.run(5)
        assert machine.pc == PROGRAM_START

        machine.set_key(0xB, True)
        machine.step()
        assert machine.mode == RUNNING
        assert machine.registers[5] == 0xB
        assert machine.pc == PROGRAM_START + 2
        assert "Mode BLOCKED_ON_KEY -> RUNNING" in log_stream.getvalue()

    def test_release_keys(self, machine):
        machine.set_key(0x1, True)
        machine.set_key(0xF, True)
        machine.release_keys()
        assert not machine.state.keypad.any()

    def test_bad_key_index(self, machine):
        with pytest.raises(ValueError):
            machine.set_key(16, True)


class TestFrames:

    def test_consume_redraw(self, machine):
        machine.load(bytes([0xA0, 0x00, 0xD0, 0x05]))  # draw glyph 0 at (0, 0)
        assert not machine.consume_redraw()
        machine.run(2)
        assert machine.redraw
        assert machine.consume_redraw()
        assert not machine.redraw
        assert machine.frame.shape == (32, 64)
        assert machine.frame[0, :4].all()

    def test_run_frame_ticks_timers(self, machine):
        machine.load(bytes([
            0x60, 0x03,  # V0 = 3
            0xF0, 0x15,  # delay = V0
            0xF0, 0x18,  # sound = V0
            0x12, 0x06,  # spin
        ]))
        assert machine.run_frame(instructions_per_frame=4) == 4
        assert machine.delay_timer == 2
        assert machine.sound_timer == 2
        assert machine.sound_active

        machine.run_frame(4)
        machine.run_frame(4)
        assert machine.sound_timer == 0
        assert not machine.sound_active

    def test_run_frame_rejects_zero(self, machine):
        with pytest.raises(ValueError):
            machine.run_frame(0)
