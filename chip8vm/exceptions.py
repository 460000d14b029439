"""Errors surfaced by the CHIP-8 machine."""


class Chip8Error(Exception):
    """Base class for machine errors."""


class OutOfBoundsError(Chip8Error, ValueError):
    """A program image does not fit in memory."""

    def __init__(self, address: int, size: int, limit: int):
        self.address = address
        self.size = size
        self.limit = limit
        super().__init__(
            f"{size} bytes at 0x{address:03X} exceed the memory limit 0x{limit:03X} "
            f"({max(limit - address, 0)} bytes available)"
        )


class ExecutionError(Chip8Error):
    """An instruction could not be executed as written."""

    def __init__(self, message: str, pc: int, instruction: int):
        self.pc = pc
        self.instruction = instruction
        super().__init__(f"{message} at PC=0x{pc:03X} (instruction {instruction:04X})")


class UnknownOpcodeError(ExecutionError):
    def __init__(self, pc: int, instruction: int):
        super().__init__("Unknown opcode", pc, instruction)


class StackOverflowError(ExecutionError):
    def __init__(self, pc: int, instruction: int):
        super().__init__("Call stack overflow", pc, instruction)


class StackUnderflowError(ExecutionError):
    def __init__(self, pc: int, instruction: int):
        super().__init__("Return with empty call stack", pc, instruction)
