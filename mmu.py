# (C) 2023 by Folkert van Heusden <mail@vanheusden.com>
# released under MIT license

from typing import List

MEMORY_SIZE: int = 4096
PROGRAM_START: int = 0x200

fontset: List[int] = [
        0xf0, 0x90, 0x90, 0x90, 0xf0,  # 0
        0x20, 0x60, 0x20, 0x20, 0x70,  # 1
        0xf0, 0x10, 0xf0, 0x80, 0xf0,  # 2
        0xf0, 0x10, 0xf0, 0x10, 0xf0,  # 3
        0x90, 0x90, 0xf0, 0x10, 0x10,  # 4
        0xf0, 0x80, 0xf0, 0x10, 0xf0,  # 5
        0xf0, 0x80, 0xf0, 0x90, 0xf0,  # 6
        0xf0, 0x10, 0x20, 0x40, 0x40,  # 7
        0xf0, 0x90, 0xf0, 0x90, 0xf0,  # 8
        0xf0, 0x90, 0xf0, 0x10, 0xf0,  # 9
        0xf0, 0x90, 0xf0, 0x90, 0x90,  # A
        0xe0, 0x90, 0xe0, 0x90, 0xe0,  # B
        0xf0, 0x80, 0x80, 0x80, 0xf0,  # C
        0xe0, 0x90, 0x90, 0x90, 0xe0,  # D
        0xf0, 0x80, 0xf0, 0x80, 0xf0,  # E
        0xf0, 0x80, 0xf0, 0x80, 0x80,  # F
        ]

class mmu_exception(Exception):
    pass

class OutOfBounds(mmu_exception):
    def __init__(self, address: int) -> None:
        super().__init__('memory access out of bounds: %04x (%d)' % (address, address))
        self.address = address

class CapacityExceeded(mmu_exception):
    def __init__(self, size: int, capacity: int) -> None:
        super().__init__('program of %d bytes does not fit in %d bytes' % (size, capacity))
        self.size = size
        self.capacity = capacity

class mmu:
    def __init__(self, debug=None):
        self.debug = debug
        self.fontset: List[int] = fontset

        self.reset()

    def get_name(self):
        return 'MMU'

    def reset(self) -> None:
        self.ram: List[int] = [ 0 ] * MEMORY_SIZE

        for i, v in enumerate(self.fontset):
            self.ram[i] = v

    def capacity(self) -> int:
        return MEMORY_SIZE - PROGRAM_START

    def load_program(self, data: bytes) -> int:
        if len(data) > self.capacity():
            raise CapacityExceeded(len(data), self.capacity())

        for i, v in enumerate(data):
            self.ram[PROGRAM_START + i] = v

        if self.debug:
            self.debug('loaded %d bytes at %04x' % (len(data), PROGRAM_START))

        return len(data)

    def check_address(self, a: int) -> None:
        if a < 0 or a >= MEMORY_SIZE:
            raise OutOfBounds(a)

    def write_byte(self, a: int, v: int) -> None:
        assert v >= 0 and v < 256
        self.check_address(a)
        self.ram[a] = v

    def read_byte(self, a: int) -> int:
        self.check_address(a)
        return self.ram[a]

    def read_word(self, a: int) -> int:
        self.check_address(a + 1)
        return (self.read_byte(a) << 8) | self.read_byte(a + 1)
