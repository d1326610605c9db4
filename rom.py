# (C) 2023 by Folkert van Heusden <mail@vanheusden.com>
# released under MIT license

import sys

class rom:
    def __init__(self, rom_file: str, debug=None):
        print('Loading ROM %s...' % rom_file, file=sys.stderr)

        with open(rom_file, 'rb') as fh:
            self.rom: bytes = fh.read()

        self.rom_file = rom_file

        self.debug = debug

        if self.debug:
            self.debug('ROM %s: %d bytes' % (rom_file, len(self.rom)))

    def get_name(self):
        return 'ROM'

    def __len__(self) -> int:
        return len(self.rom)

    def install(self, memory) -> int:
        return memory.load_program(self.rom)
