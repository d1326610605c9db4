#! /usr/bin/python3

# (C) 2023 by Folkert van Heusden <mail@vanheusden.com>
# released under MIT license

import random
import sys
import time
from chip8 import chip8, chip8_exception
from mmu import mmu, mmu_exception
from optparse import OptionParser
from rom import rom

FRAME_TIME = 1 / 60

debug_log = None

def debug(x):
    if debug_log:
        fh = open(debug_log, 'a+')
        fh.write('%s\n' % x)
        fh.close()

def get_parser():
    parser = OptionParser()
    parser.add_option('-r', '--rom', dest='rom_file', help='select ROM')
    parser.add_option('-l', '--debug-log', dest='debug_log', help='logfile to write to (optional)')
    parser.add_option('-s', '--scale', dest='scale', type='int', default=10, help='pixel scale of the window (default 10)')
    parser.add_option('-i', '--ipf', dest='ipf', type='int', default=10, help='instructions per 60Hz frame (default 10)')
    parser.add_option('-t', '--terminal', dest='terminal', action='store_true', default=False, help='render in the terminal instead of a window')
    parser.add_option('-S', '--seed', dest='seed', type='int', help='seed for the random generator (optional)')
    return parser

def get_screen(options):
    if options.terminal:
        from term_screen import term_screen
        return term_screen()

    from screen_kb_chip8 import screen_kb_chip8
    return screen_kb_chip8(options.scale)

def run(cpu, screen, ipf):
    # timers run at 60Hz, not at the instruction rate
    cpu.tick_per_step = False

    while not screen.stop_flag:
        start = time.time()

        for key, pressed in screen.poll_kb():
            cpu.set_key(key, pressed)

        for i in range(ipf):
            cpu.step()

        cpu.tick()

        screen.refresh(cpu.framebuffer())

        took = time.time() - start
        if took < FRAME_TIME:
            time.sleep(FRAME_TIME - took)

def main(argv=None):
    global debug_log

    (options, args) = get_parser().parse_args(argv)

    debug_log = options.debug_log

    if not options.rom_file:
        print('No ROM selected (e.g. roms/INVADERS)')
        return 1

    memory = mmu(debug)

    try:
        rom(options.rom_file, debug).install(memory)

    except (OSError, mmu_exception) as e:
        print('ROM rejected: %s' % e, file=sys.stderr)
        return 1

    screen = get_screen(options)

    cpu = chip8(memory, debug, screen.beep, random.Random(options.seed))

    try:
        run(cpu, screen, options.ipf)

    except (chip8_exception, mmu_exception) as e:
        print('Emulation stopped at %04x: %s' % (cpu.pc, e), file=sys.stderr)
        return 1

    except KeyboardInterrupt:
        pass

    finally:
        screen.stop()

    return 0

if __name__ == '__main__':
    sys.exit(main())
