# (C) 2023 by Folkert van Heusden <mail@vanheusden.com>
# released under MIT license

import random
from mmu import PROGRAM_START, mmu_exception
from typing import Callable, List, Optional, Tuple

WIDTH: int = 64
HEIGHT: int = 32
STACK_DEPTH: int = 16
N_KEYS: int = 16

class chip8_exception(Exception):
    pass

class UnimplementedInstruction(chip8_exception):
    def __init__(self, instruction: int) -> None:
        super().__init__('missing instruction: %04X (HEX) / %d (DEC)' % (instruction, instruction))
        self.instruction = instruction

class StackOverflow(chip8_exception):
    pass

class StackUnderflow(chip8_exception):
    pass

class chip8:
    def __init__(self, memory, debug=None, beep: Optional[Callable[[], None]] = None, rng=None) -> None:
        self.memory = memory
        self.debug_out = debug
        self.beep = beep
        self.rng = rng if rng else random.Random()

        # cleared when the driver ticks the timers once per frame
        self.tick_per_step: bool = True

        self.init_main()
        self.init_0()
        self.init_8()
        self.init_e()
        self.init_f()

        self.reset()

    def debug(self, x: str) -> None:
        if self.debug_out:
            self.debug_out('%s\t%s' % (x, self.reg_str()))

    def reset(self) -> None:
        self.v: List[int] = [ 0 ] * 16
        self.i: int = 0
        self.pc: int = PROGRAM_START
        self.stack: List[int] = [ 0 ] * STACK_DEPTH
        self.sp: int = 0
        self.delay_timer: int = 0
        self.sound_timer: int = 0
        self.keys: List[bool] = [ False ] * N_KEYS
        self.video: List[int] = [ 0 ] * (WIDTH * HEIGHT)
        self.tone_boundary: bool = False

    def framebuffer(self) -> Tuple[int, ...]:
        return tuple(self.video)

    def set_key(self, index: int, pressed: bool) -> None:
        if index < 0 or index >= N_KEYS:
            raise ValueError('key index %d out of range' % index)

        self.keys[index] = pressed

    def reg_str(self) -> str:
        out = '{ '
        out += ' '.join('V%X: %02x' % (nr, val) for nr, val in enumerate(self.v))
        out += ' | I: %04x, PC: %04x, SP: %d, DT: %02x, ST: %02x }' % (self.i, self.pc, self.sp, self.delay_timer, self.sound_timer)

        return out

    def address_str(self) -> str:
        if self.pc >= PROGRAM_START:
            return '%04x/%03x' % (self.pc, self.pc - PROGRAM_START)

        return '%04x' % self.pc

    def init_main(self) -> None:
        self.main_jumps: List[Callable[[int], None]] = [ None ] * 16

        self.main_jumps[0x0] = self._sys
        self.main_jumps[0x1] = self._jp
        self.main_jumps[0x2] = self._call
        self.main_jumps[0x3] = self._se_val
        self.main_jumps[0x4] = self._sne_val
        self.main_jumps[0x5] = self._se_reg
        self.main_jumps[0x6] = self._ld_val
        self.main_jumps[0x7] = self._add_val
        self.main_jumps[0x8] = self._alu
        self.main_jumps[0x9] = self._sne_reg
        self.main_jumps[0xa] = self._ld_i
        self.main_jumps[0xb] = self._jp_v0
        self.main_jumps[0xc] = self._rnd
        self.main_jumps[0xd] = self._drw
        self.main_jumps[0xe] = self._keys
        self.main_jumps[0xf] = self._misc

    def init_0(self) -> None:
        self.sys_jumps: List[Callable[[int], None]] = [ None ] * 256

        self.sys_jumps[0xe0] = self._cls
        self.sys_jumps[0xee] = self._ret

    def init_8(self) -> None:
        self.alu_jumps: List[Callable[[int], None]] = [ None ] * 16

        self.alu_jumps[0x0] = self._ld_reg
        self.alu_jumps[0x1] = self._or
        self.alu_jumps[0x2] = self._and
        self.alu_jumps[0x3] = self._xor
        self.alu_jumps[0x4] = self._add_reg
        self.alu_jumps[0x5] = self._sub
        self.alu_jumps[0x6] = self._shr
        self.alu_jumps[0x7] = self._subn
        self.alu_jumps[0xe] = self._shl

    def init_e(self) -> None:
        self.keys_jumps: List[Callable[[int], None]] = [ None ] * 256

        self.keys_jumps[0x9e] = self._skp
        self.keys_jumps[0xa1] = self._sknp

    def init_f(self) -> None:
        self.misc_jumps: List[Callable[[int], None]] = [ None ] * 256

        self.misc_jumps[0x07] = self._ld_reg_dt
        self.misc_jumps[0x0a] = self._ld_reg_key
        self.misc_jumps[0x15] = self._ld_dt_reg
        self.misc_jumps[0x18] = self._ld_st_reg
        self.misc_jumps[0x1e] = self._add_i
        self.misc_jumps[0x29] = self._ld_font
        self.misc_jumps[0x33] = self._ld_bcd
        self.misc_jumps[0x55] = self._ld_mem_regs
        self.misc_jumps[0x65] = self._ld_regs_mem

    def step(self) -> None:
        try:
            instr = self.memory.read_word(self.pc)
            self.decode(instr)

        except (chip8_exception, mmu_exception) as e:
            self.debug('%s %s' % (self.address_str(), e))
            raise

        if self.tick_per_step:
            self.tick()

    def decode(self, instr: int) -> None:
        self.main_jumps[instr >> 12](instr)

    def sub_dispatch(self, table: List[Callable[[int], None]], selector: int, instr: int) -> None:
        handler = table[selector]

        if handler is None:
            raise UnimplementedInstruction(instr)

        handler(instr)

    def tick(self) -> None:
        self.tone_boundary = False

        if self.delay_timer > 0:
            self.delay_timer -= 1

        if self.sound_timer > 0:
            if self.sound_timer == 1:
                self.tone_boundary = True

                if self.beep:
                    self.beep()

            self.sound_timer -= 1

    def x(self, instr: int) -> int:
        return (instr >> 8) & 0xf

    def y(self, instr: int) -> int:
        return (instr >> 4) & 0xf

    def kk(self, instr: int) -> int:
        return instr & 0xff

    def nnn(self, instr: int) -> int:
        return instr & 0xfff

    def push(self, v: int) -> None:
        if self.sp >= STACK_DEPTH:
            raise StackOverflow('call stack overflow at %04x' % self.pc)

        self.stack[self.sp] = v
        self.sp += 1

    def pop(self) -> int:
        if self.sp == 0:
            raise StackUnderflow('return with empty call stack at %04x' % self.pc)

        self.sp -= 1
        return self.stack[self.sp]

    def skip_if(self, condition: bool) -> None:
        self.pc += 4 if condition else 2

    # 0nnn
    def _sys(self, instr: int) -> None:
        if instr & 0x0f00:
            raise UnimplementedInstruction(instr)

        self.sub_dispatch(self.sys_jumps, instr & 0xff, instr)

    def _cls(self, instr: int) -> None:
        self.debug('%s CLS' % self.address_str())

        self.video = [ 0 ] * (WIDTH * HEIGHT)
        self.pc += 2

    def _ret(self, instr: int) -> None:
        self.debug('%s RET' % self.address_str())

        self.pc = self.pop() + 2

    def _jp(self, instr: int) -> None:
        self.debug('%s JP %03x' % (self.address_str(), self.nnn(instr)))

        self.pc = self.nnn(instr)

    def _call(self, instr: int) -> None:
        self.debug('%s CALL %03x' % (self.address_str(), self.nnn(instr)))

        self.push(self.pc)
        self.pc = self.nnn(instr)

    def _se_val(self, instr: int) -> None:
        x = self.x(instr)
        self.debug('%s SE V%X,#%02x' % (self.address_str(), x, self.kk(instr)))

        self.skip_if(self.v[x] == self.kk(instr))

    def _sne_val(self, instr: int) -> None:
        x = self.x(instr)
        self.debug('%s SNE V%X,#%02x' % (self.address_str(), x, self.kk(instr)))

        self.skip_if(self.v[x] != self.kk(instr))

    def _se_reg(self, instr: int) -> None:
        if instr & 0xf:
            raise UnimplementedInstruction(instr)

        x = self.x(instr)
        y = self.y(instr)
        self.debug('%s SE V%X,V%X' % (self.address_str(), x, y))

        self.skip_if(self.v[x] == self.v[y])

    def _ld_val(self, instr: int) -> None:
        x = self.x(instr)
        self.debug('%s LD V%X,#%02x' % (self.address_str(), x, self.kk(instr)))

        self.v[x] = self.kk(instr)
        self.pc += 2

    # VF is left alone, unlike 8xy4
    def _add_val(self, instr: int) -> None:
        x = self.x(instr)
        self.debug('%s ADD V%X,#%02x' % (self.address_str(), x, self.kk(instr)))

        self.v[x] = (self.v[x] + self.kk(instr)) & 0xff
        assert self.v[x] >= 0 and self.v[x] < 256
        self.pc += 2

    # 8xyn
    def _alu(self, instr: int) -> None:
        self.sub_dispatch(self.alu_jumps, instr & 0xf, instr)

    def _ld_reg(self, instr: int) -> None:
        x = self.x(instr)
        y = self.y(instr)
        self.debug('%s LD V%X,V%X' % (self.address_str(), x, y))

        self.v[x] = self.v[y]
        assert self.v[x] >= 0 and self.v[x] < 256
        self.pc += 2

    def _or(self, instr: int) -> None:
        x = self.x(instr)
        y = self.y(instr)
        self.debug('%s OR V%X,V%X' % (self.address_str(), x, y))

        self.v[x] |= self.v[y]
        assert self.v[x] >= 0 and self.v[x] < 256
        self.pc += 2

    def _and(self, instr: int) -> None:
        x = self.x(instr)
        y = self.y(instr)
        self.debug('%s AND V%X,V%X' % (self.address_str(), x, y))

        self.v[x] &= self.v[y]
        self.pc += 2

    def _xor(self, instr: int) -> None:
        x = self.x(instr)
        y = self.y(instr)
        self.debug('%s XOR V%X,V%X' % (self.address_str(), x, y))

        self.v[x] ^= self.v[y]
        assert self.v[x] >= 0 and self.v[x] < 256
        self.pc += 2

    def _add_reg(self, instr: int) -> None:
        x = self.x(instr)
        y = self.y(instr)
        self.debug('%s ADD V%X,V%X' % (self.address_str(), x, y))

        result = self.v[x] + self.v[y]

        self.v[x] = result & 0xff
        self.v[0xf] = 1 if result > 255 else 0
        assert self.v[x] >= 0 and self.v[x] < 256
        self.pc += 2

    def _sub(self, instr: int) -> None:
        x = self.x(instr)
        y = self.y(instr)
        self.debug('%s SUB V%X,V%X' % (self.address_str(), x, y))

        borrow = 1 if self.v[x] > self.v[y] else 0

        self.v[0xf] = borrow
        self.v[x] = (self.v[x] - self.v[y]) & 0xff
        assert self.v[x] >= 0 and self.v[x] < 256
        self.pc += 2

    def _shr(self, instr: int) -> None:
        x = self.x(instr)
        self.debug('%s SHR V%X' % (self.address_str(), x))

        val = self.v[x]

        self.v[0xf] = val & 1
        self.v[x] = val >> 1
        self.pc += 2

    def _subn(self, instr: int) -> None:
        x = self.x(instr)
        y = self.y(instr)
        self.debug('%s SUBN V%X,V%X' % (self.address_str(), x, y))

        borrow = 1 if self.v[y] > self.v[x] else 0

        self.v[0xf] = borrow
        self.v[x] = (self.v[y] - self.v[x]) & 0xff
        assert self.v[x] >= 0 and self.v[x] < 256
        self.pc += 2

    def _shl(self, instr: int) -> None:
        x = self.x(instr)
        self.debug('%s SHL V%X' % (self.address_str(), x))

        val = self.v[x]

        self.v[0xf] = val >> 7
        self.v[x] = (val << 1) & 0xff
        assert self.v[x] >= 0 and self.v[x] < 256
        self.pc += 2

    def _sne_reg(self, instr: int) -> None:
        if instr & 0xf:
            raise UnimplementedInstruction(instr)

        x = self.x(instr)
        y = self.y(instr)
        self.debug('%s SNE V%X,V%X' % (self.address_str(), x, y))

        self.skip_if(self.v[x] != self.v[y])

    def _ld_i(self, instr: int) -> None:
        self.debug('%s LD I,%03x' % (self.address_str(), self.nnn(instr)))

        self.i = self.nnn(instr)
        self.pc += 2

    def _jp_v0(self, instr: int) -> None:
        self.debug('%s JP V0,%03x' % (self.address_str(), self.nnn(instr)))

        self.pc = self.nnn(instr) + self.v[0]

    def _rnd(self, instr: int) -> None:
        x = self.x(instr)
        self.debug('%s RND V%X,#%02x' % (self.address_str(), x, self.kk(instr)))

        self.v[x] = self.kk(instr) & self.rng.getrandbits(8)
        self.pc += 2

    def _drw(self, instr: int) -> None:
        x = self.x(instr)
        y = self.y(instr)
        n = instr & 0xf
        self.debug('%s DRW V%X,V%X,%d' % (self.address_str(), x, y, n))

        x_base = self.v[x]
        y_base = self.v[y]

        collision = 0

        for row in range(n):
            pattern = self.memory.read_byte(self.i + row)
            y_it = (y_base + row) % HEIGHT

            for col in range(8):
                if pattern & (0x80 >> col) == 0:
                    continue

                offset = y_it * WIDTH + (x_base + col) % WIDTH

                if self.video[offset]:
                    collision = 1

                self.video[offset] ^= 1
                assert self.video[offset] in (0, 1)

        self.v[0xf] = collision
        self.pc += 2

    # Exkk
    def _keys(self, instr: int) -> None:
        self.sub_dispatch(self.keys_jumps, instr & 0xff, instr)

    def _skp(self, instr: int) -> None:
        x = self.x(instr)
        self.debug('%s SKP V%X' % (self.address_str(), x))

        self.skip_if(self.keys[self.v[x] & 0xf])

    def _sknp(self, instr: int) -> None:
        x = self.x(instr)
        self.debug('%s SKNP V%X' % (self.address_str(), x))

        self.skip_if(not self.keys[self.v[x] & 0xf])

    # Fxkk
    def _misc(self, instr: int) -> None:
        self.sub_dispatch(self.misc_jumps, instr & 0xff, instr)

    def _ld_reg_dt(self, instr: int) -> None:
        x = self.x(instr)
        self.debug('%s LD V%X,DT' % (self.address_str(), x))

        self.v[x] = self.delay_timer
        self.pc += 2

    # PC stays put until a key is down
    def _ld_reg_key(self, instr: int) -> None:
        x = self.x(instr)
        self.debug('%s LD V%X,K' % (self.address_str(), x))

        for nr, pressed in enumerate(self.keys):
            if pressed:
                self.v[x] = nr
                self.pc += 2
                break

    def _ld_dt_reg(self, instr: int) -> None:
        x = self.x(instr)
        self.debug('%s LD DT,V%X' % (self.address_str(), x))

        self.delay_timer = self.v[x]
        self.pc += 2

    def _ld_st_reg(self, instr: int) -> None:
        x = self.x(instr)
        self.debug('%s LD ST,V%X' % (self.address_str(), x))

        self.sound_timer = self.v[x]
        self.pc += 2

    def _add_i(self, instr: int) -> None:
        x = self.x(instr)
        self.debug('%s ADD I,V%X' % (self.address_str(), x))

        self.i = (self.i + self.v[x]) & 0xffff
        self.pc += 2

    def _ld_font(self, instr: int) -> None:
        x = self.x(instr)
        self.debug('%s LD F,V%X' % (self.address_str(), x))

        self.i = self.v[x] * 5
        self.pc += 2

    def _ld_bcd(self, instr: int) -> None:
        x = self.x(instr)
        self.debug('%s LD B,V%X' % (self.address_str(), x))

        val = self.v[x]

        self.memory.write_byte(self.i, val // 100)
        self.memory.write_byte(self.i + 1, (val // 10) % 10)
        self.memory.write_byte(self.i + 2, val % 10)
        self.pc += 2

    def _ld_mem_regs(self, instr: int) -> None:
        x = self.x(instr)
        self.debug('%s LD [I],V%X' % (self.address_str(), x))

        for nr in range(x + 1):
            self.memory.write_byte(self.i + nr, self.v[nr])

        self.pc += 2

    def _ld_regs_mem(self, instr: int) -> None:
        x = self.x(instr)
        self.debug('%s LD V%X,[I]' % (self.address_str(), x))

        for nr in range(x + 1):
            self.v[nr] = self.memory.read_byte(self.i + nr)
            assert self.v[nr] >= 0 and self.v[nr] < 256

        self.pc += 2
