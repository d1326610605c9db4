# (C) 2023 by Folkert van Heusden <mail@vanheusden.com>
# released under MIT license

import pygame
from chip8 import HEIGHT, WIDTH
from typing import List, Sequence, Tuple

# 1 2 3 C      1 2 3 4
# 4 5 6 D  ->  Q W E R
# 7 8 9 E      A S D F
# A 0 B F      Z X C V
keymap: dict = {
        pygame.K_1: 0x1, pygame.K_2: 0x2, pygame.K_3: 0x3, pygame.K_4: 0xc,
        pygame.K_q: 0x4, pygame.K_w: 0x5, pygame.K_e: 0x6, pygame.K_r: 0xd,
        pygame.K_a: 0x7, pygame.K_s: 0x8, pygame.K_d: 0x9, pygame.K_f: 0xe,
        pygame.K_z: 0xa, pygame.K_x: 0x0, pygame.K_c: 0xb, pygame.K_v: 0xf,
        }

class screen_kb_chip8:
    def __init__(self, scale: int = 10):
        pygame.init()
        pygame.display.init()
        pygame.display.set_caption('pychip8')

        self.scale = scale

        w = WIDTH * scale
        h = HEIGHT * scale
        self.screen = pygame.display.set_mode(size=(w, h), flags=pygame.DOUBLEBUF)
        self.surface = pygame.Surface((WIDTH, HEIGHT))

        self.colour_on = self.rgb_to_i((0xff, 0xff, 0xff))
        self.colour_off = self.rgb_to_i((0x00, 0x00, 0x00))

        self.stop_flag = False
        self.previous = None

        print(pygame.display.Info())

    def get_name(self):
        return 'screen/keyboard'

    def rgb_to_i(self, rgb: Tuple[int, int, int]) -> int:
        return (rgb[0] << 16) | (rgb[1] << 8) | rgb[2]

    def poll_kb(self) -> List[Tuple[int, bool]]:
        changes = []

        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.stop_flag = True
                break

            if event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    self.stop_flag = True
                    break

                if event.key in keymap:
                    changes.append((keymap[event.key], True))

            elif event.type == pygame.KEYUP:
                if event.key in keymap:
                    changes.append((keymap[event.key], False))

        return changes

    def refresh(self, video: Sequence[int]) -> None:
        video = tuple(video)

        if video == self.previous:
            return

        self.previous = video

        par = pygame.PixelArray(self.surface)
        for y in range(HEIGHT):
            for x in range(WIDTH):
                par[x, y] = self.colour_on if video[y * WIDTH + x] else self.colour_off
        par.close()

        pygame.transform.scale(self.surface, self.screen.get_size(), self.screen)
        pygame.display.flip()

    def beep(self) -> None:
        print('BEEP')

    def stop(self):
        pygame.quit()
