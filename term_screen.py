# (C) 2023 by Folkert van Heusden <mail@vanheusden.com>
# released under MIT license

import sys
from chip8 import WIDTH
from typing import List, Sequence

class term_screen:
    def __init__(self, out=sys.stdout):
        self.out = out
        self.previous = None
        self.stop_flag = False

    def get_name(self):
        return 'terminal'

    def render(self, video: Sequence[int]) -> List[str]:
        lines = []

        for y in range(0, len(video), WIDTH):
            lines.append(''.join('X' if p else ' ' for p in video[y:y + WIDTH]))

        return lines

    def refresh(self, video: Sequence[int]) -> None:
        video = tuple(video)

        if video == self.previous:
            return

        self.previous = video

        # clear + home
        self.out.write('\033[2J\033[H')
        self.out.write('\n'.join(self.render(video)))
        self.out.write('\n')
        self.out.flush()

    def poll_kb(self) -> List[tuple]:
        return []

    def beep(self) -> None:
        self.out.write('\a')
        self.out.flush()

    def stop(self):
        pass
