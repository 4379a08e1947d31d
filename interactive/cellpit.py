from typing import List, Optional, Tuple

import numpy as np
import pygame

from cellular_textures import RenderConfig, generate_cells, make_rng, render

# ---------------------------- Cell field ---------------------------- #


class CellPit:
    """Cellular texture that re-renders whenever its seed points change."""

    def __init__(self, width: int, height: int, scale: int = 2, seed: int = 0):
        self.width = width
        self.height = height
        self.scale = scale
        self.rng = make_rng(seed)
        self.wrap = True
        self.cells: List[Tuple[int, int]] = generate_cells(width, height, 12, self.rng)
        self.surface = None
        self.rerender()

    def add_cell(self, x: int, y: int):
        cx = min(self.width - 1, max(0, x // self.scale))
        cy = min(self.height - 1, max(0, y // self.scale))
        self.cells.append((cx, cy))
        self.rerender()

    def reseed(self, count: Optional[int] = None):
        if count is None:
            count = int(self.rng.integers(4, 41))
        self.cells = generate_cells(self.width, self.height, count, self.rng)
        self.rerender()

    def toggle_wrap(self):
        self.wrap = not self.wrap
        self.rerender()

    def rerender(self):
        # Rebuilding the tree is cheap next to the per-pixel queries
        pixels = render(self.cells, self.width, self.height, RenderConfig(wrap=self.wrap))
        rgb = np.repeat(pixels.T[:, :, None], 3, axis=2)
        surface = pygame.surfarray.make_surface(rgb)
        self.surface = pygame.transform.scale(
            surface, (self.width * self.scale, self.height * self.scale)
        )

    def draw(self, screen):
        screen.blit(self.surface, (0, 0))
        for x, y in self.cells:
            center = (x * self.scale + self.scale // 2, y * self.scale + self.scale // 2)
            pygame.draw.circle(screen, (255, 60, 60), center, 3)


# ------------------------------- main ------------------------------- #


def main():
    pygame.init()
    width, height, scale = 320, 240, 2
    screen = pygame.display.set_mode((width * scale, height * scale))
    pygame.display.set_caption("cellular textures: click adds a cell, W wraps, R reseeds")
    clock = pygame.time.Clock()
    pit = CellPit(width, height, scale=scale)

    running = True
    while running:
        clock.tick(30)
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False
            elif event.type == pygame.MOUSEBUTTONDOWN:
                pit.add_cell(*event.pos)
            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_w:
                    pit.toggle_wrap()
                elif event.key == pygame.K_r:
                    pit.reseed()

        pit.draw(screen)
        pygame.display.flip()

    pygame.quit()


if __name__ == "__main__":
    main()
