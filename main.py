"""
Interactive CHIP-8 host: pygame window, keyboard, tone and 60 Hz pacing.

    python main.py rom=path/to/game.ch8 scale=10 instructions_per_frame=12
"""

import time

import hydra
import numpy as np
import pygame
from omegaconf import DictConfig

from chip8vm import Chip8, Chip8Error, OutOfBoundsError
from chip8vm.constants import SCREEN_WIDTH, SCREEN_HEIGHT, TIMER_FREQUENCY
from chip8vm.logging import EmulatorLogger
from chip8vm.rendering import display_to_rgb, create_color_scheme

# Classic 4x4 layout on the left of a QWERTY keyboard
KEY_MAP = {
    pygame.K_1: 0x1, pygame.K_2: 0x2, pygame.K_3: 0x3, pygame.K_4: 0xC,
    pygame.K_q: 0x4, pygame.K_w: 0x5, pygame.K_e: 0x6, pygame.K_r: 0xD,
    pygame.K_a: 0x7, pygame.K_s: 0x8, pygame.K_d: 0x9, pygame.K_f: 0xE,
    pygame.K_z: 0xA, pygame.K_x: 0x0, pygame.K_c: 0xB, pygame.K_v: 0xF,
}


def make_tone(frequency: int = 440, sample_rate: int = 44100, volume: float = 0.2) -> pygame.mixer.Sound:
    """Square wave used as the single CHIP-8 buzzer tone."""
    period = sample_rate // frequency
    wave = np.where(np.arange(period) < period // 2, volume, -volume)
    samples = np.tile((wave * 32767).astype(np.int16), frequency)
    channels = pygame.mixer.get_init()[2]
    if channels > 1:
        samples = np.repeat(samples[:, None], channels, axis=1)
    return pygame.sndarray.make_sound(np.ascontiguousarray(samples))


def draw_frame(screen, frame, scale, on_color, off_color):
    rgb = display_to_rgb(frame, scale=scale, on_color=on_color, off_color=off_color)
    # pygame surfaces are indexed (x, y)
    pygame.surfarray.blit_array(screen, rgb.swapaxes(0, 1))


def run_emulator(cfg: DictConfig):
    """Main host loop: input, one frame of cycles, timers, sound and display."""
    logger = EmulatorLogger(log_level=cfg.log_level)
    machine = Chip8(seed=cfg.seed, strict=cfg.strict, logger=logger)

    try:
        machine.load_rom(cfg.rom)
    except (OSError, OutOfBoundsError) as e:
        logger.error(f"Could not load {cfg.rom}: {e}")
        return

    pygame.mixer.pre_init(44100, -16, 1)
    pygame.init()
    scale = cfg.scale
    screen = pygame.display.set_mode((SCREEN_WIDTH * scale, SCREEN_HEIGHT * scale))
    pygame.display.set_caption(f"CHIP-8 - {cfg.rom}")
    clock = pygame.time.Clock()
    tone = make_tone(cfg.tone_frequency)
    on_color, off_color = create_color_scheme(cfg.color_scheme)

    ipf = cfg.instructions_per_frame
    running = True
    paused = False
    playing = False
    start_time = time.time()

    logger.info("Controls: ESC=Quit, P=Pause, F5=Reset, +/-=Speed")

    while running:
        clock.tick(TIMER_FREQUENCY)

        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False
            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    running = False
                elif event.key == pygame.K_p:
                    paused = not paused
                elif event.key == pygame.K_F5:
                    machine.reset()
                    machine.load_rom(cfg.rom)
                    logger.info("Reset")
                elif event.key == pygame.K_EQUALS:
                    ipf = min(100, ipf + 2)
                    logger.info(f"Speed: {ipf} instructions per frame")
                elif event.key == pygame.K_MINUS:
                    ipf = max(1, ipf - 2)
                    logger.info(f"Speed: {ipf} instructions per frame")
                elif event.key in KEY_MAP:
                    machine.set_key(KEY_MAP[event.key], True)
            elif event.type == pygame.KEYUP:
                if event.key in KEY_MAP:
                    machine.set_key(KEY_MAP[event.key], False)
            elif event.type == pygame.WINDOWFOCUSLOST:
                # Key-up events are not delivered while unfocused
                machine.release_keys()

        if not paused:
            try:
                machine.run_frame(ipf)
            except Chip8Error as e:
                logger.error(f"{e}, pausing (F5 to reset)")
                paused = True

        if machine.sound_active and not playing:
            tone.play(-1)
            playing = True
        elif not machine.sound_active and playing:
            tone.stop()
            playing = False

        if machine.consume_redraw():
            draw_frame(screen, machine.frame, scale, on_color, off_color)
            pygame.display.flip()

    logger.log_run_summary(machine.cycles, time.time() - start_time)
    pygame.quit()


@hydra.main(version_base=None, config_path="conf", config_name="config")
def main(cfg: DictConfig) -> None:
    run_emulator(cfg)


if __name__ == "__main__":
    main()
