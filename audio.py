import logging
import math
from typing import Dict, Tuple

import pygame

logger = logging.getLogger(__name__)

SAMPLE_RATE = 22050
WAVEFORMS = ("sine", "square", "sawtooth", "triangle")


def clamp(value: float, minimum: float, maximum: float) -> float:
    return max(minimum, min(maximum, value))


def waveform_sample(waveform: str, phase: float) -> float:
    # phase in [0, 1)
    if waveform == "square":
        return 1.0 if phase < 0.5 else -1.0
    if waveform == "sawtooth":
        return 2.0 * phase - 1.0
    if waveform == "triangle":
        return 4.0 * phase - 1.0 if phase < 0.5 else 3.0 - 4.0 * phase
    return math.sin(math.tau * phase)


def build_tone_buffer(frequency: float, duration: float, waveform: str = "sine", volume: float = 0.6) -> bytes:
    if waveform not in WAVEFORMS:
        raise ValueError(f"unknown waveform {waveform!r}")
    total_samples = max(1, int(SAMPLE_RATE * duration))
    amplitude = 127 * clamp(volume, 0.0, 1.0)
    if frequency <= 0:
        return bytes([128] * total_samples)
    buffer = bytearray()
    for i in range(total_samples):
        # Exponential fade to about -40 dB over the tone
        envelope = math.exp(-4.6 * i / total_samples)
        phase = (i * frequency / SAMPLE_RATE) % 1.0
        sample_value = 128 + amplitude * envelope * waveform_sample(waveform, phase)
        buffer.append(int(clamp(round(sample_value), 0, 255)))
    return bytes(buffer)


class ToneSynth:
    def __init__(self) -> None:
        self.enabled = False
        self.sounds: Dict[Tuple[float, float, str], pygame.mixer.Sound] = {}
        try:
            if pygame.mixer.get_init() is None:
                pygame.mixer.init(SAMPLE_RATE, 8, 1, 256)
        except pygame.error as exc:
            logger.warning("audio disabled: %s", exc)
            return
        self.enabled = True

    def play(self, frequency: float, duration: float, waveform: str = "sine") -> None:
        if not self.enabled:
            return
        key = (frequency, duration, waveform)
        try:
            sound = self.sounds.get(key)
            if sound is None:
                sound = pygame.mixer.Sound(buffer=build_tone_buffer(frequency, duration, waveform))
                self.sounds[key] = sound
            sound.play()
        except (pygame.error, ValueError) as exc:
            logger.debug("tone %s failed: %s", key, exc)
