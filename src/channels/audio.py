"""
Reminder sounds, synthesised on the fly as mono float32 sample buffers.

  beep   sine at 440 Hz, quiet, 0.2 s
  chime  sine sweeping 500 -> 1000 Hz over 0.1 s, gain decaying 0.5 -> 0.01 over 0.5 s
  alert  two sawtooth tones, 200 -> 150 Hz then 200 Hz, 0.3 s each with a 0.1 s gap
"""

import asyncio
from typing import Protocol

import numpy as np

from channels.base import NotificationChannel
from config.settings import AUDIO_SAMPLE_RATE, ENABLE_AUDIO
from datamodel import ChannelOutcome, Reminder, ReminderSettings, SoundType
from logger import logger

__all__ = ["synthesize", "AudioPlayer", "SounddevicePlayer", "AudioChannel"]


def _timeline(duration: float, sample_rate: int) -> np.ndarray:
    return np.arange(int(round(duration * sample_rate)), dtype=np.float64) / sample_rate


def _phase(freq: np.ndarray, sample_rate: int) -> np.ndarray:
    """Accumulated phase in cycles for a per-sample frequency curve"""
    return np.cumsum(freq) / sample_rate


def _sawtooth(cycles: np.ndarray) -> np.ndarray:
    return 2.0 * (cycles - np.floor(cycles + 0.5))


def _beep(sample_rate: int) -> np.ndarray:
    t = _timeline(0.2, sample_rate)
    return 0.1 * np.sin(2 * np.pi * 440.0 * t)


def _chime(sample_rate: int) -> np.ndarray:
    t = _timeline(0.5, sample_rate)
    sweep = np.minimum(t / 0.1, 1.0)
    freq = 500.0 * np.power(1000.0 / 500.0, sweep)
    gain = 0.5 * np.power(0.01 / 0.5, t / 0.5)
    return gain * np.sin(2 * np.pi * _phase(freq, sample_rate))


def _alert(sample_rate: int) -> np.ndarray:
    t = _timeline(0.3, sample_rate)
    falling = 200.0 + (150.0 - 200.0) * (t / 0.3)
    first = 0.3 * _sawtooth(_phase(falling, sample_rate))
    gap = np.zeros(len(_timeline(0.1, sample_rate)))
    second = 0.3 * _sawtooth(200.0 * t)
    return np.concatenate([first, gap, second])


_SYNTHS = {
    SoundType.BEEP: _beep,
    SoundType.CHIME: _chime,
    SoundType.ALERT: _alert,
}


def synthesize(sound_type: SoundType, sample_rate: int = AUDIO_SAMPLE_RATE) -> np.ndarray:
    if sample_rate <= 0:
        raise ValueError(f"sample_rate must be positive, got {sample_rate}")
    return _SYNTHS[SoundType(sound_type)](sample_rate).astype(np.float32)


class AudioPlayer(Protocol):
    def play(self, samples: np.ndarray, sample_rate: int) -> None: ...


class SounddevicePlayer:
    """Plays through the default output device, blocking until the clip ends."""

    def play(self, samples: np.ndarray, sample_rate: int) -> None:
        import sounddevice as sd

        sd.play(samples, samplerate=sample_rate)
        sd.wait()


class AudioChannel(NotificationChannel):
    name = "audio"

    def __init__(
        self,
        player: AudioPlayer | None = None,
        sample_rate: int = AUDIO_SAMPLE_RATE,
        enabled: bool = ENABLE_AUDIO,
    ) -> None:
        self.player = player or SounddevicePlayer()
        self.sample_rate = sample_rate
        self.enabled = enabled

    async def attempt(self, reminder: Reminder, settings: ReminderSettings) -> ChannelOutcome:
        if not settings.sound_enabled or not self.enabled:
            return ChannelOutcome.SKIPPED
        if await self.play_sound(settings.sound_type):
            return ChannelOutcome.DELIVERED
        return ChannelOutcome.FAILED

    async def play_sound(self, sound_type: SoundType) -> bool:
        """Play one clip off the event loop. Returns False when no audio could be produced."""
        try:
            samples = synthesize(sound_type, self.sample_rate)
            await asyncio.to_thread(self.player.play, samples, self.sample_rate)
        except Exception as e:
            logger.warning(f"Could not play {sound_type} sound: {e}")
            return False
        return True
