"""
System TTS Provider — offline voices built into the OS.

- macOS: ``say -o file.aiff``
- Windows: SAPI through PowerShell, rendered to a WAV file
- Linux: ``espeak-ng`` / ``espeak -w file.wav``

Robotic, but always there. Last step of every engine cascade.
"""

from __future__ import annotations

import logging
import os
import shutil
import sys
import tempfile
from pathlib import Path

import voicenotify.core.config as config_module
from voicenotify.core.config import TTSConfig
from voicenotify.core.process import run_process
from voicenotify.providers.base import SpeechError, TTSProvider, tracked

logger = logging.getLogger(__name__)

_SAPI_SCRIPT = """
Add-Type -AssemblyName System.Speech
$synth = New-Object System.Speech.Synthesis.SpeechSynthesizer
$synth.Rate = {rate}
{select_voice}
$synth.SetOutputToWaveFile('{out_path}')
$synth.Speak('{text}')
$synth.Dispose()
"""


def _ps_quote(value: str) -> str:
    """Escape for a single-quoted PowerShell string."""
    return value.replace("'", "''")


class SystemTTSProvider(TTSProvider):
    name = "system"

    def __init__(self, cfg: TTSConfig | None = None, platform: str = sys.platform):
        self._cfg = cfg or config_module.config.tts
        self._platform = platform
        self._binary: str | None = None
        self.audio_suffix = ".aiff" if platform == "darwin" else ".wav"

    async def start(self) -> None:
        if self._platform == "darwin":
            candidates = ["say"]
        elif self._platform == "win32":
            candidates = ["powershell.exe", "powershell"]
        else:
            candidates = ["espeak-ng", "espeak"]

        for candidate in candidates:
            found = shutil.which(candidate)
            if found:
                self._binary = found
                break
        if not self._binary:
            raise RuntimeError(f"No system speech engine found ({', '.join(candidates)})")
        logger.info("System TTS ready (%s)", os.path.basename(self._binary))

    async def stop(self) -> None:
        self._binary = None

    async def synthesize(self, text: str) -> bytes:
        if not self._binary:
            raise RuntimeError("System TTS not started")

        fd, out_path = tempfile.mkstemp(prefix="voicenotify-sys-", suffix=self.audio_suffix)
        os.close(fd)
        try:
            async with tracked(self.name):
                result = await run_process(
                    *self._command(text, out_path), timeout=self._cfg.timeout
                )
                audio = Path(out_path).read_bytes() if result.ok else b""
                if not audio:
                    raise SpeechError(
                        f"exit code {result.returncode}: {result.stderr[:200]}"
                    )
                return audio
        finally:
            Path(out_path).unlink(missing_ok=True)

    def _command(self, text: str, out_path: str) -> list[str]:
        voice = self._cfg.system_voice
        if self._platform == "darwin":
            argv = [self._binary, "-o", out_path]
            if voice:
                argv += ["-v", voice]
            return argv + ["--", text]

        if self._platform == "win32":
            rate = max(-10, min(10, self._cfg.system_rate))
            select_voice = (
                f"try {{ $synth.SelectVoice('{_ps_quote(voice)}') }} catch {{}}"
                if voice
                else ""
            )
            script = _SAPI_SCRIPT.format(
                rate=rate,
                select_voice=select_voice,
                out_path=_ps_quote(out_path),
                text=_ps_quote(text),
            )
            return [
                self._binary,
                "-NoProfile",
                "-ExecutionPolicy",
                "Bypass",
                "-Command",
                script,
            ]

        argv = [self._binary, "-w", out_path]
        if voice:
            argv += ["-v", voice]
        # Text from the AI may start with "-"
        return argv + ["--", text]

    async def health_check(self) -> dict:
        return {
            "provider": self.name,
            "platform": self._platform,
            "status": "ready" if self._binary else "not_started",
        }
