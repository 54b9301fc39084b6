"""
Audio Player — system media playback plus display wake and volume boost.

Everything here is best-effort: a missing player binary or a failed command
is logged and reported as False, never raised.
"""

from __future__ import annotations

import logging
import re
import sys

import voicenotify.core.config as config_module
from voicenotify.core.config import NotifyConfig
from voicenotify.core.process import run_process

logger = logging.getLogger(__name__)

PLAYBACK_TIMEOUT = 120  # seconds per loop
COMMAND_TIMEOUT = 10

_PS_PLAY = """
Add-Type -AssemblyName presentationCore
$player = New-Object System.Windows.Media.MediaPlayer
$player.Volume = 1.0
for ($i = 0; $i -lt {loops}; $i++) {{
  $player.Open([Uri]::new('{path}'))
  $player.Play()
  Start-Sleep -Milliseconds 500
  while ($player.Position -lt $player.NaturalDuration.TimeSpan -and $player.HasAudio) {{
    Start-Sleep -Milliseconds 100
  }}
}}
$player.Close()
"""

_PS_WAKE = (
    "Add-Type -MemberDefinition '[DllImport(\"user32.dll\")] public static extern int "
    "SendMessage(int hWnd, int hMsg, int wParam, int lParam);' -Name Win32SendMessage "
    "-Namespace Win32Functions; "
    "[Win32Functions.Win32SendMessage]::SendMessage(0xFFFF, 0x0112, 0xF170, -1)"
)

_PS_IDLE_SECONDS = """
Add-Type -TypeDefinition @'
using System;
using System.Runtime.InteropServices;
public static class IdleCheck {
    [StructLayout(LayoutKind.Sequential)]
    public struct LASTINPUTINFO { public uint cbSize; public uint dwTime; }
    [DllImport("user32.dll")]
    public static extern bool GetLastInputInfo(ref LASTINPUTINFO plii);
    public static uint GetIdleSeconds() {
        LASTINPUTINFO lii = new LASTINPUTINFO();
        lii.cbSize = (uint)Marshal.SizeOf(lii);
        if (GetLastInputInfo(ref lii)) {
            return (uint)((Environment.TickCount - lii.dwTime) / 1000);
        }
        return 0;
    }
}
'@
[IdleCheck]::GetIdleSeconds()
"""

_PS_VOLUME_UP = (
    "$wsh = New-Object -ComObject WScript.Shell; "
    "1..50 | ForEach-Object { $wsh.SendKeys([char]175) }"
)

_PERCENT_RE = re.compile(r"(\d{1,3})%")


def _powershell(script: str) -> list[str]:
    return ["powershell.exe", "-NoProfile", "-ExecutionPolicy", "Bypass", "-Command", script]


class AudioPlayer:
    """Plays audio files and nudges the machine to be seen and heard."""

    def __init__(self, cfg: NotifyConfig | None = None, platform: str = sys.platform):
        self._cfg = cfg or config_module.config.notify
        self._platform = platform

    async def play_file(self, path: str, loops: int = 1) -> bool:
        loops = max(1, loops)
        if self._platform == "win32":
            script = _PS_PLAY.format(loops=loops, path=path.replace("'", "''"))
            result = await run_process(
                *_powershell(script), timeout=PLAYBACK_TIMEOUT * loops
            )
            if not result.ok:
                logger.warning("Playback failed for %s: %s", path, result.stderr[:200])
            return result.ok

        for _ in range(loops):
            if not await self._play_once(path):
                return False
        return True

    async def _play_once(self, path: str) -> bool:
        if self._platform == "darwin":
            candidates = [["afplay", path]]
        else:
            candidates = [
                ["paplay", path],
                ["aplay", "-q", path],
                ["ffplay", "-nodisp", "-autoexit", "-loglevel", "quiet", path],
            ]
        for argv in candidates:
            result = await run_process(*argv, timeout=PLAYBACK_TIMEOUT)
            if result.ok:
                return True
            logger.debug("%s could not play %s (code %d)", argv[0], path, result.returncode)
        logger.warning("No audio player could play %s", path)
        return False

    async def idle_seconds(self) -> int:
        """Seconds since the last keyboard or mouse input, -1 when unknown."""
        if self._platform != "win32":
            return -1
        result = await run_process(*_powershell(_PS_IDLE_SECONDS), timeout=COMMAND_TIMEOUT)
        try:
            return int(result.stdout.strip()) if result.ok else -1
        except ValueError:
            return -1

    async def display_likely_asleep(self) -> bool:
        """True unless input is known to be more recent than the idle threshold."""
        idle = await self.idle_seconds()
        return idle < 0 or idle >= self._cfg.idle_threshold_seconds

    async def wake_display(self, force: bool = False) -> None:
        if not self._cfg.wake_monitor:
            return
        if not force and not await self.display_likely_asleep():
            logger.debug("Wake display skipped: user input is recent")
            return
        if self._platform == "win32":
            argv = _powershell(_PS_WAKE)
        elif self._platform == "darwin":
            argv = ["caffeinate", "-u", "-t", "1"]
        else:
            argv = ["xset", "dpms", "force", "on"]
        result = await run_process(*argv, timeout=COMMAND_TIMEOUT)
        if not result.ok:
            logger.debug("Wake display failed (code %d)", result.returncode)

    async def current_volume(self) -> int:
        """Output volume 0-100, or -1 when it cannot be read."""
        if self._platform == "darwin":
            result = await run_process(
                "osascript", "-e", "output volume of (get volume settings)",
                timeout=COMMAND_TIMEOUT,
            )
            try:
                return int(result.stdout.strip()) if result.ok else -1
            except ValueError:
                return -1
        if self._platform.startswith("linux"):
            result = await run_process(
                "pactl", "get-sink-volume", "@DEFAULT_SINK@", timeout=COMMAND_TIMEOUT
            )
            match = _PERCENT_RE.search(result.stdout) if result.ok else None
            return int(match.group(1)) if match else -1
        return -1

    async def force_volume(self) -> None:
        """Raise output volume when it is below the configured threshold."""
        if not self._cfg.force_volume:
            return
        volume = await self.current_volume()
        if volume >= self._cfg.volume_threshold:
            return

        if self._platform == "win32":
            argv = _powershell(_PS_VOLUME_UP)
        elif self._platform == "darwin":
            argv = ["osascript", "-e", "set volume output volume 100"]
        else:
            argv = ["pactl", "set-sink-volume", "@DEFAULT_SINK@", "100%"]
        result = await run_process(*argv, timeout=COMMAND_TIMEOUT)
        if result.ok:
            logger.debug("Volume raised (was %d)", volume)
        else:
            logger.debug("Volume boost failed (code %d)", result.returncode)
