"""hardwarelib: simulated keyboard and mouse input, plus input blocking.

Key codes are libuiohook virtual key codes, the values global input hooks
report, so a KeyDown reaction can hand its argument straight back to
keytap(). Every method that takes a key or button accepts either the numeric
code or a name ("A", "Enter", "left", "m").
"""

from __future__ import annotations

import logging
import threading
import time

from reactionhub.capabilities.services import InputSimulator

logger = logging.getLogger(__name__)

KEY_UNDEFINED = 0x0000
BUTTON_NONE = 0

# Holds shorter than this are a single tap.
HOLD_TAP_THRESHOLD_MS = 300
HOLD_REPEAT_MS = 100

KEY_CODES: dict[str, int] = {
    "Escape": 0x0001,
    "F1": 0x003B, "F2": 0x003C, "F3": 0x003D, "F4": 0x003E, "F5": 0x003F, "F6": 0x0040,
    "F7": 0x0041, "F8": 0x0042, "F9": 0x0043, "F10": 0x0044, "F11": 0x0057, "F12": 0x0058,
    "BackQuote": 0x0029,
    "1": 0x0002, "2": 0x0003, "3": 0x0004, "4": 0x0005, "5": 0x0006,
    "6": 0x0007, "7": 0x0008, "8": 0x0009, "9": 0x000A, "0": 0x000B,
    "Minus": 0x000C, "Equals": 0x000D, "Backspace": 0x000E,
    "Tab": 0x000F, "CapsLock": 0x003A,
    "Q": 0x0010, "W": 0x0011, "E": 0x0012, "R": 0x0013, "T": 0x0014,
    "Y": 0x0015, "U": 0x0016, "I": 0x0017, "O": 0x0018, "P": 0x0019,
    "OpenBracket": 0x001A, "CloseBracket": 0x001B, "BackSlash": 0x002B,
    "A": 0x001E, "S": 0x001F, "D": 0x0020, "F": 0x0021, "G": 0x0022,
    "H": 0x0023, "J": 0x0024, "K": 0x0025, "L": 0x0026,
    "Semicolon": 0x0027, "Quote": 0x0028, "Enter": 0x001C,
    "Z": 0x002C, "X": 0x002D, "C": 0x002E, "V": 0x002F, "B": 0x0030, "N": 0x0031, "M": 0x0032,
    "Comma": 0x0033, "Period": 0x0034, "Slash": 0x0035, "Space": 0x0039,
    "PrintScreen": 0x0E37, "ScrollLock": 0x0046, "Pause": 0x0E45,
    "Insert": 0x0E52, "Delete": 0x0E53, "Home": 0x0E47, "End": 0x0E4F,
    "PageUp": 0x0E49, "PageDown": 0x0E51,
    "Up": 0xE048, "Left": 0xE04B, "Right": 0xE04D, "Down": 0xE050,
    "NumLock": 0x0045,
    "LeftShift": 0x002A, "RightShift": 0x0036,
    "LeftControl": 0x001D, "RightControl": 0x0E1D,
    "LeftAlt": 0x0038, "RightAlt": 0x0E38,
    "LeftMeta": 0x0E5B, "RightMeta": 0x0E5C,
    "ContextMenu": 0x0E5D,
}

_KEYS_BY_NAME = {name.casefold(): code for name, code in KEY_CODES.items()}
_KNOWN_CODES = frozenset(KEY_CODES.values())

MOUSE_BUTTONS: dict[str, int] = {
    "l": 1, "left": 1,
    "r": 2, "right": 2,
    "m": 3, "mid": 3, "middle": 3,
}
_MAX_BUTTON = 5


def parse_key(key: object) -> int:
    """Name or code → key code; KEY_UNDEFINED when unknown."""
    if isinstance(key, bool):
        return KEY_UNDEFINED
    if isinstance(key, int):
        return key if key in _KNOWN_CODES else KEY_UNDEFINED
    name = str(key or "").strip()
    if name[:2].casefold() == "vc":
        name = name[2:].strip()
    return _KEYS_BY_NAME.get(name.casefold(), KEY_UNDEFINED)


def parse_button(button: object) -> int:
    """Name or code → button number (1-5); BUTTON_NONE when unknown."""
    if isinstance(button, bool):
        return BUTTON_NONE
    if isinstance(button, int):
        return button if 1 <= button <= _MAX_BUTTON else BUTTON_NONE
    return MOUSE_BUTTONS.get(str(button or "").strip().casefold(), BUTTON_NONE)


class BlockedInputs:
    """Keys and buttons whose native events the input hook should swallow."""

    def __init__(self) -> None:
        self._keys: set[int] = set()
        self._buttons: set[int] = set()
        self._lock = threading.Lock()

    def is_key_blocked(self, code: int) -> bool:
        with self._lock:
            return code in self._keys

    def block_key(self, code: int) -> None:
        with self._lock:
            self._keys.add(code)

    def unblock_key(self, code: int) -> None:
        with self._lock:
            self._keys.discard(code)

    def toggle_key(self, code: int) -> bool:
        """Flip the block; returns the new state."""
        with self._lock:
            if code in self._keys:
                self._keys.discard(code)
                return False
            self._keys.add(code)
            return True

    def blocked_keys(self) -> list[int]:
        with self._lock:
            return sorted(self._keys)

    def is_button_blocked(self, button: int) -> bool:
        with self._lock:
            return button in self._buttons

    def block_button(self, button: int) -> None:
        with self._lock:
            self._buttons.add(button)

    def unblock_button(self, button: int) -> None:
        with self._lock:
            self._buttons.discard(button)

    def toggle_button(self, button: int) -> bool:
        with self._lock:
            if button in self._buttons:
                self._buttons.discard(button)
                return False
            self._buttons.add(button)
            return True


class HardwareLib:
    def __init__(
        self,
        simulator: InputSimulator,
        blocked: BlockedInputs,
        *,
        sleep=time.sleep,
        clock=time.monotonic,
    ) -> None:
        self._sim = simulator
        self._blocked = blocked
        self._sleep = sleep
        self._clock = clock
        self.keycodes = dict(KEY_CODES)
        self.keycodes.update({name.lower(): code for name, code in KEY_CODES.items()})

    def parsekey(self, key: object) -> int:
        return parse_key(key)

    def parsebutton(self, button: object) -> int:
        return parse_button(button)

    # ─── Keyboard ─────────────────────────────────────────────────────────

    def keydown(self, key: object) -> None:
        code = parse_key(key)
        self._sim.key_press(code)
        logger.debug("keydown (%#06x)", code)

    def keyup(self, key: object) -> None:
        code = parse_key(key)
        self._sim.key_release(code)
        logger.debug("keyup (%#06x)", code)

    def keytap(self, key: object) -> None:
        code = parse_key(key)
        self._sim.key_press(code)
        self._sim.key_release(code)
        logger.debug("keytap (%#06x)", code)

    def keyhold(self, key: object, duration_ms: int) -> None:
        if duration_ms < HOLD_TAP_THRESHOLD_MS:
            self.keytap(key)
            return
        code = parse_key(key)
        self._repeat(lambda: self._sim.key_press(code), lambda: self._sim.key_release(code), duration_ms)
        logger.debug("keyhold (%#06x) %dms", code, duration_ms)

    def typetext(self, text: str) -> None:
        self._sim.type_text(str(text))

    # ─── Mouse ────────────────────────────────────────────────────────────

    def mousedown(self, button: object) -> None:
        self._sim.mouse_press(parse_button(button))

    def mouseup(self, button: object) -> None:
        self._sim.mouse_release(parse_button(button))

    def mouseclick(self, button: object) -> None:
        code = parse_button(button)
        self._sim.mouse_press(code)
        self._sim.mouse_release(code)
        logger.debug("mouseclick (%d)", code)

    def mousehold(self, button: object, duration_ms: int) -> None:
        if duration_ms < HOLD_TAP_THRESHOLD_MS:
            self.mouseclick(button)
            return
        code = parse_button(button)
        self._repeat(lambda: self._sim.mouse_press(code), lambda: self._sim.mouse_release(code), duration_ms)
        logger.debug("mousehold (%d) %dms", code, duration_ms)

    def scrollvertical(self, delta: int) -> None:
        self._sim.mouse_wheel(int(delta), True)

    def scrollhorizontal(self, delta: int) -> None:
        self._sim.mouse_wheel(int(delta), False)

    def setmouseposition(self, x: int, y: int) -> None:
        self._sim.mouse_move(int(x), int(y))

    def movemouse(self, dx: int, dy: int) -> None:
        self._sim.mouse_move_relative(int(dx), int(dy))

    # ─── Blocking ─────────────────────────────────────────────────────────

    def blockkey(self, key: object) -> None:
        self._blocked.block_key(parse_key(key))

    def unblockkey(self, key: object) -> None:
        self._blocked.unblock_key(parse_key(key))

    def togglekey(self, key: object) -> bool:
        return self._blocked.toggle_key(parse_key(key))

    def iskeyblocked(self, key: object) -> bool:
        return self._blocked.is_key_blocked(parse_key(key))

    def blockbutton(self, button: object) -> None:
        self._blocked.block_button(parse_button(button))

    def unblockbutton(self, button: object) -> None:
        self._blocked.unblock_button(parse_button(button))

    def togglebutton(self, button: object) -> bool:
        return self._blocked.toggle_button(parse_button(button))

    def isbuttonblocked(self, button: object) -> bool:
        return self._blocked.is_button_blocked(parse_button(button))

    def blockedkeys(self) -> list[int]:
        return self._blocked.blocked_keys()

    # ─── Internal ─────────────────────────────────────────────────────────

    def _repeat(self, press, release, duration_ms: int) -> None:
        # One press/release pair per HOLD_REPEAT_MS until the duration has elapsed.
        end = self._clock() + duration_ms / 1000.0
        while self._clock() < end:
            press()
            self._sleep(HOLD_REPEAT_MS / 1000.0)
            release()
