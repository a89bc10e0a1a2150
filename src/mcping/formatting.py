"""Flatten MOTDs and strip or convert Minecraft formatting codes."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterator

# Pattern to match Minecraft formatting codes
# Matches: §x§R§R§G§G§B§B (RGB) or §X (single char code)
_MC_FORMAT_PATTERN = re.compile(r"§x(?:§[0-9A-Fa-f]){6}|§.")
_HEX_COLOR_PATTERN = re.compile(r"#[0-9A-Fa-f]{6}")

_ANSI_RESET = "\033[0m"
_COLOR_CHARS = "0123456789abcdef"
_RGB_HEX_DIGITS = 6

# Mapping from Minecraft single-char formatting codes to ANSI escape sequences.
# §k (obfuscated) is intentionally omitted, no terminal equivalent.
_MC_TO_ANSI: dict[str, str] = {
    "0": "\033[30m",  # Black
    "1": "\033[34m",  # Dark Blue
    "2": "\033[32m",  # Dark Green
    "3": "\033[36m",  # Dark Cyan
    "4": "\033[31m",  # Dark Red
    "5": "\033[35m",  # Dark Magenta
    "6": "\033[33m",  # Gold
    "7": "\033[37m",  # Gray
    "8": "\033[90m",  # Dark Gray
    "9": "\033[94m",  # Blue
    "a": "\033[92m",  # Green
    "b": "\033[96m",  # Cyan
    "c": "\033[91m",  # Red
    "d": "\033[95m",  # Magenta
    "e": "\033[93m",  # Yellow
    "f": "\033[97m",  # White
    "l": "\033[1m",  # Bold
    "m": "\033[9m",  # Strikethrough
    "n": "\033[4m",  # Underline
    "o": "\033[3m",  # Italic
    "r": "\033[0m",  # Reset
}

# Chat component color names and their legacy codes
_COLOR_CODES: dict[str, str] = {
    "black": "0",
    "dark_blue": "1",
    "dark_green": "2",
    "dark_aqua": "3",
    "dark_red": "4",
    "dark_purple": "5",
    "gold": "6",
    "gray": "7",
    "dark_gray": "8",
    "blue": "9",
    "green": "a",
    "aqua": "b",
    "red": "c",
    "light_purple": "d",
    "yellow": "e",
    "white": "f",
}

# Chat component style flags, in the order their codes are emitted
_STYLE_CODES: tuple[tuple[str, str], ...] = (
    ("obfuscated", "k"),
    ("bold", "l"),
    ("strikethrough", "m"),
    ("underlined", "n"),
    ("italic", "o"),
)


def description_to_legacy(description: Any) -> str:
    """Flatten a status ``description`` into text with ``§`` codes.

    The description is either a plain string (which may already contain
    ``§`` codes) or a chat component: an object with ``text``, optional
    ``color`` and style flags, and an ``extra`` list of child components
    that inherit the parent's style. A bare list is treated as a sequence of
    sibling components.
    """
    if description is None:
        return ""
    if isinstance(description, str):
        return description

    parts: list[str] = []
    current = ""
    for text, codes in _walk_component(description, ""):
        if not text:
            continue
        if codes != current:
            if current:
                parts.append("§r")
            parts.append(codes)
            current = codes
        parts.append(text)
    return "".join(parts)


def _walk_component(component: Any, inherited: str) -> Iterator[tuple[str, str]]:
    """Yield (text, codes) pairs for a component and its children."""
    if isinstance(component, str):
        yield component, inherited
        return
    if isinstance(component, list):
        for child in component:
            yield from _walk_component(child, inherited)
        return
    if not isinstance(component, dict):
        yield str(component), inherited
        return

    codes = _component_codes(component, inherited)
    yield str(component.get("text", "")), codes
    extra = component.get("extra")
    if not isinstance(extra, list):
        return
    for child in extra:
        yield from _walk_component(child, codes)


def _component_codes(component: dict[str, Any], inherited: str) -> str:
    """Combine a component's own color and styles with its parent's."""
    color = _color_code(component.get("color"))
    if color is None:
        color = _inherited_color(inherited)

    styles = ""
    for name, code in _STYLE_CODES:
        value = component.get(name)
        if value is None:
            value = f"§{code}" in inherited
        if value:
            styles += f"§{code}"
    return color + styles


def _color_code(color: Any) -> str | None:
    """Legacy code sequence for a named or ``#RRGGBB`` color."""
    if not isinstance(color, str):
        return None
    if _HEX_COLOR_PATTERN.fullmatch(color):
        return "§x" + "".join(f"§{c}" for c in color[1:])
    code = _COLOR_CODES.get(color.lower())
    return f"§{code}" if code is not None else None


def _inherited_color(codes: str) -> str:
    """The color code at the start of a parent's code sequence, if any."""
    match = _MC_FORMAT_PATTERN.match(codes)
    if match is None:
        return ""
    code = match.group(0)
    if code.startswith("§x") or code[1].lower() in _COLOR_CHARS:
        return code
    return ""


def strip_formatting(text: str) -> str:
    """Remove all Minecraft formatting codes from text.

    Args:
        text: Raw text from the Minecraft server.

    Returns:
        Clean text with all formatting codes removed.
    """
    return _MC_FORMAT_PATTERN.sub("", text)


def convert_formatting(text: str) -> str:
    """Convert Minecraft formatting codes to ANSI escape sequences.

    RGB colors (§x§R§R§G§G§B§B) become 24-bit ANSI color sequences. As in
    the game, a color code also clears active styles. Codes without a
    terminal equivalent (§k) are stripped. A reset sequence is
    appended if any formatting was applied.

    Args:
        text: Raw text from the Minecraft server.

    Returns:
        Text with Minecraft codes replaced by ANSI escape sequences.
    """
    has_formatting = False

    def _replace(match: re.Match[str]) -> str:
        nonlocal has_formatting
        code = match.group(0)

        # RGB color: §x§R§R§G§G§B§B
        if code.startswith("§x"):
            hex_chars = [c for c in code if c not in ("§", "x")]
            if len(hex_chars) == _RGB_HEX_DIGITS:
                r = int(hex_chars[0] + hex_chars[1], 16)
                g = int(hex_chars[2] + hex_chars[3], 16)
                b = int(hex_chars[4] + hex_chars[5], 16)
                has_formatting = True
                return f"{_ANSI_RESET}\033[38;2;{r};{g};{b}m"
            return ""

        # Single-char code: §X
        char = code[1].lower()
        ansi = _MC_TO_ANSI.get(char)
        if ansi is None:
            return ""
        has_formatting = True
        # A color code also clears any active styles
        if char in _COLOR_CHARS:
            return _ANSI_RESET + ansi
        return ansi

    result = _MC_FORMAT_PATTERN.sub(_replace, text)
    if has_formatting:
        result += _ANSI_RESET
    return result


def format_motd(description: Any, *, color: bool = True) -> str:
    """Format a status description for terminal display.

    Args:
        description: The ``description`` value from the status JSON.
        color: If True, convert formatting codes to ANSI sequences.
            If False, strip all formatting codes.

    Returns:
        Formatted text ready for printing.
    """
    text = description_to_legacy(description)
    if color:
        return convert_formatting(text)
    return strip_formatting(text)
