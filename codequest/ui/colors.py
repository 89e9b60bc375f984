"""Theme colors and color utilities for the UI."""

from codequest.core.session import BlankState, TokenState


class GameColors:
    """Dark editor-style palette."""

    BG_TOP = "#1b1e2e"
    BG_BOTTOM = "#0d0f1a"

    PRIMARY = "#6c63ff"
    PRIMARY_LIGHT = "#8f88ff"
    PRIMARY_DARK = "#4b44c7"

    SUCCESS = "#43e97b"
    ERROR = "#ff6584"
    WARNING = "#f7971e"

    CARD_BG = "rgba(255, 255, 255, 0.06)"
    CARD_BORDER = "rgba(255, 255, 255, 0.12)"
    CODE_BG = "#1e2235"

    TEXT_PRIMARY = "#f1f2f6"
    TEXT_SECONDARY = "#a4a8c3"
    TEXT_MUTED = "#6b7090"

    BLANK_EMPTY = "#2d3250"
    TOKEN_USED = "#2a2d40"

    # token type tag -> chip color
    TOKEN_TYPES = {
        "keyword": "#c678dd",
        "func": "#61afef",
        "method": "#56b6c2",
        "type": "#e5c07b",
        "class": "#e5c07b",
        "operator": "#d19a66",
        "symbol": "#abb2bf",
    }
    TOKEN_DEFAULT = "#74b9ff"


def blend_hex(a: str, b: str, t: float) -> str:
    """Blend two #RRGGBB colors. t=0 -> a, t=1 -> b."""
    try:
        a = a.strip()
        b = b.strip()
        if not (a.startswith("#") and b.startswith("#") and len(a) == 7 and len(b) == 7):
            return a
        t = max(0.0, min(1.0, float(t)))
        ar, ag, ab = int(a[1:3], 16), int(a[3:5], 16), int(a[5:7], 16)
        br, bg, bb = int(b[1:3], 16), int(b[3:5], 16), int(b[5:7], 16)
        r = int(ar + (br - ar) * t)
        g = int(ag + (bg - ag) * t)
        bl = int(ab + (bb - ab) * t)
        return f"#{r:02X}{g:02X}{bl:02X}"
    except (TypeError, ValueError):
        return a


def token_color(token_type: str) -> str:
    return GameColors.TOKEN_TYPES.get(token_type, GameColors.TOKEN_DEFAULT)


def blank_colors(state: BlankState, accent: str = GameColors.PRIMARY) -> tuple[str, str]:
    """(background, border) for a blank slot."""
    if state is BlankState.CORRECT:
        return blend_hex(GameColors.CODE_BG, GameColors.SUCCESS, 0.25), GameColors.SUCCESS
    if state is BlankState.WRONG:
        return blend_hex(GameColors.CODE_BG, GameColors.ERROR, 0.25), GameColors.ERROR
    if state is BlankState.FILLED:
        return blend_hex(GameColors.CODE_BG, accent, 0.3), accent
    return GameColors.BLANK_EMPTY, GameColors.TEXT_MUTED


def chip_colors(state: TokenState, token_type: str) -> tuple[str, str]:
    """(background, text) for a token chip."""
    base = token_color(token_type)
    if state is TokenState.USED:
        return GameColors.TOKEN_USED, GameColors.TEXT_MUTED
    if state is TokenState.SELECTED:
        return base, GameColors.BG_BOTTOM
    return blend_hex(GameColors.CODE_BG, base, 0.2), base
