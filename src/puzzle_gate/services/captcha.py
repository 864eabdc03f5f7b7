"""Generation of SVG CAPTCHA images and tolerant answer checking.

Images are assembled as SVG text so no imaging library is needed. The code
alphabet avoids glyphs that the verifier treats as interchangeable.
"""

from __future__ import annotations

import base64
import logging
import math
import secrets
from dataclasses import dataclass
from xml.sax.saxutils import escape

from puzzle_gate.core.settings import settings
from puzzle_gate.services.ephemeral import CaptchaStore

logger = logging.getLogger(__name__)

CHARSET = "ACDEFHJKMNPQRTUVWXY3467"

BACKGROUND_COLOR = "#0a0e27"
GRID_SPACING = 20
FONT_SIZE = 72

# Characters mapped to the same canonical form compare equal.
_ALIASES = {
    "O": "0",
    "I": "1",
    "L": "1",
    "Z": "2",
    "S": "5",
    "B": "8",
    "G": "9",
}

PALETTES: dict[str, tuple[str, ...]] = {
    "neon": ("#ff006e", "#fb5607", "#ffbe0b", "#8338ec", "#3a86ff"),
    "aurora": ("#00f5ff", "#00d9ff", "#0abdc6", "#0091ad", "#007991"),
    "sunset": ("#ff9e00", "#ff6d00", "#ff3d00", "#f50057", "#d500f9"),
    "electric": ("#00e5ff", "#00b0ff", "#0091ea", "#2979ff", "#3d5afe"),
    "plasma": ("#ff1744", "#f50057", "#d500f9", "#651fff", "#3d5afe"),
}


@dataclass(frozen=True)
class CaptchaChallenge:
    """A rendered challenge with its expected answer."""

    code: str
    image: str
    width: int
    height: int


def _canonical(char: str) -> str:
    return _ALIASES.get(char, char)


def verify(expected: str | None, actual: str | None) -> bool:
    """Return True when ``actual`` matches ``expected`` modulo look-alike glyphs.

    Case is ignored. A provided ``7`` is also accepted where a ``1`` is
    expected, but not the other way around.
    """
    if not isinstance(expected, str) or not isinstance(actual, str):
        return False
    expected = expected.strip().upper()
    actual = actual.strip().upper()
    if not expected or not actual or len(expected) != len(actual):
        return False

    for want, got in zip(expected, actual):
        want_c = _canonical(want)
        got_c = _canonical(got)
        if want_c == got_c:
            continue
        if want_c == "1" and got == "7":
            continue
        return False
    return True


def generate_code(length: int) -> str:
    return "".join(secrets.choice(CHARSET) for _ in range(length))


def _rand(low: float, high: float) -> float:
    return low + (high - low) * secrets.randbelow(10_000) / 10_000


def _defs(colors: tuple[str, ...]) -> str:
    return (
        "<defs>"
        '<linearGradient id="bg-gradient" x1="0%" y1="0%" x2="100%" y2="100%">'
        f'<stop offset="0%" stop-color="{BACKGROUND_COLOR}"/>'
        f'<stop offset="50%" stop-color="{colors[4]}" stop-opacity="0.15"/>'
        f'<stop offset="100%" stop-color="{BACKGROUND_COLOR}"/>'
        "</linearGradient>"
        '<filter id="glow" x="-50%" y="-50%" width="200%" height="200%">'
        '<feGaussianBlur stdDeviation="3" result="blur"/>'
        '<feMerge><feMergeNode in="blur"/><feMergeNode in="SourceGraphic"/></feMerge>'
        "</filter>"
        '<filter id="strong-glow" x="-50%" y="-50%" width="200%" height="200%">'
        '<feGaussianBlur stdDeviation="8"/>'
        "</filter>"
        '<pattern id="noise" width="4" height="4" patternUnits="userSpaceOnUse">'
        '<rect width="1" height="1" fill="#ffffff" fill-opacity="0.05"/>'
        "</pattern>"
        "</defs>"
    )


def _grid(width: int, height: int, color: str) -> str:
    lines = [
        f'<line x1="{x}" y1="0" x2="{x}" y2="{height}"/>'
        for x in range(0, width + 1, GRID_SPACING)
    ]
    lines += [
        f'<line x1="0" y1="{y}" x2="{width}" y2="{y}"/>'
        for y in range(0, height + 1, GRID_SPACING)
    ]
    return f'<g stroke="{color}" stroke-opacity="0.08" stroke-width="1">{"".join(lines)}</g>'


def _orbs(width: int, height: int, colors: tuple[str, ...]) -> str:
    parts = []
    for _ in range(3 + secrets.randbelow(3)):
        parts.append(
            f'<circle cx="{_rand(0, width):.1f}" cy="{_rand(0, height):.1f}" '
            f'r="{_rand(15, 40):.1f}" fill="{secrets.choice(colors)}" '
            f'fill-opacity="{_rand(0.1, 0.3):.2f}" filter="url(#strong-glow)"/>'
        )
    return "".join(parts)


def _waves(width: int, height: int, colors: tuple[str, ...]) -> str:
    parts = []
    for _ in range(2 + secrets.randbelow(2)):
        amplitude = _rand(8, 20)
        frequency = _rand(0.01, 0.03)
        phase = _rand(0, math.pi * 2)
        base_y = _rand(height * 0.25, height * 0.75)
        points = " ".join(
            f"{x},{base_y + amplitude * math.sin(frequency * x + phase):.1f}"
            for x in range(0, width + 1, 10)
        )
        parts.append(
            f'<polyline points="{points}" fill="none" stroke="{secrets.choice(colors)}" '
            f'stroke-width="{_rand(1, 2.5):.1f}" stroke-opacity="0.5" filter="url(#glow)"/>'
        )
    return "".join(parts)


def _particles(width: int, height: int, colors: tuple[str, ...]) -> str:
    parts = []
    for _ in range(20 + secrets.randbelow(30)):
        parts.append(
            f'<circle cx="{_rand(0, width):.1f}" cy="{_rand(0, height):.1f}" '
            f'r="{_rand(0.5, 2):.1f}" fill="{secrets.choice(colors)}" '
            f'fill-opacity="{_rand(0.3, 0.8):.2f}"/>'
        )
    return "".join(parts)


def _characters(code: str, width: int, height: int, colors: tuple[str, ...]) -> str:
    step = width / (len(code) + 1)
    parts = []
    for index, char in enumerate(code):
        x = step * (index + 1)
        y = height / 2 + _rand(-7.5, 7.5)
        rotation = _rand(-10, 10)
        parts.append(
            f'<text x="{x:.1f}" y="{y:.1f}" font-size="{FONT_SIZE}" '
            'font-family="Courier New, monospace" font-weight="bold" '
            'text-anchor="middle" dominant-baseline="central" '
            f'fill="{colors[index % len(colors)]}" filter="url(#glow)" '
            f'transform="rotate({rotation:.1f} {x:.1f} {y:.1f})">{escape(char)}</text>'
        )
    return "".join(parts)


def render_svg(code: str, width: int, height: int, palette: str | None = None) -> str:
    """Return the SVG document for ``code``."""
    colors = PALETTES[palette] if palette else PALETTES[secrets.choice(list(PALETTES))]
    return (
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{width}" height="{height}" '
        f'viewBox="0 0 {width} {height}">'
        f"{_defs(colors)}"
        f'<rect width="{width}" height="{height}" fill="{BACKGROUND_COLOR}"/>'
        f'<rect width="{width}" height="{height}" fill="url(#bg-gradient)"/>'
        f'<rect width="{width}" height="{height}" fill="url(#noise)"/>'
        f"{_grid(width, height, colors[0])}"
        f"{_orbs(width, height, colors)}"
        f"{_waves(width, height, colors)}"
        f"{_particles(width, height, colors)}"
        f"{_characters(code, width, height, colors)}"
        "</svg>"
    )


def to_data_url(svg: str) -> str:
    encoded = base64.b64encode(svg.encode("utf-8")).decode("ascii")
    return f"data:image/svg+xml;base64,{encoded}"


def generate(width: int = 400, height: int = 150, length: int = 6) -> CaptchaChallenge:
    """Create a random code and its rendered image.

    Raises:
        ValueError: If a dimension or the length is not positive.
    """
    if width <= 0 or height <= 0 or length <= 0:
        raise ValueError("width, height and length must be positive")
    code = generate_code(length)
    return CaptchaChallenge(
        code=code,
        image=to_data_url(render_svg(code, width, height)),
        width=width,
        height=height,
    )


class CaptchaService:
    """Issue challenges and check answers against the one-shot store."""

    def __init__(self, store: CaptchaStore | None = None) -> None:
        self.store = store or CaptchaStore()

    def generate(
        self,
        width: int | None = None,
        height: int | None = None,
        length: int | None = None,
    ) -> tuple[str, CaptchaChallenge]:
        """Render a challenge and remember its code; returns ``(captcha_id, challenge)``."""
        challenge = generate(
            width or settings.captcha_width,
            height or settings.captcha_height,
            length or settings.captcha_length,
        )
        captcha_id = self.store.issue(challenge.code)
        logger.debug("Issued CAPTCHA %s", captcha_id)
        return captcha_id, challenge

    def verify(self, captcha_id: str | None, answer: str | None) -> bool:
        """Check ``answer`` for ``captcha_id``; the challenge is spent either way."""
        if not captcha_id:
            return False
        expected = self.store.consume(captcha_id)
        if expected is None:
            logger.info("CAPTCHA %s unknown or expired", captcha_id)
            return False
        ok = verify(expected, answer)
        if not ok:
            logger.info("CAPTCHA %s answered incorrectly", captcha_id)
        return ok

    def refresh(self, previous_id: str | None = None) -> tuple[str, CaptchaChallenge]:
        """Discard ``previous_id`` and issue a new challenge."""
        if previous_id:
            self.store.discard(previous_id)
        return self.generate()


def get_captcha_service() -> CaptchaService:
    """Return a CAPTCHA service bound to the default store."""
    return CaptchaService()
