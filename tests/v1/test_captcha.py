"""Tests for CAPTCHA rendering, answer checking and the challenge endpoints."""

from __future__ import annotations

import base64

import pytest
from fastapi import status
from fastapi.testclient import TestClient

from puzzle_gate.services import captcha
from puzzle_gate.services.captcha import CHARSET, PALETTES, CaptchaService
from puzzle_gate.services.ephemeral import CaptchaStore, EphemeralStore


def _decode_svg(data_url: str) -> str:
    prefix = "data:image/svg+xml;base64,"
    assert data_url.startswith(prefix)
    return base64.b64decode(data_url[len(prefix):]).decode("utf-8")


class TestVerify:
    """Tolerant comparison of answers."""

    @pytest.mark.parametrize(
        ("expected", "actual"),
        [
            ("ACDEFH", "ACDEFH"),
            ("acdefh", "ACDEFH"),
            (" ACDEFH ", "acdefh"),
            ("O0O0", "0O0O"),
            ("IL1", "111"),
            ("1", "I"),
            ("1", "7"),
            ("I", "7"),
            ("S5", "55"),
            ("ZB", "28"),
            ("G", "9"),
            ("O1BC", "0ibc"),
        ],
    )
    def test_accepts_equivalent_answers(self, expected: str, actual: str) -> None:
        assert captcha.verify(expected, actual) is True

    @pytest.mark.parametrize(
        ("expected", "actual"),
        [
            ("7", "1"),
            ("7", "I"),
            ("ACDEFH", "ACDEF"),
            ("ACDEFH", "ACDEFX"),
            ("", ""),
            ("ACD", ""),
            ("ACD", None),
            (None, "ACD"),
        ],
    )
    def test_rejects_other_answers(self, expected, actual) -> None:
        assert captcha.verify(expected, actual) is False


class TestGenerate:
    """Image rendering."""

    def test_code_uses_unambiguous_alphabet(self) -> None:
        for _ in range(50):
            code = captcha.generate_code(6)
            assert len(code) == 6
            assert set(code) <= set(CHARSET)

    def test_image_is_svg_data_url_with_every_character(self, mocker) -> None:
        mocker.patch("puzzle_gate.services.captcha.generate_code", return_value="AC3467")

        challenge = captcha.generate()

        assert challenge.code == "AC3467"
        assert (challenge.width, challenge.height) == (400, 150)
        svg = _decode_svg(challenge.image)
        assert svg.startswith("<svg")
        assert 'width="400"' in svg
        assert 'id="glow"' in svg and 'id="bg-gradient"' in svg
        for char in "AC3467":
            assert f">{char}</text>" in svg

    def test_explicit_palette_colours_are_used(self) -> None:
        svg = captcha.render_svg("ACD", 200, 80, palette="aurora")
        assert PALETTES["aurora"][0] in svg

    @pytest.mark.parametrize(("width", "height", "length"), [(0, 150, 6), (400, -1, 6), (400, 150, 0)])
    def test_rejects_non_positive_dimensions(self, width: int, height: int, length: int) -> None:
        with pytest.raises(ValueError):
            captcha.generate(width, height, length)


class TestCaptchaService:
    """One-shot challenge lifecycle."""

    def test_correct_answer_passes_once(self) -> None:
        service = CaptchaService(CaptchaStore(EphemeralStore(redis_url="")))
        captcha_id, challenge = service.generate()

        assert service.verify(captcha_id, challenge.code.lower()) is True
        assert service.verify(captcha_id, challenge.code) is False

    def test_wrong_answer_spends_the_challenge(self) -> None:
        service = CaptchaService(CaptchaStore(EphemeralStore(redis_url="")))
        captcha_id, challenge = service.generate()

        assert service.verify(captcha_id, "XXXXXX") is False
        assert service.verify(captcha_id, challenge.code) is False

    def test_unknown_or_missing_id_fails(self) -> None:
        service = CaptchaService(CaptchaStore(EphemeralStore(redis_url="")))
        assert service.verify("does-not-exist", "ACDEFH") is False
        assert service.verify(None, "ACDEFH") is False

    def test_expired_challenge_fails(self, mocker) -> None:
        clock = mocker.patch("puzzle_gate.services.ephemeral.time")
        clock.monotonic.return_value = 1000.0
        service = CaptchaService(CaptchaStore(EphemeralStore(redis_url=""), ttl_seconds=60))
        captcha_id, challenge = service.generate()

        clock.monotonic.return_value = 1061.0

        assert service.verify(captcha_id, challenge.code) is False

    def test_refresh_discards_previous_challenge(self) -> None:
        service = CaptchaService(CaptchaStore(EphemeralStore(redis_url="")))
        old_id, old_challenge = service.generate()

        new_id, new_challenge = service.refresh(old_id)

        assert new_id != old_id
        assert service.verify(old_id, old_challenge.code) is False
        assert service.verify(new_id, new_challenge.code) is True


class TestCaptchaApi:
    """Challenge endpoints."""

    def test_generate_never_exposes_code(self, client: TestClient, mocker) -> None:
        mocker.patch("puzzle_gate.services.captcha.generate_code", return_value="KMNPQR")

        response = client.get("/api/v1/captcha/generate")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["captcha_id"]
        assert data["expires_in"] == 300
        assert "KMNPQR" not in response.text
        assert "code" not in data

    def test_verify_accepts_then_rejects_reuse(self, client: TestClient, mocker) -> None:
        mocker.patch("puzzle_gate.services.captcha.generate_code", return_value="KMNPQR")
        captcha_id = client.get("/api/v1/captcha/generate").json()["captcha_id"]
        payload = {"captcha_id": captcha_id, "captcha": "kmnpqr"}

        assert client.post("/api/v1/captcha/verify", json=payload).status_code == status.HTTP_200_OK
        again = client.post("/api/v1/captcha/verify", json=payload)
        assert again.status_code == status.HTTP_400_BAD_REQUEST

    def test_refresh_issues_new_id(self, client: TestClient) -> None:
        first = client.get("/api/v1/captcha/generate").json()["captcha_id"]

        response = client.get("/api/v1/captcha/refresh", params={"captcha_id": first})

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["captcha_id"] != first
