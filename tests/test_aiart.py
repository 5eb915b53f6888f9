# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Tests for text-to-image generation."""

import json
import logging

import httpx
import pytest

from tc3sign.aiart import (
    ACTION_TEXT_TO_IMAGE,
    AIART_ENDPOINT,
    GenerationParameters,
    build_text_to_image_payload,
    extract_images,
    text_to_image,
)
from tc3sign.client import TencentCloudClient, TencentCloudError
from tc3sign.config import ClientConfig, Credentials


class TestGenerationParameters:
    """Tests for GenerationParameters."""

    def test_defaults(self) -> None:
        params = GenerationParameters()
        assert params.resolution == "512:512"
        assert params.negative_prompt is None

    @pytest.mark.parametrize("width,height", [(256, 256), (1024, 768)])
    def test_bounds_accepted(self, width: int, height: int) -> None:
        params = GenerationParameters(width=width, height=height)
        assert params.resolution == f"{width}:{height}"

    @pytest.mark.parametrize(
        "width,height,field",
        [(255, 512, "Width"), (512, 1025, "Height"), (0, 512, "Width")],
    )
    def test_out_of_range(self, width: int, height: int, field: str) -> None:
        with pytest.raises(ValueError, match=field):
            GenerationParameters(width=width, height=height)


class TestBuildTextToImagePayload:
    """Tests for build_text_to_image_payload."""

    def test_basic(self) -> None:
        payload = build_text_to_image_payload(
            "a cat", GenerationParameters(width=1024, height=1024)
        )
        assert payload == {"Prompt": "a cat", "Resolution": "1024:1024"}

    def test_negative_prompt(self) -> None:
        params = GenerationParameters(negative_prompt="blurry")
        payload = build_text_to_image_payload("a cat", params)
        assert payload["NegativePrompt"] == "blurry"

    @pytest.mark.parametrize("prompt", ["", "   ", "\n\t"])
    def test_blank_prompt(self, prompt: str) -> None:
        with pytest.raises(ValueError, match="Prompt is required"):
            build_text_to_image_payload(prompt, GenerationParameters())


class TestExtractImages:
    """Tests for extract_images."""

    def test_images_list(self) -> None:
        response = {"Images": ["u1", "", "u2"], "ResultImage": "ignored"}
        assert extract_images(response) == ["u1", "u2"]

    def test_single_image(self) -> None:
        assert extract_images({"Image": "base64data"}) == ["base64data"]

    def test_result_image(self) -> None:
        assert extract_images({"ResultImage": "https://x/y.png"}) == [
            "https://x/y.png"
        ]

    def test_empty_list_falls_back(self) -> None:
        response = {"Images": [], "ResultImage": "u"}
        assert extract_images(response) == ["u"]

    def test_no_images(self) -> None:
        with pytest.raises(TencentCloudError) as exc_info:
            extract_images({"RequestId": "req-1", "ResultImage": ""})
        assert exc_info.value.code == "InvalidResponse"
        assert exc_info.value.request_id == "req-1"


class TestTextToImage:
    """Tests for text_to_image against a mock transport."""

    def _client(self, handler) -> TencentCloudClient:
        config = ClientConfig(
            credentials=Credentials(secret_id="AKID123", secret_key="testkey"),
            endpoint=AIART_ENDPOINT,
        )
        http = httpx.Client(transport=httpx.MockTransport(handler))
        return TencentCloudClient(config, http_client=http)

    def test_generates(self, caplog: pytest.LogCaptureFixture) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json={
                    "Response": {
                        "ResultImage": "https://cdn/img.png",
                        "RequestId": "req-7",
                    }
                },
            )

        with (
            caplog.at_level(logging.INFO, logger="tc3sign.aiart"),
            self._client(handler) as client,
        ):
            images = text_to_image(client, "a cat")

        assert images == ["https://cdn/img.png"]
        request = seen[0]
        assert request.headers["x-tc-action"] == ACTION_TEXT_TO_IMAGE
        assert request.headers["x-tc-version"] == "2022-12-29"
        assert request.headers["x-tc-region"] == "ap-guangzhou"
        assert request.headers["host"] == "aiart.tencentcloudapi.com"
        assert json.loads(request.content) == {
            "Prompt": "a cat",
            "Resolution": "512:512",
        }
        assert "req-7" in caplog.text

    def test_blank_prompt_sends_nothing(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"Response": {}})

        with (
            self._client(handler) as client,
            pytest.raises(ValueError, match="Prompt is required"),
        ):
            text_to_image(client, "  ")
        assert seen == []

    def test_api_error_propagates(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json={
                    "Response": {
                        "Error": {
                            "Code": "OperationDenied.TextIllegalDetected",
                            "Message": "text blocked",
                        },
                        "RequestId": "req-8",
                    }
                },
            )

        with (
            self._client(handler) as client,
            pytest.raises(TencentCloudError) as exc_info,
        ):
            text_to_image(client, "something", GenerationParameters())
        assert exc_info.value.code == "OperationDenied.TextIllegalDetected"
