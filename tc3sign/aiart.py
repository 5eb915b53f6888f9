# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Text-to-image generation via the ``aiart`` ``TextToImageLite`` action."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from tc3sign.client import TencentCloudClient, TencentCloudError
from tc3sign.config import EndpointConfig


logger = logging.getLogger(__name__)

ACTION_TEXT_TO_IMAGE = "TextToImageLite"

AIART_ENDPOINT = EndpointConfig(
    service="aiart",
    host="aiart.tencentcloudapi.com",
    version="2022-12-29",
    region="ap-guangzhou",
)

MIN_SIZE = 256
MAX_SIZE = 1024

# Response fields that may carry generated images, in lookup order
_IMAGE_LIST_FIELD = "Images"
_IMAGE_FIELDS = ("Image", "ResultImage")


@dataclass(frozen=True)
class GenerationParameters:
    """Image generation parameters.

    Attributes:
        width: Output width in pixels.
        height: Output height in pixels.
        negative_prompt: Content to steer away from.
    """

    width: int = 512
    height: int = 512
    negative_prompt: str | None = None

    def __post_init__(self) -> None:
        """Validate dimensions.

        Raises:
            ValueError: If width or height is outside the supported range.
        """
        for name in ("width", "height"):
            value = getattr(self, name)
            if not MIN_SIZE <= value <= MAX_SIZE:
                raise ValueError(
                    f"{name.capitalize()} must be between {MIN_SIZE} and "
                    f"{MAX_SIZE}: {value}"
                )

    @property
    def resolution(self) -> str:
        """Resolution in the API's ``W:H`` form."""
        return f"{self.width}:{self.height}"


def build_text_to_image_payload(
    prompt: str, params: GenerationParameters
) -> dict[str, Any]:
    """Build the ``TextToImageLite`` request parameters.

    Raises:
        ValueError: If the prompt is empty or blank.
    """
    if not prompt or not prompt.strip():
        raise ValueError("Prompt is required")
    payload: dict[str, Any] = {
        "Prompt": prompt,
        "Resolution": params.resolution,
    }
    if params.negative_prompt:
        payload["NegativePrompt"] = params.negative_prompt
    return payload


def extract_images(response: dict[str, Any]) -> list[str]:
    """Collect generated images (URLs or base64 data) from a response.

    Raises:
        TencentCloudError: If the response holds no image.
    """
    images = response.get(_IMAGE_LIST_FIELD)
    if isinstance(images, list):
        found = [image for image in images if isinstance(image, str) and image]
        if found:
            return found

    for field in _IMAGE_FIELDS:
        image = response.get(field)
        if isinstance(image, str) and image:
            return [image]

    raise TencentCloudError(
        "InvalidResponse",
        "No images found in response",
        response.get("RequestId"),
    )


def text_to_image(
    client: TencentCloudClient,
    prompt: str,
    params: GenerationParameters | None = None,
) -> list[str]:
    """Generate images for a prompt.

    Args:
        client: Client configured for the ``aiart`` endpoint.
        prompt: Text description of the image.
        params: Generation parameters; defaults are used when omitted.

    Returns:
        Generated images, as URLs or base64 strings.
    """
    if params is None:
        params = GenerationParameters()
    payload = build_text_to_image_payload(prompt, params)
    response = client.call(ACTION_TEXT_TO_IMAGE, payload)
    images = extract_images(response)
    logger.info(
        "Generated %d image(s) at %s (RequestId: %s)",
        len(images),
        params.resolution,
        response.get("RequestId"),
    )
    return images
