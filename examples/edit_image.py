#!/usr/bin/env python3
"""
Edit an image through the images API.

Reads IMAGEFORM_API_KEY (and other IMAGEFORM_* settings) from the
environment or a .env file.

Usage:
    python examples/edit_image.py cat.png "add a party hat"
    python examples/edit_image.py cat.png "add a party hat" --mask mask.png --model dall-e-2
"""

from __future__ import annotations

import argparse
import sys

from loguru import logger

from imageform import APIError, ImageEditRequest, ImagesClient
from imageform.models import MODEL_GPT_IMAGE_1, SIZE_1024X1024


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("image")
    parser.add_argument("prompt")
    parser.add_argument("--mask")
    parser.add_argument("--model", default=MODEL_GPT_IMAGE_1)
    parser.add_argument("--size", default=SIZE_1024X1024)
    parser.add_argument("--quality", default="")
    parser.add_argument("--debug", action="store_true")
    args = parser.parse_args()

    if args.debug:
        logger.enable("imageform")

    mask = open(args.mask, "rb") if args.mask else None
    try:
        with open(args.image, "rb") as image, ImagesClient() as client:
            response = client.create_edit_image(
                ImageEditRequest(
                    image=image,
                    mask=mask,
                    prompt=args.prompt,
                    model=args.model,
                    size=args.size,
                    quality=args.quality,
                )
            )
    except APIError as exc:
        print(f"API error: {exc}", file=sys.stderr)
        return 1
    finally:
        if mask:
            mask.close()

    for item in response.data:
        print(item.url or f"<{len(item.b64_json)} base64 chars>")
    return 0


if __name__ == "__main__":
    sys.exit(main())
