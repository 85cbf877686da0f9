"""Pillow drawing primitives used by the renderer.

Decoding, sub-image extraction, alpha scaling, affine blits onto an RGBA
canvas and encoding of the final result.
"""

import math
from typing import IO, Any

from PIL import Image

from .geometry import Affine

TRANSPARENT = (0, 0, 0, 0)


def new_canvas(width: int, height: int) -> Image.Image:
    """Return a fully transparent RGBA canvas."""
    return Image.new("RGBA", (width, height), TRANSPARENT)


def decode_image(stream: IO[bytes]) -> Image.Image:
    """Decode an image stream of any Pillow-supported format to RGBA.

    The data is loaded before returning so the stream can be closed.
    """
    image = Image.open(stream)
    image.load()
    if image.mode != "RGBA":
        image = image.convert("RGBA")
    return image


def sub_image(image: Image.Image, rect: tuple[int, int, int, int]) -> Image.Image:
    """Return the ``(left, top, right, bottom)`` region of ``image``."""
    return image.crop(rect)


def apply_opacity(image: Image.Image, opacity: float) -> Image.Image:
    """Scale the alpha channel by ``opacity``; RGB channels are untouched."""
    if opacity >= 1.0:
        return image
    opacity = max(0.0, opacity)
    alpha = image.getchannel("A").point(lambda value: int(value * opacity + 0.5))
    faded = image.copy()
    faded.putalpha(alpha)
    return faded


def draw_image(
    dst: Image.Image, src: Image.Image, transform: Affine, alpha: float = 1.0
) -> None:
    """Composite ``src`` onto ``dst`` in place under ``transform``.

    Pure integer translations take a direct alpha composite. Anything else
    is resampled with nearest-neighbour filtering into the clipped bounding
    box of the transformed source, then composited.
    """
    if alpha <= 0.0 or src.width == 0 or src.height == 0:
        return
    if src.mode != "RGBA":
        src = src.convert("RGBA")
    src = apply_opacity(src, alpha)

    if (
        transform.is_translation()
        and float(transform.tx).is_integer()
        and float(transform.ty).is_integer()
        and transform.tx >= 0
        and transform.ty >= 0
    ):
        dst.alpha_composite(src, dest=(int(transform.tx), int(transform.ty)))
        return

    if transform.determinant() == 0:
        return

    corners = [
        transform.apply(x, y)
        for x, y in ((0, 0), (src.width, 0), (0, src.height), (src.width, src.height))
    ]
    left = max(0, math.floor(min(x for x, _ in corners)))
    top = max(0, math.floor(min(y for _, y in corners)))
    right = min(dst.width, math.ceil(max(x for x, _ in corners)))
    bottom = min(dst.height, math.ceil(max(y for _, y in corners)))
    if right <= left or bottom <= top:
        return

    # output pixel (u, v) of the patch sits at canvas (u + left, v + top)
    inv = transform.invert()
    coefficients = (
        inv.a,
        inv.b,
        inv.a * left + inv.b * top + inv.tx,
        inv.c,
        inv.d,
        inv.c * left + inv.d * top + inv.ty,
    )
    patch = src.transform(
        (right - left, bottom - top),
        Image.Transform.AFFINE,
        coefficients,
        resample=Image.Resampling.NEAREST,
        fillcolor=TRANSPARENT,
    )
    dst.alpha_composite(patch, dest=(left, top))


def encode_png(image: Image.Image, fp: IO[bytes] | str, **options: Any) -> None:
    image.save(fp, format="PNG", **options)


def encode_jpeg(
    image: Image.Image, fp: IO[bytes] | str, quality: int = 75, **options: Any
) -> None:
    """Encode as JPEG, flattening transparency over opaque black."""
    background = Image.new("RGBA", image.size, (0, 0, 0, 255))
    background.alpha_composite(image.convert("RGBA"))
    background.convert("RGB").save(fp, format="JPEG", quality=quality, **options)


def encode_gif(image: Image.Image, fp: IO[bytes] | str, **options: Any) -> None:
    image.save(fp, format="GIF", **options)
