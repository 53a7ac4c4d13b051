"""
Pixel buffer model for sampled video frames.

This module defines the PixelBuffer snapshot handed to the pipeline by the
frame sampler once per sampling tick.

Models:
    PixelBuffer: Immutable width x height x channels pixel snapshot
"""

from typing import Any, Sequence, Union

import numpy as np
from pydantic import BaseModel, Field, field_validator, model_validator

from camwatch.errors import ShapeMismatch

# Colour channels that take part in differencing (R, G, B). A fourth
# channel, when present, is alpha and is ignored.
COLOR_CHANNELS = 3


class PixelBuffer(BaseModel):
    """
    Immutable snapshot of one sampled video frame.

    Pixel data is stored as a flat, read-only numpy array laid out
    pixel-by-pixel (RGBRGB... or RGBARGBA...), the same layout a browser
    canvas ``ImageData`` exposes.

    Attributes:
        width: Frame width in pixels.
        height: Frame height in pixels.
        channels: Values per pixel (3 for RGB, 4 for RGBA).
        data: Flat array of ``width * height * channels`` channel values.

    Example:
        >>> buf = PixelBuffer.filled(4, 3, value=128)
        >>> buf.pixel_count
        12
    """

    model_config = {"frozen": True, "extra": "forbid", "arbitrary_types_allowed": True}

    width: int = Field(
        ...,
        description="Frame width in pixels",
        ge=0,
    )
    height: int = Field(
        ...,
        description="Frame height in pixels",
        ge=0,
    )
    channels: int = Field(
        default=COLOR_CHANNELS,
        description="Values per pixel (3 = RGB, 4 = RGBA)",
        ge=3,
        le=4,
    )
    data: np.ndarray = Field(
        ...,
        description="Flat per-pixel channel values",
    )

    @field_validator("data", mode="before")
    @classmethod
    def coerce_data(cls, v: Any) -> np.ndarray:
        """Convert any sequence of channel values to a flat read-only array."""
        arr = np.array(v, copy=True).reshape(-1)
        if arr.size and arr.dtype.kind not in "iu":
            raise ValueError(f"pixel data must be integers, got dtype {arr.dtype}")
        # Widen so per-channel subtraction can go negative without wrapping.
        arr = arr.astype(np.int32)
        arr.flags.writeable = False
        return arr

    @model_validator(mode="after")
    def validate_length(self) -> "PixelBuffer":
        """Validate data length against the declared shape."""
        expected = self.width * self.height * self.channels
        if self.data.size != expected:
            raise ValueError(
                f"pixel data has {self.data.size} values, expected "
                f"{expected} ({self.width}x{self.height}x{self.channels})"
            )
        return self

    @classmethod
    def filled(
        cls,
        width: int,
        height: int,
        value: Union[int, Sequence[int]] = 0,
        channels: int = COLOR_CHANNELS,
    ) -> "PixelBuffer":
        """
        Build a buffer where every pixel has the same value.

        Args:
            width: Frame width.
            height: Frame height.
            value: One value for every channel, or one value per channel.
            channels: Values per pixel.

        Returns:
            PixelBuffer: The uniform buffer.
        """
        pixel = np.broadcast_to(np.asarray(value, dtype=np.int32), (channels,))
        data = np.tile(pixel, width * height)
        return cls(width=width, height=height, channels=channels, data=data)

    @property
    def pixel_count(self) -> int:
        """Number of pixels in the frame."""
        return self.width * self.height

    @property
    def shape(self) -> tuple[int, int, int]:
        """(width, height, channels) tuple."""
        return (self.width, self.height, self.channels)

    def color_planes(self) -> np.ndarray:
        """
        Return the colour values as a (pixels, 3) array, alpha dropped.

        Returns:
            np.ndarray: Read-only view of shape (pixel_count, 3).
        """
        return self.data.reshape(self.pixel_count, self.channels)[:, :COLOR_CHANNELS]

    def require_same_shape(self, other: "PixelBuffer") -> None:
        """
        Check that another buffer can be differenced against this one.

        Args:
            other: The buffer to compare against.

        Raises:
            ShapeMismatch: If width, height or channel count differ.
        """
        if self.shape != other.shape:
            raise ShapeMismatch(expected=self.shape, actual=other.shape)
