"""
Utility functions for visualization module.
"""

import io

from PIL import Image as PILImage


def optimize_image_size(image_bytes: bytes, max_size_mb: float = 1.0) -> bytes:
    """
    Optimize image size to stay under specified limit.

    Args:
        image_bytes: Raw image bytes
        max_size_mb: Maximum size in MB

    Returns:
        Optimized image bytes
    """
    max_size_bytes = max_size_mb * 1024 * 1024

    if len(image_bytes) <= max_size_bytes:
        return image_bytes

    img = PILImage.open(io.BytesIO(image_bytes)).convert('RGB')

    # Try different quality levels
    for quality in [85, 75, 65, 55, 45]:
        buffer = io.BytesIO()
        img.save(buffer, format='JPEG', optimize=True, quality=quality)
        optimized_bytes = buffer.getvalue()

        if len(optimized_bytes) <= max_size_bytes:
            return optimized_bytes

    # If still too large, reduce resolution
    width, height = img.size
    scale_factor = 0.8

    while len(image_bytes) > max_size_bytes and scale_factor > 0.3:
        resized_img = img.resize(
            (int(width * scale_factor), int(height * scale_factor)),
            PILImage.Resampling.LANCZOS,
        )

        buffer = io.BytesIO()
        resized_img.save(buffer, format='JPEG', optimize=True, quality=75)
        image_bytes = buffer.getvalue()

        scale_factor -= 0.1

    return image_bytes


def format_number(value: float) -> str:
    """
    Compact number for insight text: 1.2M, 3.4K, 56.

    Args:
        value: Number to format

    Returns:
        Formatted string
    """
    if value >= 1_000_000:
        return f"{value / 1_000_000:.1f}M"
    if value >= 1_000:
        return f"{value / 1_000:.1f}K"
    return f"{value:.0f}"


def format_axis_labels(labels, max_length: int = 18) -> list:
    """
    Shorten long category labels for axis ticks.

    Args:
        labels: Labels to format
        max_length: Longest label kept intact

    Returns:
        List of formatted labels
    """
    formatted = []
    for label in labels:
        text = str(label)
        formatted.append(text if len(text) <= max_length else text[:max_length - 1] + '…')
    return formatted
