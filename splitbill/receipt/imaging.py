from io import BytesIO

from PIL import Image, ImageEnhance, ImageFilter, UnidentifiedImageError

from splitbill.receipt.errors import ImageError

MAX_IMAGE_SIDE = 2000


def load_image(image_bytes: bytes) -> Image.Image:
    """Decode an upload to RGB, downscaled so its longest side fits ``MAX_IMAGE_SIDE``."""
    try:
        img = Image.open(BytesIO(image_bytes))
        img.load()
    except (UnidentifiedImageError, OSError) as e:
        raise ImageError(f"Unsupported or corrupt image: {e}") from e

    if img.mode != "RGB":
        img = img.convert("RGB")

    if max(img.size) > MAX_IMAGE_SIDE:
        ratio = MAX_IMAGE_SIDE / max(img.size)
        img = img.resize((int(img.size[0] * ratio), int(img.size[1] * ratio)), Image.Resampling.LANCZOS)
    return img


def enhance_image(img: Image.Image) -> Image.Image:
    """Grayscale, contrast boost, light denoise and sharpen for OCR."""
    gray = img.convert("L")
    gray = ImageEnhance.Contrast(gray).enhance(1.5)
    gray = gray.filter(ImageFilter.MedianFilter(3))
    return gray.filter(ImageFilter.SHARPEN)


def image_variants(image_bytes: bytes) -> list[tuple[str, Image.Image]]:
    """Candidate images in recognition order: enhanced first, then original."""
    original = load_image(image_bytes)
    return [("enhanced", enhance_image(original)), ("original", original)]
