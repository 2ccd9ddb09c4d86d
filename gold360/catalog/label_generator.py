"""
Product label generator
Renders a Code128 barcode of the SKU with name and price lines using python-barcode and Pillow
"""
import io
import base64
import logging
from typing import Optional

from PIL import Image, ImageDraw, ImageFont
import barcode
from barcode.writer import ImageWriter

logger = logging.getLogger('gold360.catalog')

MAX_NAME_LENGTH = 30


def _load_fonts():
    try:
        return (
            ImageFont.truetype('/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf', 14),
            ImageFont.truetype('/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf', 12),
        )
    except (OSError, IOError):
        return ImageFont.load_default(), ImageFont.load_default()


def _draw_centered(draw, width, y, text, font):
    bbox = draw.textbbox((0, 0), text, font=font)
    text_width = bbox[2] - bbox[0]
    draw.text(((width - text_width) // 2, y), text, fill='black', font=font)
    return bbox[3] - bbox[1]


def generate_label_image(
    product_name: str,
    sku: str,
    price: Optional[str] = None,
    karat: Optional[int] = None,
    width: int = 400,
    height: int = 200,
) -> str:
    """
    Generate a product label as a base64 PNG data URL.

    Layout: product name (and karat) on top, SKU barcode in the middle,
    SKU text and price below.
    """
    if len(product_name) > MAX_NAME_LENGTH:
        product_name = product_name[:MAX_NAME_LENGTH] + '...'
    title = f"{product_name} {karat}K" if karat else product_name

    img = Image.new('RGB', (width, height), color='white')
    draw = ImageDraw.Draw(img)
    font_medium, font_small = _load_fonts()

    margin = 10
    barcode_y = 8 + _draw_centered(draw, width, 8, title, font_medium) + 8
    available_height = height - barcode_y - 45

    try:
        code128 = barcode.get_barcode_class('code128')
        barcode_img = code128(sku, writer=ImageWriter()).render({
            'write_text': False,
            'module_width': 0.3,
            'module_height': 20.0,
            'quiet_zone': 2.0,
            'background': 'white',
            'foreground': 'black',
        })
        img_width, img_height = barcode_img.size
        barcode_width = width - (2 * margin)
        scale = barcode_width / img_width
        scaled_height = int(img_height * scale)
        if scaled_height > available_height:
            scale = available_height / img_height
            scaled_height = available_height
            barcode_width = int(img_width * scale)
        barcode_img = barcode_img.resize((barcode_width, scaled_height), Image.Resampling.BILINEAR)
        img.paste(barcode_img, ((width - barcode_width) // 2, barcode_y))
        text_y = barcode_y + scaled_height + 5
    except Exception as e:
        logger.error(f"Barcode generation failed for '{sku}': {e}")
        text_y = barcode_y

    text_y += _draw_centered(draw, width, text_y, sku, font_small) + 6
    if price is not None:
        _draw_centered(draw, width, text_y, str(price), font_medium)

    buffer = io.BytesIO()
    img.save(buffer, format='PNG', optimize=False, compress_level=1)
    image_base64 = base64.b64encode(buffer.getvalue()).decode('utf-8')
    buffer.close()
    img.close()
    return f'data:image/png;base64,{image_base64}'
