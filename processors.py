import io
import base64
from PIL import Image, ImageEnhance, ImageOps, UnidentifiedImageError

from models import InputImage

# MIME -> формат Pillow. Остальное сохраняем в PNG, как делает canvas.toDataURL
SAVE_FORMATS = {
    'image/png': 'PNG',
    'image/jpeg': 'JPEG',
    'image/webp': 'WEBP',
}
FALLBACK_MIME = 'image/png'

# Форматы, которые браузер отдает под другим MIME (MPO: JPEG с камер)
FORMAT_MIME = {'MPO': 'image/jpeg'}
JPEG_QUALITY = 92

# Поворот по часовой стрелке (ось Y вниз, как у canvas)
TRANSPOSE = {
    90: Image.Transpose.ROTATE_270,
    180: Image.Transpose.ROTATE_180,
    270: Image.Transpose.ROTATE_90,
}


def _grayscale_matrix(amount):
    k = 1 - amount
    return (
        0.2126 + 0.7874 * k, 0.7152 - 0.7152 * k, 0.0722 - 0.0722 * k, 0,
        0.2126 - 0.2126 * k, 0.7152 + 0.2848 * k, 0.0722 - 0.0722 * k, 0,
        0.2126 - 0.2126 * k, 0.7152 - 0.7152 * k, 0.0722 + 0.9278 * k, 0,
    )


def _sepia_matrix(amount):
    k = 1 - amount
    return (
        0.393 + 0.607 * k, 0.769 - 0.769 * k, 0.189 - 0.189 * k, 0,
        0.349 - 0.349 * k, 0.686 + 0.314 * k, 0.168 - 0.168 * k, 0,
        0.272 - 0.272 * k, 0.534 - 0.534 * k, 0.131 + 0.869 * k, 0,
    )


def _brightness(img, percent):
    return ImageEnhance.Brightness(img).enhance(percent / 100)


def _contrast(img, percent):
    return ImageEnhance.Contrast(img).enhance(percent / 100)


def _grayscale(img, percent):
    return img.convert('RGB', _grayscale_matrix(min(percent, 100) / 100))


def _sepia(img, percent):
    return img.convert('RGB', _sepia_matrix(min(percent, 100) / 100))


# Значение, при котором фильтр ничего не меняет
FILTERS = {
    'brightness': (_brightness, 100),
    'contrast': (_contrast, 100),
    'grayscale': (_grayscale, 0),
    'sepia': (_sepia, 0),
}


def output_size(size, state):
    w, h = size
    return (h, w) if state.sideways else (w, h)


def format_mime(fmt, default=FALLBACK_MIME):
    return FORMAT_MIME.get(fmt) or Image.MIME.get(fmt, default)


def render(source, state):
    """Чистая функция: исходник + состояние редактора -> новое изображение."""
    img = source

    # 1. Геометрия
    if state.rotation in TRANSPOSE:
        img = img.transpose(TRANSPOSE[state.rotation])

    # 2. Сохранение альфа-канала
    alpha = None
    if img.mode in ('RGBA', 'LA') or (img.mode == 'P' and 'transparency' in img.info):
        img = img.convert('RGBA')
        alpha = img.getchannel('A')
        img = img.convert('RGB')
    elif img.mode != 'RGB':
        img = img.convert('RGB')
    else:
        img = img.copy()

    # 3. Фильтры в порядке строки CSS
    if not state.filters.is_identity():
        for name, value in state.filters.chain():
            apply, neutral = FILTERS[name]
            if value != neutral:
                img = apply(img, value)

    # 4. Восстановление прозрачности
    if alpha is not None:
        img.putalpha(alpha)

    return img


def load_image(data):
    """Байты файла -> (Image, mime). EXIF-ориентация применяется, как в браузере."""
    try:
        img = Image.open(io.BytesIO(data))
        img.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        raise ValueError(f"Не удалось прочитать изображение: {e}") from e
    mime = format_mime(img.format)
    return ImageOps.exif_transpose(img), mime


def decode_input_image(image):
    try:
        data = base64.b64decode(image.base64, validate=True)
    except ValueError as e:
        raise ValueError("Некорректный base64") from e
    img, _ = load_image(data)
    return img


def encode_image(img, mime_type):
    """Сериализует изображение в base64 в заданном MIME (или PNG, если он не поддерживается)."""
    if mime_type not in SAVE_FORMATS:
        mime_type = FALLBACK_MIME
    fmt = SAVE_FORMATS[mime_type]
    buf = io.BytesIO()
    if fmt == 'JPEG':
        if img.mode != 'RGB': img = img.convert('RGB')
        img.save(buf, format=fmt, quality=JPEG_QUALITY)
    else:
        img.save(buf, format=fmt)
    return InputImage(base64.b64encode(buf.getvalue()).decode('utf-8'), mime_type)


def image_to_base64(img):
    """Конвертация PIL Image в base64 строку для отправки в браузер."""
    buf = io.BytesIO()
    # PNG если есть прозрачность, иначе JPEG
    if img.mode == 'RGBA':
        img.save(buf, format="PNG")
    else:
        img.convert('RGB').save(buf, format="JPEG", quality=85)
    return base64.b64encode(buf.getvalue()).decode('utf-8')


def resize_for_preview(img, max_width=800):
    """Создание легкой копии для быстрого предпросмотра."""
    ratio = min(max_width/img.width, 1.0)
    if ratio >= 1: return img.copy()
    return img.resize((max(1, int(img.width*ratio)), max(1, int(img.height*ratio))), Image.Resampling.LANCZOS)


def preview_data_url(img, max_width=800):
    preview = resize_for_preview(img, max_width)
    mime = 'image/png' if preview.mode == 'RGBA' else 'image/jpeg'
    return f"data:{mime};base64,{image_to_base64(preview)}"


def detect_mime(b64, default=FALLBACK_MIME):
    """MIME по содержимому base64 (для ответов модели)."""
    try:
        with Image.open(io.BytesIO(base64.b64decode(b64))) as img:
            return format_mime(img.format, default)
    except (ValueError, UnidentifiedImageError, Image.DecompressionBombError, OSError):
        return default
