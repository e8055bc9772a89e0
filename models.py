from dataclasses import dataclass, field, fields

# Пределы ползунков и переключателей в интерфейсе
FILTER_RANGES = {
    'brightness': (50, 200),
    'contrast': (50, 200),
    'grayscale': (0, 100),
    'sepia': (0, 100),
}


def normalize_rotation(angle):
    """Приводит угол к [0, 360). Допустимы только кратные 90."""
    if angle != int(angle) or int(angle) % 90 != 0:
        raise ValueError(f"Угол должен быть кратен 90: {angle}")
    return (int(angle) % 360 + 360) % 360


def clamp_filter(name, value):
    if name not in FILTER_RANGES:
        raise ValueError(f"Неизвестный фильтр: {name}")
    lo, hi = FILTER_RANGES[name]
    return max(lo, min(hi, float(value)))


@dataclass(frozen=True)
class InputImage:
    """Base64 без префикса data URL и его MIME тип."""
    base64: str
    mime_type: str

    @classmethod
    def from_data_url(cls, url):
        if not url.startswith('data:') or ',' not in url:
            raise ValueError("Ожидался data URL")
        header, payload = url.split(',', 1)
        mime = header[5:].split(';')[0] or 'image/png'
        return cls(payload, mime)

    @classmethod
    def from_dict(cls, data):
        b64 = data.get('base64') or ''
        if b64.startswith('data:'):
            return cls.from_data_url(b64)
        if not b64:
            raise ValueError("Пустое изображение")
        return cls(b64, data.get('mimeType') or 'image/png')

    @property
    def data_url(self):
        return f"data:{self.mime_type};base64,{self.base64}"

    def to_dict(self):
        return {'base64': self.base64, 'mimeType': self.mime_type}


@dataclass
class FilterState:
    brightness: float = 100
    contrast: float = 100
    grayscale: float = 0
    sepia: float = 0

    def chain(self):
        # Порядок важен: так же, как в строке CSS фильтра
        return [(f.name, getattr(self, f.name)) for f in fields(self)]

    def css(self):
        return ' '.join(f"{name}({_fmt(value)}%)" for name, value in self.chain())

    def is_identity(self):
        return self == FilterState()

    def to_dict(self):
        return dict(self.chain())


def _fmt(value):
    return str(int(value)) if float(value).is_integer() else str(value)


@dataclass
class EditorState:
    """Всё, что влияет на результат отрисовки."""
    rotation: int = 0
    filters: FilterState = field(default_factory=FilterState)

    @property
    def sideways(self):
        return self.rotation in (90, 270)
