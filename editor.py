import logging

from models import EditorState, FILTER_RANGES, clamp_filter, normalize_rotation
import processors

logger = logging.getLogger(__name__)

TOGGLE_FILTERS = ('grayscale', 'sepia')


class EditSession:
    """Одна сессия редактирования: исходник, поворот, фильтры и последний рендер."""

    def __init__(self, source, mime_type):
        self.source = source
        self.mime_type = mime_type
        self.state = EditorState()
        self.surface = None
        self.closed = False
        self.render()

    @classmethod
    def open(cls, image):
        """Открывает сессию из сохраненного или сгенерированного InputImage."""
        return cls(processors.decode_input_image(image), image.mime_type)

    @property
    def rotation(self):
        return self.state.rotation

    @property
    def filters(self):
        return self.state.filters

    def rotate(self, delta):
        self.state.rotation = normalize_rotation(self.state.rotation + delta)
        return self.render()

    def set_filter(self, name, value):
        setattr(self.state.filters, name, clamp_filter(name, value))
        return self.render()

    def toggle_filter(self, name):
        if name not in TOGGLE_FILTERS:
            raise ValueError(f"Фильтр {name} не переключается")
        current = getattr(self.state.filters, name)
        return self.set_filter(name, 0 if current > 0 else 100)

    def reset_all(self):
        self.state = EditorState()
        return self.render()

    def render(self):
        # Нечего рисовать: тихо пропускаем, прошлый результат не трогаем
        if self.source is None or not self.source.width:
            return None
        self.surface = processors.render(self.source, self.state)
        return self.surface

    def save(self):
        if self.surface is None:
            return None
        image = processors.encode_image(self.surface, self.mime_type)
        logger.info("Сохранено изображение %sx%s (%s)", self.surface.width, self.surface.height, image.mime_type)
        return image

    def cancel(self):
        self.surface = None
        self.closed = True
        logger.info("Редактирование отменено")

    def snapshot(self):
        size = processors.output_size(self.source.size, self.state) if self.source is not None else None
        return {
            'rotation': self.rotation,
            'filters': self.filters.to_dict(),
            'filter': self.filters.css(),
            'size': size,
            'mimeType': self.mime_type,
            'ranges': FILTER_RANGES,
        }
