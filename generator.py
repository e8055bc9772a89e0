import base64
import logging

from google import genai
from google.genai import types

from config import DEFAULT_MODEL

logger = logging.getLogger(__name__)


class GenerationError(Exception):
    """Базовая ошибка генерации."""


class ConfigurationError(GenerationError):
    """Не задан API ключ. Запрос не отправляется."""


class EmptyResponseError(GenerationError):
    """Запрос прошел, но в ответе нет изображения."""


class TransportError(GenerationError):
    """Любой сбой вызова API. Подробности только в логе."""


NO_IMAGE_MESSAGE = "No image data found in the API response."
FAILED_MESSAGE = "Failed to generate or enhance image. Please check the server log for more details."


class Generator:
    """Генерация или правка изображения по текстовому запросу через Gemini."""

    def __init__(self, api_key, model=DEFAULT_MODEL, client=None, http_options=None):
        if not api_key:
            raise ConfigurationError("API_KEY environment variable is not set.")
        self.api_key = api_key
        self.model = model
        self.http_options = http_options
        # Готовый клиент (тесты) используется как есть и не закрывается
        self.client = client

    @classmethod
    def from_config(cls, config):
        http_options = types.HttpOptions(base_url=config.base_url) if config.base_url else None
        return cls(config.api_key, model=config.model, http_options=http_options)

    def _connect(self):
        # Клиент живет в пределах одного цикла событий: Flask создает новый цикл на каждый async-запрос
        return self.client or genai.Client(api_key=self.api_key, http_options=self.http_options)

    def build_parts(self, prompt, input_image=None):
        parts = []
        if input_image:
            parts.append(types.Part(inline_data=types.Blob(
                data=base64.b64decode(input_image.base64),
                mime_type=input_image.mime_type,
            )))
        # Текст всегда последним
        parts.append(types.Part(text=prompt))
        return parts

    async def generate(self, prompt, input_image=None):
        """Возвращает base64 первого изображения из ответа модели."""
        parts = self.build_parts(prompt, input_image)
        aio = self._connect().aio
        try:
            response = await aio.models.generate_content(
                model=self.model,
                contents=[types.Content(role='user', parts=parts)],
                config=types.GenerateContentConfig(response_modalities=['IMAGE']),
            )
        except Exception:
            logger.exception("Error calling Gemini API (model=%s)", self.model)
            raise TransportError(FAILED_MESSAGE) from None
        finally:
            if self.client is None:
                await aio.aclose()

        data = first_inline_image(response)
        if data is None:
            logger.warning("Gemini response has no inline image data")
            raise EmptyResponseError(NO_IMAGE_MESSAGE)
        return data


def first_inline_image(response):
    candidates = getattr(response, 'candidates', None) or []
    if not candidates:
        return None
    content = getattr(candidates[0], 'content', None)
    for part in getattr(content, 'parts', None) or []:
        inline = getattr(part, 'inline_data', None)
        if inline and inline.data:
            data = inline.data
            # SDK отдает bytes; строка считается уже закодированной
            return data if isinstance(data, str) else base64.b64encode(data).decode('utf-8')
    return None
