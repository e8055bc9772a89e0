import io
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from PIL import Image

from config import Config
from generator import Generator

RED = (255, 0, 0)
GREEN = (0, 255, 0)
BLUE = (0, 0, 255)
GRAY = (100, 100, 100)


@pytest.fixture
def rgb_image():
    """4x2, верхний левый пиксель красный, остальное серое."""
    img = Image.new('RGB', (4, 2), GRAY)
    img.putpixel((0, 0), RED)
    img.putpixel((3, 1), BLUE)
    return img


@pytest.fixture
def png_bytes(rgb_image):
    buf = io.BytesIO()
    rgb_image.save(buf, format='PNG')
    return buf.getvalue()


def make_response(*parts):
    content = SimpleNamespace(parts=list(parts))
    return SimpleNamespace(candidates=[SimpleNamespace(content=content)])


def image_part(data, mime_type='image/png'):
    return SimpleNamespace(text=None, inline_data=SimpleNamespace(data=data, mime_type=mime_type))


def text_part(text):
    return SimpleNamespace(text=text, inline_data=None)


def make_client(response=None, error=None):
    call = AsyncMock(return_value=response, side_effect=error)
    return SimpleNamespace(aio=SimpleNamespace(models=SimpleNamespace(generate_content=call)))


@pytest.fixture
def fake_client(png_bytes):
    return make_client(make_response(text_part('вот'), image_part(png_bytes)))


@pytest.fixture
def generator(fake_client):
    return Generator('test-key', client=fake_client)


@pytest.fixture
def config():
    return Config(api_key=None, preview_max_width=800, max_upload_mb=1, log_level='WARNING')


@pytest.fixture
def client(config, generator):
    from app import create_app
    app = create_app(config, generator=generator)
    app.config['TESTING'] = True
    return app.test_client()
