import io
from unittest.mock import Mock

import pytest
from werkzeug.datastructures import FileStorage

from uploader import ACCEPT, Uploader


def _file(name='a.png', data=b'1', content_type='image/png'):
    return FileStorage(io.BytesIO(data), filename=name, content_type=content_type)


def test_no_file_never_calls_handler():
    handler = Mock()
    uploader = Uploader(handler)
    assert uploader.handle_change([]) is None
    assert uploader.handle_change(None) is None
    handler.assert_not_called()


def test_empty_file_field_is_ignored():
    handler = Mock()
    Uploader(handler).handle_change([FileStorage(io.BytesIO(b''), filename='')])
    handler.assert_not_called()


def test_first_file_is_forwarded():
    handler = Mock(return_value='ok')
    first, second = _file('a.png'), _file('b.png')
    assert Uploader(handler).handle_change([first, second]) == 'ok'
    handler.assert_called_once_with(first)


def test_same_file_can_be_selected_twice():
    handler = Mock()
    uploader = Uploader(handler)
    f = _file()
    uploader.handle_change([f])
    uploader.handle_change([f])
    assert handler.call_count == 2


def test_accepts_image_types_only():
    uploader = Uploader(Mock())
    assert uploader.accept == ACCEPT == 'image/*'
    assert uploader.accepts('image/png')
    assert uploader.accepts('image/jpeg')
    assert not uploader.accepts('text/plain')
    assert not uploader.accepts('')
    assert not uploader.accepts(None)


def test_accepts_list_of_patterns():
    uploader = Uploader(Mock(), accept='image/png, image/webp')
    assert uploader.accepts('image/webp')
    assert not uploader.accepts('image/gif')


def test_non_image_is_rejected_before_handler():
    handler = Mock()
    with pytest.raises(ValueError):
        Uploader(handler).handle_change([_file('notes.txt', content_type='text/plain')])
    handler.assert_not_called()
