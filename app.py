import logging

from flask import Flask, render_template, request, jsonify, current_app

from config import Config, setup_logging
from editor import EditSession
from generator import Generator, ConfigurationError, EmptyResponseError, TransportError
from models import InputImage
from processors import detect_mime, load_image, preview_data_url
from uploader import ACCEPT, Uploader

logger = logging.getLogger(__name__)


# Простейшее хранилище в памяти
class ImageStore:
    def __init__(self):
        self.session = None

    def open(self, session):
        self.session = session
        return session

    def close(self):
        self.session = None


def create_app(config=None, generator=None):
    config = config or Config.from_env()
    setup_logging(config.log_level)

    app = Flask(__name__)
    app.config['MAX_CONTENT_LENGTH'] = config.max_content_length
    app.extensions['store'] = ImageStore()
    app.extensions['image_config'] = config

    if generator is None:
        try:
            generator = Generator.from_config(config)
        except ConfigurationError as e:
            logger.warning("Генерация недоступна: %s", e)
    app.extensions['generator'] = generator

    register_routes(app)
    return app


def _store():
    return current_app.extensions['store']


def _error(message, code=400, kind=None):
    body = {'status': 'error', 'message': message}
    if kind: body['kind'] = kind
    return jsonify(body), code


def _session_response(session):
    surface = session.surface
    width = current_app.extensions['image_config'].preview_max_width
    return jsonify({
        'status': 'success',
        'image': preview_data_url(surface, width) if surface is not None else None,
        'state': session.snapshot(),
    })


def _open_upload(f):
    img, mime = load_image(f.read())
    logger.info("Загружен файл %s: %sx%s (%s)", f.filename, img.width, img.height, mime)
    return _store().open(EditSession(img, mime))


def register_routes(app):

    @app.route('/')
    def index():
        return render_template('index.html', accept=ACCEPT, generation=app.extensions['generator'] is not None)

    @app.route('/upload', methods=['POST'])
    def upload():
        uploader = Uploader(_open_upload)
        try:
            session = uploader.handle_change(request.files.getlist('image'))
        except ValueError as e:
            return _error(str(e))
        if session is None: return _error('Нет файла')
        return _session_response(session)

    @app.route('/editor/open', methods=['POST'])
    def open_image():
        try:
            session = _store().open(EditSession.open(InputImage.from_dict(request.get_json(silent=True) or {})))
        except ValueError as e:
            return _error(str(e))
        return _session_response(session)

    def _edit(action):
        session = _store().session
        if session is None:
            return _error('Изображение не загружено')
        params = request.get_json(silent=True) or {}
        try:
            action(session, params)
        except (ValueError, TypeError, KeyError) as e:
            return _error(f'Некорректные параметры: {e}')
        return _session_response(session)

    @app.route('/editor/rotate', methods=['POST'])
    def rotate():
        return _edit(lambda s, p: s.rotate(p['delta']))

    @app.route('/editor/filter', methods=['POST'])
    def set_filter():
        return _edit(lambda s, p: s.set_filter(p['name'], p['value']))

    @app.route('/editor/toggle', methods=['POST'])
    def toggle_filter():
        return _edit(lambda s, p: s.toggle_filter(p['name']))

    @app.route('/editor/reset', methods=['POST'])
    def reset():
        return _edit(lambda s, p: s.reset_all())

    @app.route('/editor/save', methods=['POST'])
    def save():
        session = _store().session
        image = session.save() if session else None
        if image is None: return _error('Нечего сохранять')
        return jsonify({'status': 'success', 'image': image.to_dict(), 'dataUrl': image.data_url})

    @app.route('/editor/cancel', methods=['POST'])
    def cancel():
        session = _store().session
        if session: session.cancel()
        _store().close()
        return jsonify({'status': 'success'})

    @app.route('/generate', methods=['POST'])
    async def generate():
        generator = app.extensions['generator']
        if generator is None:
            return _error('API_KEY environment variable is not set.', 503, kind='configuration')

        params = request.get_json(silent=True) or {}
        prompt = (params.get('prompt') or '').strip()
        if not prompt: return _error('Пустой запрос')

        input_image = None
        if params.get('image'):
            try:
                input_image = InputImage.from_dict(params['image'])
            except ValueError as e:
                return _error(str(e))

        try:
            b64 = await generator.generate(prompt, input_image)
        except ValueError as e:
            return _error(f'Некорректное изображение: {e}')
        except EmptyResponseError as e:
            return _error(str(e), 502, kind='empty_response')
        except TransportError as e:
            return _error(str(e), 502, kind='transport')

        return jsonify({'status': 'success', 'image': InputImage(b64, detect_mime(b64)).to_dict()})

    @app.errorhandler(413)
    def too_large(e):
        return _error('Файл слишком большой', 413)


app = create_app()

if __name__ == '__main__':
    print("Запуск сервера: http://127.0.0.1:5000")
    app.run(debug=True, port=5000)
