import fnmatch

ACCEPT = 'image/*'


class Uploader:
    """Серверная половина кнопки загрузки: первый файл из поля формы -> обработчик.

    Браузерная половина (templates/index.html) открывает диалог по клику
    и сбрасывает input.value после выбора, чтобы тот же файл можно было выбрать снова.
    """

    def __init__(self, on_file_selected, accept=ACCEPT):
        self.on_file_selected = on_file_selected
        self.accept = accept

    def accepts(self, mimetype):
        """Тот же фильтр, что и атрибут accept у input."""
        return any(fnmatch.fnmatch(mimetype or '', p.strip()) for p in self.accept.split(','))

    def handle_change(self, files):
        # Диалог закрыли без выбора: это не ошибка
        f = files[0] if files else None
        if not f or not getattr(f, 'filename', None): return None
        if not self.accepts(f.mimetype):
            raise ValueError(f"Нужен файл изображения, получен {f.mimetype or 'неизвестный тип'}")
        return self.on_file_selected(f)
