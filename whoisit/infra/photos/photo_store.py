from __future__ import annotations

from pathlib import Path

from whoisit.domain.ports.platform import PhotoStoreProtocol


class FilePhotoStore(PhotoStoreProtocol):
    """
    Назначение:
        Сохраняет фото профиля в каталог (создаётся при первой записи).
    Контракт:
        - Относительный base_dir считается от текущего рабочего каталога в момент записи.
        - Ошибки файловой системы (OSError) пробрасываются вызывающему.
    """

    def __init__(self, base_dir: str | Path = "photos"):
        self.base_dir = Path(base_dir)

    def save(self, file_name: str, content: bytes) -> Path:
        target_dir = self.base_dir if self.base_dir.is_absolute() else Path.cwd() / self.base_dir
        target_dir.mkdir(parents=True, exist_ok=True)
        path = target_dir / file_name
        path.write_bytes(content)
        return path
