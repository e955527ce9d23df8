# site_monitor/report/json_report.py

"""
Генерация manifest.json для проекта SiteMonitor.

Сериализация объекта Manifest в файл.
"""
import json
from pathlib import Path

from site_monitor.manifest import Manifest


def render_json(manifest: Manifest, output_path: Path | str) -> Path:
    """
    Сохраняет манифест в формате JSON по указанному пути.

    :param manifest: объект Manifest с результатами запуска
    :param output_path: путь к JSON-файлу
    :return: Path сохранённого файла

    Пример:
    ```python
    from site_monitor.report.json_report import render_json
    report_path = render_json(manifest, '.tmp_fetch/manifest.json')
    print(f"Manifest saved to: {report_path}")
    ```
    """
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)

    # Запись с отступами, Unicode и завершающим переводом строки
    with output.open('w', encoding='utf-8') as f:
        json.dump(manifest.to_dict(), f, ensure_ascii=False, indent=2)
        f.write('\n')

    return output
