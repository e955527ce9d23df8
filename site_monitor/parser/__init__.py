"""site_monitor.parser: извлечение ссылок, скриптов и <loc> из сырого текста."""
