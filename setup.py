# setup.py
from setuptools import setup, find_packages

setup(
    name="site_monitor",
    version="0.1.0",
    description="Периодические снимки страниц и JS-скриптов сайта для мониторинга изменений",
    packages=find_packages(exclude=("tests", "tests.*")),  # автоматически найдёт папку site_monitor
    package_data={"site_monitor": ["templates/*.j2"]},
    install_requires=[
        "aiohttp>=3.9",
        "click>=8.1",
        "jinja2>=3.1",
        "pydantic>=2.5",
        "PyYAML>=6.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": [
            "site-monitor=site_monitor.cli:main",
        ],
    },
    python_requires=">=3.11",
)
