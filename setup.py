from setuptools import setup, find_packages

setup(
    name="emusuite",
    version="0.1.0",
    description="emusuite - запуск локальных облачных эмуляторов и скриптов поверх них",
    author="emusuite Team",
    package_dir={"": "src"},
    packages=find_packages("src"),
    include_package_data=True,
    python_requires=">=3.10",
    install_requires=[
        "typer>=0.16.0",
        "rich>=13.7.1",
        "python-dotenv>=1.0.1",
        "psutil>=5.9.8",
    ],
    extras_require={
        "dev": [
            "pytest>=8.3.2",
        ],
    },
    entry_points={
        "console_scripts": [
            "emusuite=emusuite.apps.cli.app:app",  # команда `emusuite`
        ],
    },
)
