from setuptools import setup, find_packages

setup(
    name="kv_inspector",
    version="0.1.0",
    packages=find_packages(include=["inspector", "inspector.*", "storage", "storage.*"]),
    package_data={"inspector": ["templates/*.html"]},
    install_requires=[
        "aiohttp",
        "aiosqlite",
        "pydantic",
        "pydantic-settings",
        "python-dotenv",
        "opentelemetry-api",
        "opentelemetry-sdk",
        "opentelemetry-exporter-otlp-proto-http",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-mock",
            "requests",
        ],
    },
    entry_points={
        "console_scripts": [
            "kv-inspector=inspector.cli:main",
        ],
    },
    python_requires=">=3.10",
)
