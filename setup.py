"""Setup file for development installation."""

from setuptools import setup, find_packages

setup(
    name="fittrck-chat",
    version="0.1.0",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.10",
    install_requires=[
        "fastapi>=0.110",
        "httpx>=0.27",
        "opentelemetry-instrumentation-fastapi>=0.45b0",
        "Pillow>=10.0",
        "prometheus-client>=0.20",
        "pydantic>=2.9",
        "structlog>=24.1",
        "uvicorn>=0.29",
    ],
    entry_points={
        "console_scripts": ["fittrck-chat=fittrck_chat.__main__:main"],
    },
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
        ],
    },
)
