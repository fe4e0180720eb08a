"""
Packaging for Python Autofix Pro.

The service shells out to ``ruff`` (and, for projects configured for it,
``black``), so ruff is installed alongside the package to make sure the
executable is on PATH wherever the webhook server runs.
"""

from pathlib import Path

from setuptools import find_packages, setup


def read_version() -> str:
    """Read ``__version__`` from the package without importing it."""
    init_file = Path(__file__).parent / "src" / "autofix_pro" / "__init__.py"
    for line in init_file.read_text(encoding="utf-8").splitlines():
        if line.startswith("__version__"):
            return line.split("=", 1)[1].strip().strip("\"'")
    raise RuntimeError("Unable to find __version__ in autofix_pro/__init__.py")


setup(
    name="python-autofix-pro",
    version=read_version(),
    description="GitHub App that formats and lint-fixes Python pull requests with ruff",
    python_requires=">=3.9",
    package_dir={"": "src"},
    packages=find_packages("src"),
    install_requires=[
        "PyGithub>=2.1",
        "fastapi>=0.110",
        "uvicorn>=0.27",
        "pydantic>=2.5",
        "pydantic-settings>=2.1",
        "loguru>=0.7",
        "click>=8.1",
        "ruff>=0.5",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "httpx>=0.26",
        ],
    },
    entry_points={
        "console_scripts": [
            "autofix-pro=autofix_pro.cli:main",
        ],
    },
)
