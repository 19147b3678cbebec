"""
Setup script for algolab.

algolab is the algorithm library behind an educational data-structures
quiz. It serves two roles:

1. Simulator Library - Review scheduling, question selection, reward and
   knowledge tracing algorithms returning inspectable results
2. Quiz Runner - A terminal quiz session driven by those algorithms

The 'algolab' command is the entry point.
"""

from setuptools import find_packages, setup

setup(
    name="algolab",
    version="1.0.0",
    description="Algorithm simulators behind an educational data-structures quiz",
    long_description=open("README.md", encoding="utf-8").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    packages=find_packages(include=["algolab", "algolab.*"]),
    py_modules=["config"],
    python_requires=">=3.10",
    install_requires=[
        # CLI
        "typer>=0.9.0",
        "rich>=13.0.0",
        # Config & Validation
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        # Logging
        "loguru>=0.7.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "ruff>=0.1.0",
            "mypy>=1.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "algolab=algolab.cli.main:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Education",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Education",
        "Topic :: Education :: Computer Aided Instruction (CAI)",
    ],
    keywords="learning spaced-repetition bandits knowledge-tracing quiz education",
)
