#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Evony Tactician - Setup Configuration
Enables optional dependency groups for OCR backends.
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read README
readme_path = Path(__file__).parent / "README.md"
long_description = readme_path.read_text(encoding="utf-8") if readme_path.exists() else ""

# Read requirements
requirements_path = Path(__file__).parent / "requirements.txt"
requirements = []
if requirements_path.exists():
    requirements = [
        line.strip()
        for line in requirements_path.read_text(encoding="utf-8").splitlines()
        if line.strip() and not line.startswith("#")
    ]

# Optional dependencies for the PaddleOCR backend (Tesseract is the default)
ocr_requirements = [
    "paddleocr>=3.0.0",
    "paddlepaddle>=3.0.0",  # CPU version
]

setup(
    name="evony-tactician",
    version="1.0.0",
    description="Battle report analysis for Evony: OCR, AI tactical advice with provider fallback, chat and battle history",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="Evony Tactician Team",
    python_requires=">=3.9",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=requirements,
    extras_require={
        # OCR backends
        "ocr": ocr_requirements,

        # Development dependencies
        "dev": [
            "pytest>=7.4.0",
            "pytest-cov>=4.1.0",
            "pytest-asyncio>=0.21.0",
            "black>=23.0.0",
            "flake8>=6.0.0",
            "mypy>=1.4.0",
        ],

        # All optional features
        "all": ocr_requirements,
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: End Users/Desktop",
        "Topic :: Games/Entertainment :: Real Time Strategy",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    keywords="evony battle-report ocr tesseract ai groq gemini strategy",
)
