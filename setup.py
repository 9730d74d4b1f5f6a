#!/usr/bin/env python3
"""Setup script for georeview package."""

from setuptools import setup, find_packages

setup(
    name="georeview",
    version="0.1.0",
    description="Gemini-powered post-match reviews for GeoGuessr duels",
    author="GeoReview Project",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "click>=8.0.0",
        "Pillow>=10.0.0",
        "PyYAML>=6.0",
        "google-genai>=1.0.0",
        "httpx>=0.27.0",
        "requests>=2.28.0",
        "python-dotenv>=1.0.0",
    ],
    extras_require={
        "dev": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "georeview=georeview.cli:cli",
        ],
    },
    python_requires=">=3.10",
)
