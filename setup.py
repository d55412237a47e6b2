# setup.py
"""Setup script for fadupes."""

import os

from setuptools import setup, find_packages

setup(
    name="fadupes",
    version="1.0.0",
    description="Find audio files with identical decoded content across WAV and FLAC libraries",
    long_description=open("README.md").read() if os.path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    author="fadupes developers",
    packages=find_packages(exclude=["fadupes.tests", "fadupes.tests.*"]),
    python_requires=">=3.9",
    install_requires=[
        "numpy>=1.20.0",
        "soundfile>=0.10.0",
        "tqdm>=4.50.0",
    ],
    extras_require={
        "test": [
            "pytest>=6.0.0",
            "pytest-cov>=2.10.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "fadupes=fadupes.main:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: End Users/Desktop",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Topic :: Multimedia :: Sound/Audio",
        "Topic :: System :: Archiving",
    ],
)
