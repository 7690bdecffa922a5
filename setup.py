"""Setup script for TalentHive."""

from setuptools import setup, find_packages
from pathlib import Path

readme_path = Path(__file__).parent / "README.md"
long_description = readme_path.read_text() if readme_path.exists() else ""

setup(
    name="talenthive",
    version="0.1.0",
    description="Freelance marketplace back end with escrow milestone payments",
    long_description=long_description,
    long_description_content_type="text/markdown",
    license="MIT",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    install_requires=[
        "flask>=3.0.0",
        "pydantic>=2.0.0",
        "pyyaml>=6.0",
        "jsonschema>=4.17.0",
        "click>=8.1.0",
        "rich>=13.0.0",
        "PyJWT>=2.8.0",
        "passlib>=1.7.4",
        "stripe>=8.0.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "black>=23.0.0",
            "ruff>=0.1.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "talenthive=talenthive.cli:main",
            "talenthive-api=talenthive.api.routes:main",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Framework :: Flask",
        "Topic :: Office/Business :: Financial",
    ],
    keywords=[
        "freelance",
        "marketplace",
        "escrow",
        "stripe",
        "flask",
    ],
)
