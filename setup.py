"""
SocialDAC setup.py — Package configuration and CLI entry point.
"""

from setuptools import find_packages, setup

setup(
    name="socialdac",
    version="0.3.0",
    description="SocialDAC — follow/unfollow relationship store for skapps",
    packages=find_packages(include=["socialdac", "socialdac.*"]),
    python_requires=">=3.11",
    entry_points={
        "console_scripts": [
            "socialdac=socialdac.cli:main",
        ],
    },
    install_requires=[
        "pydantic>=2.5",
        "redis>=5.0.1",
        "pyyaml>=6.0",
        "httpx>=0.27",
    ],
    extras_require={
        "test": [
            "pytest>=8.0,<9",
            "pytest-asyncio>=0.23",
        ],
    },
)
