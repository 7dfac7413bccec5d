"""Setup script for AdminGuard Python SDK"""
from setuptools import find_packages, setup

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="adminguard",
    version="0.1.0",
    author="AdminGuard Team",
    description="Python SDK for AdminGuard - admin authorization and approval policy decisions",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["adminguard", "adminguard.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Software Development :: Libraries :: Python Modules",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
    ],
    python_requires=">=3.11",
    install_requires=[
        "requests>=2.31.0",
    ],
)
