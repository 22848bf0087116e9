#!/usr/bin/env python3
from setuptools import setup

setup(
    name="davstore",
    version="1.0",
    packages=["davstore", "davstore.commands"],
    url="",
    license="",
    author="",
    author_email="",
    description="Content-addressed file storage on WebDAV servers",
    python_requires=">=3.8",
    install_requires=[
        "Django>=4.2",
        "requests",
        "colorlog",
        "tqdm",
    ],
    entry_points={"console_scripts": ["davstore=davstore.main:main"]},
)
