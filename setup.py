#!/usr/bin/env python3
"""
Setup script for smmadmin package.
"""

from setuptools import setup, find_packages
import re

# Extract version from __init__.py
with open("smmadmin/__init__.py", "r") as f:
    version_match = re.search(r'__version__\s*=\s*["\']([^"\']+)["\']', f.read())
    version = version_match.group(1) if version_match else '0.0.0'

# Read requirements
with open("requirements.txt", "r") as f:
    requirements = [line for line in f.read().splitlines() if line.strip()]

setup(
    name="smmadmin",
    version=version,
    description="Social media admin panel backend with Meta token refresh and scheduled publishing",
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={"smmadmin": ["schema.sql"]},
    install_requires=requirements,
    extras_require={
        "test": ["pytest>=7.0", "pytest-asyncio>=0.21"],
    },
    entry_points={
        "console_scripts": [
            "smmadmin=smmadmin.main:main",
            "smmadmin-admin=smmadmin.cli:main",
        ],
    },
    python_requires=">=3.10",
)
