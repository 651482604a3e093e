#!/usr/bin/env python3
"""
Setup script for the SkywareOS package manager (ware)
"""

from setuptools import setup, find_namespace_packages

# Read the README file
with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

# Read requirements
with open("requirements.txt", "r", encoding="utf-8") as fh:
    requirements = [line.strip() for line in fh if line.strip() and not line.startswith("#")]

setup(
    name="skyware-ware",
    version="0.7.0",
    author="SkywareSW",
    description="Package manager and provisioning installer for SkywareOS (pacman, Flatpak and the AUR)",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/SkywareSW/SkywareOS-Testing",
    project_urls={
        "Bug Tracker": "https://github.com/SkywareSW/SkywareOS-Testing/issues",
        "Source Code": "https://github.com/SkywareSW/SkywareOS-Testing",
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: End Users/Desktop",
        "Topic :: System :: Software Distribution",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Operating System :: POSIX :: Linux",
        "Environment :: Console",
    ],
    packages=find_namespace_packages(include=['ware', 'ware.*']),
    python_requires=">=3.9",
    install_requires=requirements,
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "ware=ware.cli:main",
            "skyware-setup=ware.provision:main",
        ],
    },
    zip_safe=False,
    keywords=['package-manager', 'pacman', 'flatpak', 'aur', 'paru', 'arch', 'skywareos'],
    platforms=['Linux'],
)
