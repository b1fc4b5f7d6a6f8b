"""Setup script for nixos-bootstrap."""

from pathlib import Path

from setuptools import find_packages, setup

# Read the version from __version__.py
version_dict = {}
with open("nixos_bootstrap/__version__.py") as f:
    exec(f.read(), version_dict)

VERSION = version_dict["__version__"]

# Read the long description from README
README = Path("README.md").read_text(encoding="utf-8")

setup(
    name="nixos-bootstrap",
    version=VERSION,
    author="Donald Gifford",
    description="Partition a disk with btrfs subvolumes and install NixOS from the live ISO",
    long_description=README,
    long_description_content_type="text/markdown",
    url="https://github.com/donaldgifford/nix-config",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.9",
    install_requires=[
        "loguru>=0.7.0",
        "requests>=2.31.0",
        "Jinja2>=3.1.0",
        "rich>=13.0.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "pytest-mock>=3.10.0",
            "ruff>=0.1.0",
            "black>=23.0.0",
            "isort>=5.12.0",
            "mypy>=1.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "nixos-bootstrap=nixos_bootstrap.main:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: System Administrators",
        "Topic :: System :: Installation/Setup",
        "Topic :: System :: Systems Administration",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Operating System :: POSIX :: Linux",
    ],
    keywords="nixos installer btrfs partitioning bootstrap",
    project_urls={
        "Source": "https://github.com/donaldgifford/nix-config",
    },
    include_package_data=True,
    package_data={
        "nixos_bootstrap": [
            "templates/*.j2",
        ],
    },
)
