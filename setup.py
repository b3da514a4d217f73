"""
ZCP Verify - ZeroCopy attestation and policy proof verification

Setup script for installation.
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read the README
readme_path = Path(__file__).parent / "README.md"
long_description = ""
if readme_path.exists():
    long_description = readme_path.read_text(encoding="utf-8")

setup(
    name="zcp-verify",
    version="0.1.0",
    author="ZeroCopy Contributors",
    description="Verify ZeroCopy enclave attestations and policy proofs",
    long_description=long_description,
    long_description_content_type="text/markdown",
    package_dir={"": "zcp/src"},
    packages=find_packages(where="zcp/src", exclude=["*.tests", "*.tests.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Security",
        "Topic :: Security :: Cryptography",
        "Topic :: Software Development :: Libraries :: Python Modules",
    ],
    python_requires=">=3.9",
    install_requires=[
        "cryptography>=41.0.0",
        "structlog>=23.1.0",
        "click>=8.0.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "black>=23.0.0",
            "mypy>=1.6.0",
            "ruff>=0.1.0",
        ],
        "test": [
            "pytest>=7.4.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "zcp=zcp.cli.main:main",
        ],
    },
    include_package_data=True,
    zip_safe=False,
)
