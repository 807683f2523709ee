"""
Setup script for the SA ID Password Cracker package.
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="sa-id-password-cracker",
    version="0.1.0",
    author="SA ID Cracker Team",
    author_email="example@example.com",
    description="Recover document passwords that are South African ID numbers",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/example/sa-id-password-cracker",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Topic :: Security",
        "Topic :: Utilities",
    ],
    python_requires=">=3.7",
    install_requires=[
        "pikepdf>=2.0.0",
        "tqdm>=4.50.0",
    ],
    extras_require={
        "test": [
            "pytest>=6.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "sa-id-cracker=sa_id_cracker.cli:main",
        ],
    },
)
