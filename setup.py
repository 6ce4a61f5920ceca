from setuptools import setup, find_packages

setup(
    name="dockcopy",
    version="0.1.0",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    install_requires=[
        "pydantic>=2.0",
        "pyyaml>=6.0",
        "click>=8.0",
        "docker>=7.0",
        "requests>=2.26",
        "loguru>=0.7",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "dockcopy=dockcopy.CLI.main:main",
        ],
    },
)
