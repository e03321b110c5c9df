# -*- coding: utf-8 -*-

from setuptools import find_packages, setup

extras_require = {
    "test": [
        "pytest>=6.2.5",
        "pytest-xdist>=2.5",
        "hypothesis>=6.0",
    ],
    "lint": [
        "black==23.12.0",
        "flake8==6.1.0",
        "flake8-bugbear==23.12.2",
        "flake8-use-fstring==1.4",
        "isort==5.13.2",
        "mypy==1.5",
    ],
    "dev": ["ipython", "pre-commit", "twine"],
}

extras_require["dev"] = extras_require["test"] + extras_require["lint"] + extras_require["dev"]

with open("README.md", "r") as f:
    long_description = f.read()


setup(
    name="overf",
    version="0.1.0",
    description="overf: explicit overflow policies for Python arithmetic",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="overf contributors",
    author_email="",
    license="Apache License 2.0",
    keywords="overflow arithmetic ast source transform checked wrapping saturating",
    include_package_data=True,
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10,<4",
    install_requires=["asttokens>=2.0.5,<3", "packaging>=23.1"],
    tests_require=extras_require["test"],
    extras_require=extras_require,
    entry_points={"console_scripts": ["overf=overf.cli.overf_expand:_parse_cli_args"]},
    classifiers=[
        "Intended Audience :: Developers",
        "License :: OSI Approved :: Apache Software License",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
)
