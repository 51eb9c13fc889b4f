# -*- coding: utf-8 -*-
import setuptools
import pathlib
import site
import sys

# odd bug with develop (editable) installs, see: https://github.com/pypa/pip/issues/7953
site.ENABLE_USER_SITE = "--user" in sys.argv[1:]

required = [
    "loguru",
    "setproctitle",
    "click>=8.0.0",
    "psutil>=6.1.0",
]

extras = {
    "test": ["pytest>=8.0"],
    "dev": ["pytest>=8.0", "doit", "ruff"],
}

here = pathlib.Path(__file__).parent.resolve()

long_description = (here / "README.md").read_text(encoding="utf-8")

# Read version
version = {}
with open(here / "src" / "wfmserver" / "_version.py", "r") as f:
    exec(f.read(), version)

if __name__ == "__main__":
    setuptools.setup(
        name="wfmserver",
        version=version["__version__"],
        description="SCPI control-plane server for waveform digitizers.",
        long_description=long_description,
        long_description_content_type="text/markdown",
        keywords=[
            "SCPI",
            "oscilloscope",
            "digitizer",
            "instrument control",
        ],
        classifiers=[
            "License :: OSI Approved :: MIT License",
            "Development Status :: 2 - Pre-Alpha",
        ],
        license="MIT",
        package_dir={"": "src"},
        packages=setuptools.find_packages(
            where="src",
            exclude=["*.test", "*.test.*", "test.*", "test", "test_*"],
        ),
        entry_points={
            "console_scripts": [
                "wfmserver=wfmserver.cli:cli",
            ],
        },
        install_requires=required,
        extras_require=extras,
        python_requires=">= 3.11",
        package_data={"": ["*.md"], "wfmserver": ["sysconfig/instruments/*.ini"]},
    )
# https://setuptools.readthedocs.io/en/latest/userguide/datafiles.html
