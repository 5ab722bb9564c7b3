"""Packaging setup with an optional Cython build."""

import os
import sys
from pathlib import Path

from setuptools import Extension, find_packages, setup


# Accept several truthy values for CYTHONIZE (so "True", "1", "true" all work)
CYTHONIZE_RAW = os.getenv("CYTHONIZE", "0")
CYTHONIZE = str(CYTHONIZE_RAW).strip().lower() in ("1", "true", "yes", "on")

if CYTHONIZE:
    from Cython.Build import cythonize

dist_name = "Edge-Console"
package_dir = "edge_console"
version = Path("VERSION.txt").read_text().strip()

install_requires = [
    "httpx>=0.25",
    "loguru>=0.7",
    "numpy>=1.24",
    "opencv-python-headless>=4.8",
    "flask>=3.0",
]

extras_require = {
    "test": ["pytest>=7.4"],
}


def list_py_files(package_dir: str | Path) -> list[str]:
    """Return Python source files under the package directory."""
    root = Path(package_dir)
    return [
        str(path)
        for path in root.rglob("*.py")
        if path.name not in {"__init__.py", "__main__.py"}
    ]


setup_kwargs = {
    "name": dist_name,
    "version": version,
    "description": "Streaming, telemetry and alarm console for edge-inference devices",
    "python_requires": ">=3.10",
    "zip_safe": False,
    "packages": find_packages(include=[package_dir, f"{package_dir}.*"]),
    "package_data": {f"{package_dir}.streaming": ["templates/*.html"]},
    "include_package_data": True,
    "install_requires": install_requires,
    "extras_require": extras_require,
    "entry_points": {
        "console_scripts": ["edge-console=edge_console.monitor:run_console"],
    },
}

if CYTHONIZE:
    if sys.platform == "win32":
        extra_compile_args = ["/O2", "/MD"]
        extra_link_args = ["/OPT:REF", "/OPT:ICF"]
    else:
        extra_compile_args = ["-O3", "-fvisibility=hidden"]
        extra_link_args = []

    extensions = [
        Extension(
            py_file.replace(os.path.sep, ".")[:-3],
            [py_file],
            extra_compile_args=extra_compile_args,
            extra_link_args=extra_link_args,
        )
        for py_file in list_py_files(package_dir)
    ]
    setup_kwargs["ext_modules"] = cythonize(
        extensions,
        compiler_directives={"language_level": "3", "binding": True},
    )

setup(**setup_kwargs)
