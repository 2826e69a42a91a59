"""Setup script for optional Cython compilation of host_daemon."""

import glob
import os
from pathlib import Path

from setuptools import setup
from setuptools.extension import Extension
from setuptools.command.build_py import build_py as build_py_orig

# Base directory for source files
SRC_DIR = Path("host_daemon")

# Files/directories to EXCLUDE from compilation (keep as pure Python)
# - __init__.py files: needed for package imports
# - __pycache__: not source files
EXCLUDE_PATTERNS = [
    "__init__.py",
    "__pycache__",
]

# Compiled wheels are opt-in; the default build is pure Python
BUILD_COMPILED = os.environ.get("HOST_DAEMON_BUILD_COMPILED", "0") == "1"

ext_modules = []
cmdclass = {}

if BUILD_COMPILED:
    from Cython.Build import cythonize

    extensions = []
    compiled_modules = set()

    for filepath in glob.glob(str(SRC_DIR / "**/*.py"), recursive=True):
        # Normalize path separators for consistent exclusion matching
        normalized_path = filepath.replace("\\", "/")

        if any(pattern in normalized_path for pattern in EXCLUDE_PATTERNS):
            continue

        # e.g., "host_daemon/backends/linux.py" -> "host_daemon.backends.linux"
        module_name = ".".join(Path(filepath).with_suffix("").parts)

        extensions.append(Extension(name=module_name, sources=[filepath]))
        compiled_modules.add(module_name)

    # Custom build_py to exclude .py files that are compiled
    class build_py(build_py_orig):
        def find_package_modules(self, package, package_dir):
            modules = super().find_package_modules(package, package_dir)
            return [
                (pkg, mod, file)
                for (pkg, mod, file) in modules
                if f"{pkg}.{mod}" not in compiled_modules
            ]

    cmdclass = {"build_py": build_py}
    ext_modules = cythonize(
        extensions,
        compiler_directives={
            "language_level": "3",
            "embedsignature": True,  # Preserves function signatures in .so
        },
        annotate=False,
    )

setup(
    ext_modules=ext_modules,
    cmdclass=cmdclass,
)
