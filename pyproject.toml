[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "spanpool"
version = "0.1.0"
description = "A simulated three-tier concurrent memory pool with thread, central and page caches"
requires-python = ">=3.10"
dependencies = []
keywords = ["memory-pool", "allocator", "span", "page-cache", "thread-cache", "simulation"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Software Development :: Libraries",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
spanpool-benchmark = "spanpool.benchmark:main"

[tool.hatch.build.targets.wheel]
packages = ["spanpool"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
