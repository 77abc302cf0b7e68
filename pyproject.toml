[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "dockermcp"
version = "0.1.0"
description = "Model Context Protocol server that lets AI models manage Docker containers, images and builds"
requires-python = ">=3.10"
dependencies = []
keywords = ["docker", "mcp", "model-context-protocol", "containers", "json-rpc"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Systems Administration",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
docker-mcp = "dockermcp.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["dockermcp"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
